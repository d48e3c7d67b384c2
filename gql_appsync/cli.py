"""Command-line interface for gql-appsync."""

import json
import logging
from pathlib import Path

import click
import httpx
from pydantic import ValidationError

from .core.auth import StaticTokenProvider
from .core.client import AppSyncClient
from .core.request import PostRequest
from .core.transport import HTTPTransport


def parse_variables(ctx, param, value):
    """Parse the --variables option as a JSON object."""
    if value is None:
        return None
    try:
        variables = json.loads(value)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}") from e
    if not isinstance(variables, dict):
        raise click.BadParameter("must be a JSON object")
    return variables


@click.group()
@click.version_option(package_name="gql-appsync")
def main():
    """GraphQL client for AWS AppSync endpoints.

    Send queries, mutations and subscription handshakes with token auth.
    """
    pass


@main.command()
@click.option(
    "--url",
    "-u",
    required=True,
    envvar="APPSYNC_URL",
    help="GraphQL endpoint URL.",
)
@click.option(
    "--query",
    "-q",
    help="GraphQL document to send.",
)
@click.option(
    "--query-file",
    "-f",
    type=click.Path(exists=True, dir_okay=False),
    help="Read the GraphQL document from a file.",
)
@click.option(
    "--variables",
    callback=parse_variables,
    help="Variables as a JSON object.",
)
@click.option(
    "--operation-name",
    "-o",
    help="Operation to run when the document contains several.",
)
@click.option(
    "--token",
    "-t",
    envvar="APPSYNC_TOKEN",
    help="Token sent as the Authorization header.",
)
@click.option(
    "--subscriber-id",
    envvar="APPSYNC_SUBSCRIBER_ID",
    default="",
    help="Subscriber ID attached to subscription requests.",
)
@click.option(
    "--timeout",
    type=float,
    default=30.0,
    show_default=True,
    help="Request timeout in seconds.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output.",
)
def post(
    url: str,
    query: str | None,
    query_file: str | None,
    variables: dict | None,
    operation_name: str | None,
    token: str | None,
    subscriber_id: str,
    timeout: float,
    verbose: bool,
):
    """Send a GraphQL operation and print the JSON response.

    Examples:

        gql-appsync post -u https://example.appsync-api.eu-west-1.amazonaws.com/graphql \\
            -q 'query { listItems { id } }' -t "$ID_TOKEN"

        gql-appsync post -f ./onMessage.graphql --subscriber-id device-42
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    if (query is None) == (query_file is None):
        raise click.UsageError("Provide exactly one of --query or --query-file.")
    if query_file is not None:
        query = Path(query_file).read_text()

    request = PostRequest(query=query, operation_name=operation_name, variables=variables)

    builder = AppSyncClient.builder(HTTPTransport(url, timeout=timeout))
    if token:
        builder.credential_provider(StaticTokenProvider(token))
    if subscriber_id:
        builder.subscriber_id(subscriber_id)

    with builder.build() as client:
        if verbose:
            click.echo(f"Endpoint: {url}", err=True)
            click.echo(f"Subscription: {request.is_subscription()}", err=True)
        try:
            response = client.post(request)
        except httpx.HTTPError as e:
            raise click.ClickException(f"Request failed: {e}") from e
        except (ValidationError, ValueError) as e:
            raise click.ClickException(f"Invalid response: {e}") from e

    click.echo(json.dumps(response.model_dump(exclude_none=True), indent=2))


if __name__ == "__main__":
    main()
