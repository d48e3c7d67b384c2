"""GraphQL request and response models.

PostRequest is the immutable outbound operation. Its JSON encoding is the
exact body that gets signed and sent, so serialization goes through a single
deterministic method, ``to_bytes``.
"""

import logging
from typing import Any, TypeVar

from graphql import GraphQLSyntaxError, OperationDefinitionNode, OperationType, parse
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GraphQLError(Exception):
    """Exception raised for GraphQL errors."""

    def __init__(self, message: str, errors: list[dict[str, Any]]):
        self.message = message
        self.errors = errors
        super().__init__(message)


class PostRequest(BaseModel):
    """A GraphQL query, mutation or subscription to POST to the endpoint.

    Example:
        request = PostRequest(
            query="subscription OnMessage { onMessage { id body } }",
            operation_name="OnMessage",
        )
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    query: str
    operation_name: str | None = Field(default=None, alias="operationName")
    variables: dict[str, Any] | None = None

    def is_subscription(self) -> bool:
        """Return True if the selected operation is a subscription.

        The operation is picked by ``operation_name`` when given, otherwise
        the first operation in the document is used.
        """
        try:
            document = parse(self.query, no_location=True)
        except GraphQLSyntaxError:
            logger.debug("Query does not parse, classifying by leading keyword")
            return self.query.lstrip().startswith("subscription")

        for definition in document.definitions:
            if not isinstance(definition, OperationDefinitionNode):
                continue
            if self.operation_name and (
                definition.name is None or definition.name.value != self.operation_name
            ):
                continue
            return definition.operation == OperationType.SUBSCRIPTION
        return False

    def to_bytes(self) -> bytes:
        """Serialize to the JSON body sent over the wire.

        Unset fields are omitted and keys use their wire names
        (``operationName``).
        """
        return self.model_dump_json(by_alias=True, exclude_none=True).encode()


class MQTTConnection(BaseModel):
    """Connection details for one subscription channel."""

    model_config = ConfigDict(populate_by_name=True)

    url: str
    topics: list[str] = Field(default_factory=list)
    client: str = ""


class NewSubscription(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    topic: str
    expire_time: Any = Field(default=None, alias="expireTime")


class SubscriptionExtension(BaseModel):
    """The ``extensions.subscription`` block returned by a subscription handshake."""

    model_config = ConfigDict(populate_by_name=True)

    version: str = ""
    mqtt_connections: list[MQTTConnection] = Field(default_factory=list, alias="mqttConnections")
    new_subscriptions: dict[str, NewSubscription] = Field(
        default_factory=dict, alias="newSubscriptions"
    )


class GraphQLResponse(BaseModel):
    """A GraphQL response body.

    GraphQL level errors are kept as data; call ``raise_for_errors`` to turn
    them into a ``GraphQLError``.
    """

    model_config = ConfigDict(extra="allow")

    data: Any = None
    errors: list[dict[str, Any]] | None = None
    extensions: dict[str, Any] | None = None

    @property
    def subscription(self) -> SubscriptionExtension | None:
        """Parsed subscription handshake info, if the response carries one."""
        if not self.extensions or "subscription" not in self.extensions:
            return None
        return SubscriptionExtension.model_validate(self.extensions["subscription"])

    def data_as(self, type_: type[T]) -> T:
        """Validate ``data`` into the given type (a pydantic model, list, etc.)."""
        return TypeAdapter(type_).validate_python(self.data)

    def raise_for_errors(self) -> None:
        """Raise GraphQLError if the response contains errors."""
        if self.errors:
            error_messages = "; ".join(e.get("message", str(e)) for e in self.errors)
            raise GraphQLError(f"GraphQL errors: {error_messages}", self.errors)
