"""Authentication collaborators for AppSync clients.

Provides the two pluggable mechanisms the client composes per request:

- CredentialProvider: supplies a bearer token for the ``Authorization`` header
  (e.g. a Cognito user pool token kept fresh by the application).
- Signer: signs the serialized request (e.g. SigV4 for IAM auth).

Users implement these protocols or use the built-in token providers.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Protocol, runtime_checkable

import httpx


@runtime_checkable
class CredentialProvider(Protocol):
    """Protocol for bearer token sources.

    ``get_auth_token`` is called once per request and may block (for example
    to refresh an expired token). Raise to fail the request.

    Example:
        class CognitoTokens:
            def __init__(self, session):
                self.session = session

            def get_auth_token(self) -> str:
                return self.session.refresh_if_needed().id_token
    """

    def get_auth_token(self) -> str:
        """Return the current token."""
        ...


@runtime_checkable
class Signer(Protocol):
    """Protocol for request signers.

    The signer receives an ``httpx.Request`` describing the POST, the exact
    body bytes that will be sent, the service name (``"appsync"``), the region
    and the signing time. It adds its headers to ``request.headers``.

    Example:
        class MySigV4Signer:
            def sign(self, request, body, service, region, signed_at):
                request.headers["X-Amz-Date"] = signed_at.strftime("%Y%m%dT%H%M%SZ")
                request.headers["Authorization"] = compute_signature(...)
    """

    def sign(
        self,
        request: httpx.Request,
        body: bytes,
        service: str,
        region: str,
        signed_at: datetime,
    ) -> None:
        """Attach signature headers to ``request``."""
        ...


class StaticTokenProvider:
    """A fixed token.

    Args:
        token: The value sent as the ``Authorization`` header

    Example:
        provider = StaticTokenProvider("eyJhbGciOiJIUzI1NiIs...")
    """

    def __init__(self, token: str):
        self.token = token

    def get_auth_token(self) -> str:
        return self.token


class CallableTokenProvider:
    """Delegates to a zero-argument callable.

    Args:
        fn: Returns the current token; exceptions propagate to the request

    Example:
        provider = CallableTokenProvider(lambda: tokens.access_token)
    """

    def __init__(self, fn: Callable[[], str]):
        self._fn = fn

    def get_auth_token(self) -> str:
        return self._fn()


@dataclass(frozen=True)
class SignerConfig:
    """Where and how to sign requests for IAM auth.

    Args:
        url: The GraphQL endpoint the signed request targets
        region: AWS region of the endpoint
        signer: The signer implementation
    """

    url: str
    region: str
    signer: Signer

    @property
    def host(self) -> str:
        return httpx.URL(self.url).host
