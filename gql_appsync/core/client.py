"""AppSync GraphQL client.

Dispatches requests through a Transport using headers from an AuthComposer,
in blocking (``post``) or callback (``post_async``) mode.
"""

import logging
import time

import httpx

from .auth import CredentialProvider, Signer, SignerConfig
from .composer import AuthComposer
from .request import GraphQLResponse, PostRequest
from .transport import CancellationHandle, ResponseCallback, Transport

logger = logging.getLogger(__name__)

# Seconds to wait after a subscription handshake before handing control back.
# The backend needs this settling time before the new channel is usable.
SUBSCRIPTION_DELAY = 2.0


class AppSyncClient:
    """Issues GraphQL operations against an AppSync endpoint.

    Subscription requests are followed by a fixed settling delay, applied
    whether the request succeeded or failed. Nothing is retried; the client
    stays usable after any error.

    Examples:
        transport = HTTPTransport(url)

        client = (
            AppSyncClient.builder(transport)
            .credential_provider(StaticTokenProvider(id_token))
            .subscriber_id("device-42")
            .build()
        )

        response = client.post(PostRequest(query="query { me { id } }"))

        # Later, after refreshing tokens
        client.update_credential_provider(StaticTokenProvider(new_token))
    """

    def __init__(
        self,
        transport: Transport,
        composer: AuthComposer | None = None,
        *,
        subscription_delay: float = SUBSCRIPTION_DELAY,
    ):
        if subscription_delay < 0:
            raise ValueError("subscription_delay must be non-negative")
        self._transport = transport
        self._composer = composer if composer is not None else AuthComposer()
        self.subscription_delay = subscription_delay

    @staticmethod
    def builder(transport: Transport) -> "ClientBuilder":
        """Start configuring a client for ``transport``."""
        return ClientBuilder(transport)

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def composer(self) -> AuthComposer:
        return self._composer

    def __enter__(self) -> "AppSyncClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self):
        """Close the transport, if it supports closing."""
        close = getattr(self._transport, "close", None)
        if close is not None:
            close()

    def update_credential_provider(self, provider: CredentialProvider | None) -> None:
        """Swap the bearer token source. Safe while requests are in flight."""
        self._composer.update_credential_provider(provider)

    def build_headers(self, request: PostRequest, body: bytes | None = None) -> httpx.Headers:
        """Return the headers that would be sent with ``request``."""
        return self._composer.build_headers(request, body)

    def post(self, request: PostRequest) -> GraphQLResponse:
        """Send ``request`` and block until the response arrives.

        For subscriptions this also blocks for ``subscription_delay`` seconds
        afterwards, even if building headers or sending failed.

        Raises:
            Any error from signing, fetching the token or the transport,
            unchanged.
        """
        is_subscription = request.is_subscription()
        try:
            body = request.to_bytes()
            headers = self._composer.build_headers(request, body)
            return self._transport.post(headers, request, body)
        finally:
            if is_subscription:
                self._settle()

    def post_async(self, request: PostRequest, callback: ResponseCallback) -> CancellationHandle:
        """Submit ``request`` without blocking.

        ``callback(response, error)`` runs on the transport's completion
        thread, after the subscription settling delay when applicable. Use the
        returned handle to cancel; once the transport has started completion
        (including the settling delay) the post can no longer be cancelled.

        Raises:
            Errors from building headers or from submission. In that case the
            callback is never called.
        """
        is_subscription = request.is_subscription()
        body = request.to_bytes()
        headers = self._composer.build_headers(request, body)

        def on_complete(response: GraphQLResponse | None, error: BaseException | None):
            if is_subscription:
                self._settle()
            callback(response, error)

        return self._transport.post_async(headers, request, on_complete, body)

    def _settle(self):
        logger.debug("Waiting %.1fs for subscription to settle", self.subscription_delay)
        time.sleep(self.subscription_delay)


class ClientBuilder:
    """Step-by-step configuration for AppSyncClient.

    Each auth mechanism is optional and independent; any combination may be
    enabled. When both IAM signing and a credential provider are set, the
    provider's token wins the ``Authorization`` header.
    """

    def __init__(self, transport: Transport):
        self._transport = transport
        self._subscriber_id = ""
        self._signer_config: SignerConfig | None = None
        self._credential_provider: CredentialProvider | None = None
        self._subscription_delay = SUBSCRIPTION_DELAY

    def subscriber_id(self, subscriber_id: str) -> "ClientBuilder":
        """Tag subscription requests with ``x-amz-subscriber-id``."""
        self._subscriber_id = subscriber_id
        return self

    def iam_auth(self, url: str, region: str, signer: Signer) -> "ClientBuilder":
        """Sign every request for the ``appsync`` service in ``region``."""
        self._signer_config = SignerConfig(url=url, region=region, signer=signer)
        return self

    def credential_provider(self, provider: CredentialProvider) -> "ClientBuilder":
        """Send the provider's token as the ``Authorization`` header."""
        self._credential_provider = provider
        return self

    def subscription_delay(self, seconds: float) -> "ClientBuilder":
        """Override the settling delay after subscription requests."""
        if seconds < 0:
            raise ValueError("subscription_delay must be non-negative")
        self._subscription_delay = seconds
        return self

    def build(self) -> AppSyncClient:
        composer = AuthComposer(
            subscriber_id=self._subscriber_id,
            signer_config=self._signer_config,
            credential_provider=self._credential_provider,
        )
        logger.debug("Client auth modes: %s", ", ".join(composer.auth_modes) or "none")
        return AppSyncClient(
            self._transport,
            composer,
            subscription_delay=self._subscription_delay,
        )
