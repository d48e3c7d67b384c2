"""Per-request header composition.

The composer owns the auth configuration of a client and turns it into a
fresh header set for every request. The credential provider may be swapped at
any time while requests are in flight.
"""

import dataclasses
import logging
import threading
from datetime import datetime, timezone

import httpx

from .auth import CredentialProvider, SignerConfig
from .request import PostRequest

logger = logging.getLogger(__name__)

SUBSCRIBER_ID_HEADER = "x-amz-subscriber-id"
SIGNING_SERVICE = "appsync"


@dataclasses.dataclass(frozen=True)
class _AuthState:
    subscriber_id: str = ""
    signer_config: SignerConfig | None = None
    credential_provider: CredentialProvider | None = None


class AuthComposer:
    """Builds the headers for each request.

    Headers are contributed in order: subscriber id (subscriptions only),
    signer output, then the bearer token. The bearer token always has the
    final say on ``Authorization``.

    The auth state is an immutable snapshot held in a single attribute.
    Readers take the reference once and never lock; writers replace it under
    ``_write_lock`` so concurrent swaps do not lose each other's updates.
    """

    def __init__(
        self,
        subscriber_id: str = "",
        signer_config: SignerConfig | None = None,
        credential_provider: CredentialProvider | None = None,
    ):
        self._state = _AuthState(
            subscriber_id=subscriber_id,
            signer_config=signer_config,
            credential_provider=credential_provider,
        )
        self._write_lock = threading.Lock()

    @property
    def subscriber_id(self) -> str:
        return self._state.subscriber_id

    @property
    def signer_config(self) -> SignerConfig | None:
        return self._state.signer_config

    @property
    def credential_provider(self) -> CredentialProvider | None:
        return self._state.credential_provider

    @property
    def auth_modes(self) -> tuple[str, ...]:
        """Names of the mechanisms currently active, in application order."""
        state = self._state
        modes = []
        if state.subscriber_id:
            modes.append("subscriber_id")
        if state.signer_config is not None:
            modes.append("iam")
        if state.credential_provider is not None:
            modes.append("token")
        return tuple(modes)

    def update_credential_provider(self, provider: CredentialProvider | None) -> None:
        """Replace the credential provider, e.g. after a token refresh.

        Safe to call while other threads are building headers. Passing None
        disables bearer token auth.
        """
        with self._write_lock:
            self._state = dataclasses.replace(self._state, credential_provider=provider)
        logger.debug("Credential provider replaced (enabled=%s)", provider is not None)

    def build_headers(self, request: PostRequest, body: bytes | None = None) -> httpx.Headers:
        """Return the headers for ``request``.

        Args:
            request: The outbound operation
            body: The serialized request as it will be sent. Computed from
                ``request`` when omitted; pass it to guarantee the signature
                covers the exact bytes on the wire.

        Raises:
            Whatever the signer or credential provider raises. No partial
            header set is returned.
        """
        state = self._state
        headers = httpx.Headers()
        is_subscription = request.is_subscription()

        if is_subscription and state.subscriber_id:
            headers[SUBSCRIBER_ID_HEADER] = state.subscriber_id

        if state.signer_config is not None:
            if body is None:
                body = request.to_bytes()
            headers.update(self._sign(state.signer_config, body))

        provider = state.credential_provider
        if provider is not None:
            headers["Authorization"] = provider.get_auth_token()

        logger.debug(
            "Built headers (subscription=%s): %s", is_subscription, ", ".join(headers.keys())
        )
        return headers

    def _sign(self, config: SignerConfig, body: bytes) -> dict[str, str]:
        """Sign a POST of ``body`` to the configured endpoint.

        Returns only the headers the signer added or changed. The headers httpx
        derives from the request itself (Host, Content-Length) are left to the
        transport, which sends the same bytes to the same endpoint.
        """
        logger.debug("Signing request for %s in %s", config.host, config.region)
        http_request = httpx.Request("POST", config.url, content=body)
        baseline = dict(http_request.headers)
        config.signer.sign(
            http_request,
            body,
            SIGNING_SERVICE,
            config.region,
            datetime.now(timezone.utc),
        )
        return {
            name: value
            for name, value in http_request.headers.items()
            if baseline.get(name) != value
        }
