"""Transports that physically send GraphQL requests.

The client hands a transport the composed headers, the request and the
serialized body. A transport must send that body unchanged so that any
signature computed over it stays valid.
"""

import logging
import threading
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Callable, Protocol, runtime_checkable

import httpx

from .request import GraphQLResponse, PostRequest

logger = logging.getLogger(__name__)

ResponseCallback = Callable[[GraphQLResponse | None, BaseException | None], None]


@runtime_checkable
class CancellationHandle(Protocol):
    """Handle for an in-flight asynchronous post."""

    def cancel(self) -> bool:
        """Request cancellation.

        Returns False if the post already completed or its callback has
        started running.
        """
        ...

    def cancelled(self) -> bool:
        ...

    def done(self) -> bool:
        ...


@runtime_checkable
class Transport(Protocol):
    """Protocol for GraphQL transports.

    ``post_async`` must invoke ``callback`` exactly once when the post
    completes, with either a response or an exception, unless the post is
    cancelled first. If submission itself fails it raises and never calls
    ``callback``.
    """

    def post(
        self,
        headers: httpx.Headers,
        request: PostRequest,
        body: bytes | None = None,
    ) -> GraphQLResponse:
        ...

    def post_async(
        self,
        headers: httpx.Headers,
        request: PostRequest,
        callback: ResponseCallback,
        body: bytes | None = None,
    ) -> CancellationHandle:
        ...


class PendingPost:
    """Cancellation handle returned by HTTPTransport.post_async.

    Cancelling a post that has not started prevents it from running at all.
    Cancelling one that is already on the wire lets the HTTP call finish but
    skips the callback. Once the callback has started, the post can no
    longer be cancelled.
    """

    def __init__(self):
        self._cancel_requested = threading.Event()
        self._future: Future | None = None
        self._lock = threading.Lock()
        self._delivering = False

    def _attach(self, future: Future):
        self._future = future

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_requested.is_set()

    def _start_delivery(self) -> bool:
        """Claim the right to run the callback. False if cancelled first."""
        with self._lock:
            if self._cancel_requested.is_set():
                return False
            self._delivering = True
            return True

    def cancel(self) -> bool:
        with self._lock:
            if self._delivering or (self._future is not None and self._future.done()):
                return False
            self._cancel_requested.set()
        if self._future is not None:
            self._future.cancel()
        return True

    def cancelled(self) -> bool:
        return self._cancel_requested.is_set()

    def done(self) -> bool:
        return self._future is not None and self._future.done()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the post (and its callback) finished or was cancelled.

        Exceptions raised by the callback are logged, not re-raised here.

        Returns False on timeout.
        """
        if self._future is None:
            return False
        try:
            self._future.exception(timeout=timeout)
        except FutureTimeoutError:
            return False
        except CancelledError:
            pass
        return True


class HTTPTransport:
    """Sends GraphQL requests over HTTP with httpx.

    Synchronous posts run on the caller's thread. Asynchronous posts run on a
    thread pool; their callbacks run on the pool thread that completed them.

    Examples:
        transport = HTTPTransport("https://example.appsync-api.us-east-1.amazonaws.com/graphql")

        # Share an existing client (e.g. with custom proxies or mounts)
        transport = HTTPTransport(url, client=httpx.Client(proxy="http://proxy:3128"))
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 30.0,
        max_workers: int = 4,
        client: httpx.Client | None = None,
    ):
        """Initialize the transport.

        Args:
            url: GraphQL endpoint URL
            timeout: Request timeout in seconds (ignored if ``client`` is given)
            max_workers: Size of the pool used by ``post_async``
            client: Optional preconfigured httpx client; closed by ``close``
        """
        self.url = url
        self.timeout = timeout
        self._client = client if client is not None else httpx.Client(timeout=timeout)
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="gql-appsync"
        )
        self._worker_idents: set[int] = set()

    def __enter__(self) -> "HTTPTransport":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self):
        """Stop accepting async posts and close the HTTP client.

        Waits for queued posts, except when called from a completion callback
        (a pool worker cannot wait for itself).
        """
        in_worker = threading.get_ident() in self._worker_idents
        try:
            self._executor.shutdown(wait=not in_worker)
        finally:
            self._client.close()

    def post(
        self,
        headers: httpx.Headers,
        request: PostRequest,
        body: bytes | None = None,
    ) -> GraphQLResponse:
        """POST the request and return the parsed response.

        Raises:
            httpx.HTTPError: On network failures and non-2xx status codes
            pydantic.ValidationError: If the body is not a GraphQL response
        """
        if body is None:
            body = request.to_bytes()

        send_headers = httpx.Headers(headers)
        send_headers["Content-Type"] = "application/json"

        logger.debug("POST %s (%d bytes)", self.url, len(body))
        response = self._client.post(self.url, content=body, headers=send_headers)
        response.raise_for_status()

        return GraphQLResponse.model_validate(response.json())

    def post_async(
        self,
        headers: httpx.Headers,
        request: PostRequest,
        callback: ResponseCallback,
        body: bytes | None = None,
    ) -> PendingPost:
        """Submit the request to the pool and return a cancellation handle.

        Raises:
            RuntimeError: If the transport has been closed
        """
        pending = PendingPost()

        def run():
            self._worker_idents.add(threading.get_ident())
            if pending.cancel_requested:
                return
            try:
                result = self.post(headers, request, body)
            except Exception as exc:
                response, error = None, exc
            else:
                response, error = result, None
            if not pending._start_delivery():
                logger.debug("Post cancelled, dropping callback")
                return
            try:
                callback(response, error)
            except Exception:
                logger.exception("post_async callback failed")

        pending._attach(self._executor.submit(run))
        return pending
