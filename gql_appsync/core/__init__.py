"""Core modules for the AppSync GraphQL client."""

from .auth import (
    CallableTokenProvider,
    CredentialProvider,
    Signer,
    SignerConfig,
    StaticTokenProvider,
)
from .client import SUBSCRIPTION_DELAY, AppSyncClient, ClientBuilder
from .composer import SUBSCRIBER_ID_HEADER, AuthComposer
from .request import (
    GraphQLError,
    GraphQLResponse,
    MQTTConnection,
    NewSubscription,
    PostRequest,
    SubscriptionExtension,
)
from .transport import (
    CancellationHandle,
    HTTPTransport,
    PendingPost,
    ResponseCallback,
    Transport,
)

__all__ = [
    # Auth
    "CredentialProvider",
    "Signer",
    "SignerConfig",
    "StaticTokenProvider",
    "CallableTokenProvider",
    # Header composition
    "AuthComposer",
    "SUBSCRIBER_ID_HEADER",
    # Requests and responses
    "PostRequest",
    "GraphQLResponse",
    "GraphQLError",
    "SubscriptionExtension",
    "MQTTConnection",
    "NewSubscription",
    # Transport
    "Transport",
    "CancellationHandle",
    "ResponseCallback",
    "HTTPTransport",
    "PendingPost",
    # Client
    "AppSyncClient",
    "ClientBuilder",
    "SUBSCRIPTION_DELAY",
]
