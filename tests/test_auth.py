"""Tests for authentication collaborators."""

import dataclasses

import pytest

from gql_appsync.core.auth import (
    CallableTokenProvider,
    CredentialProvider,
    Signer,
    SignerConfig,
    StaticTokenProvider,
)


class RecordingSigner:
    def sign(self, request, body, service, region, signed_at):
        request.headers["X-Amz-Date"] = "20240115T103000Z"


class TestStaticTokenProvider:
    """Tests for StaticTokenProvider."""

    def test_returns_token(self):
        """Test the configured token is returned."""
        provider = StaticTokenProvider("tok123")
        assert provider.get_auth_token() == "tok123"

    def test_token_is_not_prefixed(self):
        """Test the token is sent as-is, without a Bearer prefix."""
        provider = StaticTokenProvider("eyJhbGciOiJIUzI1NiIs")
        assert provider.get_auth_token() == "eyJhbGciOiJIUzI1NiIs"


class TestCallableTokenProvider:
    """Tests for CallableTokenProvider."""

    def test_calls_function_each_time(self):
        """Test the callable is consulted on every call."""
        tokens = iter(["first", "second"])
        provider = CallableTokenProvider(lambda: next(tokens))

        assert provider.get_auth_token() == "first"
        assert provider.get_auth_token() == "second"

    def test_propagates_errors(self):
        """Test errors from the callable reach the caller unchanged."""
        def expired():
            raise PermissionError("refresh token expired")

        provider = CallableTokenProvider(expired)
        with pytest.raises(PermissionError, match="refresh token expired"):
            provider.get_auth_token()


class TestSignerConfig:
    """Tests for SignerConfig."""

    def test_host_from_url(self):
        """Test host is derived from the endpoint URL."""
        config = SignerConfig(
            url="https://abc123.appsync-api.eu-west-1.amazonaws.com/graphql",
            region="eu-west-1",
            signer=RecordingSigner(),
        )
        assert config.host == "abc123.appsync-api.eu-west-1.amazonaws.com"

    def test_is_frozen(self):
        """Test SignerConfig cannot be modified after construction."""
        config = SignerConfig(url="https://example.com/graphql", region="us-east-1", signer=RecordingSigner())
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.region = "eu-west-1"


class TestProtocols:
    """Tests for protocol compliance."""

    def test_static_provider_is_credential_provider(self):
        """Test StaticTokenProvider implements CredentialProvider."""
        assert isinstance(StaticTokenProvider("t"), CredentialProvider)

    def test_callable_provider_is_credential_provider(self):
        """Test CallableTokenProvider implements CredentialProvider."""
        assert isinstance(CallableTokenProvider(lambda: "t"), CredentialProvider)

    def test_custom_provider(self):
        """Test a custom class implements CredentialProvider."""
        class CustomProvider:
            def get_auth_token(self):
                return "custom"

        assert isinstance(CustomProvider(), CredentialProvider)

    def test_custom_signer(self):
        """Test a custom class implements Signer."""
        assert isinstance(RecordingSigner(), Signer)

    def test_provider_is_not_signer(self):
        """Test token providers are not mistaken for signers."""
        assert not isinstance(StaticTokenProvider("t"), Signer)
