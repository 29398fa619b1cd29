"""Tests for identity providers."""

import json
from datetime import UTC, datetime

import httpx
import pytest

from src.core.config import Settings
from src.core.errors import AuthError
from src.interface.auth import (
    FirebaseIdentityProvider,
    SignedTokenIdentityProvider,
    build_identity_provider,
)


ACCOUNT = {
    "localId": "uid-123",
    "email": "guardian@example.com",
    "displayName": "Guardian",
    "emailVerified": True,
    "createdAt": "1704067200000",
    "lastLoginAt": "1704153600000",
}


def _firebase(handler) -> FirebaseIdentityProvider:
    settings = Settings(firebase_api_key="test-key", firebase_auth_base_url="https://identity.test/v1")
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return FirebaseIdentityProvider(settings, client=client)


@pytest.mark.unit
class TestFirebaseIdentityProvider:
    """Tests for FirebaseIdentityProvider."""

    async def test_verify_token(self):
        """Test a valid token resolves to the account identity."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"users": [ACCOUNT]})

        provider = _firebase(handler)

        user = await provider.verify_token("id-token")

        assert user.uid == "uid-123"
        assert user.email == "guardian@example.com"
        assert user.name == "Guardian"
        assert seen[0].url.path == "/v1/accounts:lookup"
        assert seen[0].url.params["key"] == "test-key"
        assert json.loads(seen[0].content) == {"idToken": "id-token"}
        await provider.close()

    async def test_get_user(self):
        provider = _firebase(lambda request: httpx.Response(200, json={"users": [ACCOUNT]}))

        record = await provider.get_user("id-token")

        assert record.display_name == "Guardian"
        assert record.email_verified is True
        assert record.creation_time == datetime(2024, 1, 1, tzinfo=UTC)
        assert record.last_sign_in_time == datetime(2024, 1, 2, tzinfo=UTC)

    @pytest.mark.parametrize("status_code", [400, 401, 403])
    async def test_rejected_token(self, status_code):
        provider = _firebase(lambda request: httpx.Response(status_code, json={"error": {"message": "INVALID"}}))

        with pytest.raises(AuthError, match="Invalid token"):
            await provider.verify_token("bad")

    async def test_no_matching_account(self):
        provider = _firebase(lambda request: httpx.Response(200, json={}))

        with pytest.raises(AuthError):
            await provider.verify_token("orphan")

    async def test_transport_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        provider = _firebase(handler)

        with pytest.raises(AuthError):
            await provider.verify_token("id-token")

    def test_requires_api_key(self):
        with pytest.raises(ValueError, match="FIREBASE_API_KEY"):
            FirebaseIdentityProvider(Settings(firebase_api_key=None))


@pytest.mark.unit
class TestSignedTokenIdentityProvider:
    """Tests for SignedTokenIdentityProvider."""

    async def test_issued_token_verifies(self):
        provider = SignedTokenIdentityProvider(Settings(secret_key="s3cret"))
        token = provider.issue_token("u1", email="u1@example.com", name="User One")

        user = await provider.verify_token(token)

        assert (user.uid, user.email, user.name) == ("u1", "u1@example.com", "User One")

    async def test_foreign_key_rejected(self):
        issuer = SignedTokenIdentityProvider(Settings(secret_key="one"))
        verifier = SignedTokenIdentityProvider(Settings(secret_key="two"))

        with pytest.raises(AuthError, match="Invalid token"):
            await verifier.verify_token(issuer.issue_token("u1"))

    async def test_expired_token_rejected(self):
        provider = SignedTokenIdentityProvider(Settings(secret_key="s3cret", signed_token_max_age_seconds=-1))

        with pytest.raises(AuthError):
            await provider.verify_token(provider.issue_token("u1"))

    async def test_garbage_rejected(self):
        provider = SignedTokenIdentityProvider(Settings(secret_key="s3cret"))

        with pytest.raises(AuthError):
            await provider.verify_token("not-a-token")

    async def test_get_user(self):
        provider = SignedTokenIdentityProvider(Settings(secret_key="s3cret"))

        record = await provider.get_user(provider.issue_token("u1", name="User One"))

        assert record.uid == "u1"
        assert record.display_name == "User One"


@pytest.mark.unit
def test_build_identity_provider_selects_backend():
    assert isinstance(build_identity_provider(Settings(auth_backend="signed")), SignedTokenIdentityProvider)
    assert isinstance(
        build_identity_provider(Settings(auth_backend="firebase", firebase_api_key="k")), FirebaseIdentityProvider
    )
