"""Bearer token verification against an identity provider."""

import logging
from datetime import UTC, datetime
from typing import Any, Protocol

import httpx
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from pydantic import BaseModel

from src.core.config import Settings, constants
from src.core.errors import AuthError


logger = logging.getLogger(__name__)

_REJECTED_STATUSES = {400, 401, 403}


class AuthenticatedUser(BaseModel):
    """Identity attached to a verified request."""

    uid: str
    email: str | None = None
    name: str | None = None


class UserRecord(BaseModel):
    """Account details held by the identity provider."""

    uid: str
    email: str | None = None
    display_name: str | None = None
    email_verified: bool = False
    creation_time: datetime | None = None
    last_sign_in_time: datetime | None = None


class IdentityProvider(Protocol):
    """Verifies bearer tokens and looks up the account behind them."""

    async def verify_token(self, token: str) -> AuthenticatedUser: ...

    async def get_user(self, token: str) -> UserRecord: ...

    async def close(self) -> None: ...


def _millis_to_datetime(value: Any) -> datetime | None:
    if value in (None, ""):
        return None
    return datetime.fromtimestamp(int(value) / 1000, tz=UTC)


class FirebaseIdentityProvider:
    """Verifies Firebase ID tokens through the Identity Toolkit REST API."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        self.api_key = settings.require_credential("firebase_api_key", "Firebase")
        self.base_url = settings.firebase_auth_base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=constants.API_TIMEOUT_SECONDS)

    async def _lookup(self, token: str) -> dict[str, Any]:
        try:
            response = await self._client.post(
                f"{self.base_url}/accounts:lookup",
                params={"key": self.api_key},
                json={"idToken": token},
            )
        except httpx.HTTPError as e:
            logger.warning("identity_lookup_unreachable", extra={"error": str(e)})
            raise AuthError("Invalid token") from e

        if response.status_code in _REJECTED_STATUSES:
            logger.info("identity_token_rejected", extra={"status_code": response.status_code})
            raise AuthError("Invalid token")
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("identity_lookup_failed", extra={"status_code": response.status_code})
            raise AuthError("Invalid token") from e

        users = response.json().get("users") or []
        if not users:
            raise AuthError("Invalid token")
        return users[0]

    async def verify_token(self, token: str) -> AuthenticatedUser:
        account = await self._lookup(token)
        return AuthenticatedUser(uid=account["localId"], email=account.get("email"), name=account.get("displayName"))

    async def get_user(self, token: str) -> UserRecord:
        account = await self._lookup(token)
        return UserRecord(
            uid=account["localId"],
            email=account.get("email"),
            display_name=account.get("displayName"),
            email_verified=bool(account.get("emailVerified", False)),
            creation_time=_millis_to_datetime(account.get("createdAt")),
            last_sign_in_time=_millis_to_datetime(account.get("lastLoginAt")),
        )

    async def close(self) -> None:
        await self._client.aclose()


class SignedTokenIdentityProvider:
    """Verifies tokens signed with the application secret key.

    Intended for development and tests, where no external identity service is
    available. Tokens come from :meth:`issue_token`.
    """

    def __init__(self, settings: Settings) -> None:
        self.max_age = settings.signed_token_max_age_seconds
        self.serializer = URLSafeTimedSerializer(settings.secret_key, salt=constants.SIGNED_TOKEN_SALT)

    def issue_token(self, uid: str, email: str | None = None, name: str | None = None) -> str:
        return self.serializer.dumps({"uid": uid, "email": email, "name": name})

    def _load(self, token: str) -> dict[str, Any]:
        try:
            payload = self.serializer.loads(token, max_age=self.max_age)
        except SignatureExpired as e:
            logger.info("signed_token_expired")
            raise AuthError("Invalid token") from e
        except BadSignature as e:
            raise AuthError("Invalid token") from e
        if not isinstance(payload, dict) or not payload.get("uid"):
            raise AuthError("Invalid token")
        return payload

    async def verify_token(self, token: str) -> AuthenticatedUser:
        return AuthenticatedUser.model_validate(self._load(token))

    async def get_user(self, token: str) -> UserRecord:
        payload = self._load(token)
        return UserRecord(
            uid=payload["uid"],
            email=payload.get("email"),
            display_name=payload.get("name"),
            email_verified=False,
        )

    async def close(self) -> None:
        return None


def build_identity_provider(settings: Settings) -> IdentityProvider:
    """Identity provider selected by ``settings.auth_backend``."""
    if settings.auth_backend == "signed":
        return SignedTokenIdentityProvider(settings)
    return FirebaseIdentityProvider(settings)
