"""User records and the client profile each user manages for themselves."""

import logging
from typing import Any

from src.core.date_math import Clock
from src.core.db_client import DocumentStore, sanitize_param
from src.core.errors import AuthError, NotFoundError, store_errors
from src.core.logging import span
from src.domain.create_models import ClientProfileFields, ClientProfileSearch
from src.domain.update_models import ClientProfileUpdate
from src.domain.user import User, UserClientProfile
from src.interface.auth import AuthenticatedUser, IdentityProvider
from src.services.client_profile_service import contains_any, has_medical_conditions, profile_fields, search_clauses


logger = logging.getLogger(__name__)

COLLECTION = "users"
ENTITY = "User"
PROFILE = "client_profile."


class UserService:
    """Upserts callers as users and manages the client profile embedded in each."""

    def __init__(self, store: DocumentStore, identity: IdentityProvider, clock: Clock) -> None:
        self.store = store
        self.identity = identity
        self.clock = clock

    async def find_user(self, uid: str) -> User | None:
        filter_query = f'uid = "{sanitize_param(uid)}"'
        with store_errors(ENTITY):
            record = await self.store.get_first_record(collection=COLLECTION, filter_query=filter_query)
        return User.model_validate(record) if record else None

    async def ensure_user(self, caller: AuthenticatedUser, token: str) -> User:
        """Return the caller's user record, creating it from the identity provider on first use.

        When the provider lookup fails the token claims are used instead.
        """
        with span("user_service.ensure_user"):
            existing = await self.find_user(caller.uid)
            if existing is not None:
                return existing

            email, display_name, email_verified = caller.email, caller.name, False
            created_at = self.clock.now()
            try:
                account = await self.identity.get_user(token)
            except AuthError as e:
                logger.warning("user_lookup_fallback", extra={"user_id": caller.uid, "error": e.message})
            else:
                email = account.email or email
                display_name = account.display_name or display_name
                email_verified = account.email_verified
                created_at = account.creation_time or created_at

            with store_errors(ENTITY):
                record = await self.store.create_record(
                    collection=COLLECTION,
                    data={
                        "uid": caller.uid,
                        "email": email,
                        "display_name": display_name,
                        "email_verified": email_verified,
                        "client_profile": None,
                        "created_at": created_at,
                        "updated_at": self.clock.now(),
                    },
                )
            logger.info("user_created", extra={"user_id": caller.uid})
            return User.model_validate(record)

    async def set_client_profile(
        self, caller: AuthenticatedUser, token: str, payload: ClientProfileFields
    ) -> UserClientProfile:
        """Replace the caller's client profile with the supplied fields, creating the user if needed."""
        with span("user_service.set_client_profile"):
            user = await self.ensure_user(caller, token)
            now = self.clock.now()
            profile = {**profile_fields(payload, now), "is_active": True, "created_at": now, "updated_at": now}
            return await self._write_profile(user, profile)

    async def get_client_profile(self, uid: str) -> UserClientProfile:
        """The caller's client profile.

        Raises:
            NotFoundError: If the user has not set up a client profile
        """
        user = await self.find_user(uid)
        if user is None or user.client_profile is None:
            raise NotFoundError("Client profile not found")
        return user.client_profile

    async def update_client_profile(self, uid: str, payload: ClientProfileUpdate) -> UserClientProfile:
        """Apply the supplied fields to the caller's existing client profile.

        Raises:
            NotFoundError: If the user or their client profile does not exist
        """
        with span("user_service.update_client_profile"):
            user = await self._require_profile_owner(uid)
            now = self.clock.now()
            current = user.client_profile.model_dump(exclude={"id"})
            return await self._write_profile(user, {**current, **profile_fields(payload, now), "updated_at": now})

    async def set_client_profile_active(self, uid: str, *, active: bool) -> UserClientProfile:
        """Soft delete (``active=False``) or reactivate the caller's client profile."""
        with span("user_service.set_client_profile_active"):
            user = await self._require_profile_owner(uid)
            current = user.client_profile.model_dump(exclude={"id"})
            return await self._write_profile(user, {**current, "is_active": active, "updated_at": self.clock.now()})

    async def list_users_with_profiles(
        self,
        *,
        is_active: bool | None = True,
        search: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[User]:
        """Users that have a client profile, newest profile first."""
        clauses = ["client_profile != null"]
        if is_active is not None:
            clauses.append(f"{PROFILE}is_active = {'true' if is_active else 'false'}")
        if search:
            clauses.append(contains_any(search, prefix=PROFILE))
        return await self._query(clauses, limit=limit, offset=offset)

    async def search_users_with_profiles(self, criteria: ClientProfileSearch) -> list[User]:
        """Users whose client profile matches every supplied criterion."""
        with span("user_service.search_users_with_profiles"):
            clauses = ["client_profile != null", *search_clauses(criteria, prefix=PROFILE)]
            if criteria.has_medical_conditions is None:
                return await self._query(clauses, limit=criteria.limit)

            users = await self._query(clauses, limit=None)
            return [
                user
                for user in users
                if user.client_profile is not None
                and has_medical_conditions(user.client_profile) == criteria.has_medical_conditions
            ][: criteria.limit]

    async def _require_profile_owner(self, uid: str) -> User:
        user = await self.find_user(uid)
        if user is None:
            raise NotFoundError("User profile not found")
        if user.client_profile is None:
            raise NotFoundError("Client profile not found")
        return user

    async def _write_profile(self, user: User, profile: dict[str, Any]) -> UserClientProfile:
        with store_errors(ENTITY):
            record = await self.store.update_record(
                collection=COLLECTION,
                record_id=user.id,
                data={"client_profile": profile, "updated_at": self.clock.now()},
            )
        logger.info("user_client_profile_saved", extra={"user_id": user.uid, "fields": sorted(profile)})
        return User.model_validate(record).client_profile

    async def _query(self, clauses: list[str], *, limit: int | None, offset: int = 0) -> list[User]:
        with store_errors(ENTITY):
            records = await self.store.list_records(
                collection=COLLECTION,
                filter_query=" && ".join(clauses),
                sort=f"-{PROFILE}created_at",
                limit=limit,
                offset=offset,
            )
        return [User.model_validate(record) for record in records]
