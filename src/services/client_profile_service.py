"""Client profile management: demographics, medical notes and vitals."""

import logging
from datetime import datetime
from typing import Any

from src.core.date_math import Clock, whole_years_between
from src.core.db_client import DocumentStore, sanitize_param
from src.core.errors import store_errors
from src.core.logging import span
from src.domain.client_profile import ClientProfile
from src.domain.create_models import ClientProfileFields, ClientProfileSearch, VitalsUpdate
from src.domain.update_models import ClientProfileUpdate


logger = logging.getLogger(__name__)

COLLECTION = "client_profiles"
ENTITY = "Client profile"

CONTACT_FIELDS = ("full_name", "email_address", "mobile_number")


def profile_fields(payload: ClientProfileFields, now: datetime) -> dict[str, Any]:
    """Supplied fields only; age follows date_of_birth unless given explicitly."""
    data = payload.model_dump(exclude_unset=True)
    date_of_birth = data.get("date_of_birth")
    if date_of_birth is not None and data.get("age") is None:
        data["age"] = whole_years_between(date_of_birth, now.date())
    if data.get("latest_vitals") is not None and data["latest_vitals"].get("recorded_date") is None:
        data["latest_vitals"]["recorded_date"] = now
    return data


def contains_any(term: str, prefix: str = "") -> str:
    """Filter clause matching ``term`` in any contact field."""
    escaped = sanitize_param(term)
    return "(" + " || ".join(f'{prefix}{field} ~ "{escaped}"' for field in CONTACT_FIELDS) + ")"


def search_clauses(criteria: ClientProfileSearch, prefix: str = "") -> list[str]:
    """Filter clauses for every store-expressible criterion; ``prefix`` addresses an embedded profile."""
    clauses = [f"{prefix}is_active = {'true' if criteria.is_active else 'false'}"]
    for field in CONTACT_FIELDS:
        value = getattr(criteria, field)
        if value:
            clauses.append(f'{prefix}{field} ~ "{sanitize_param(value)}"')
    if criteria.sex:
        clauses.append(f'{prefix}sex = "{sanitize_param(criteria.sex)}"')
    if criteria.age_min is not None:
        clauses.append(f"{prefix}age >= {criteria.age_min}")
    if criteria.age_max is not None:
        clauses.append(f"{prefix}age <= {criteria.age_max}")
    return clauses


def has_medical_conditions(profile: ClientProfile) -> bool:
    # Whitespace-only conditions count as none; the filter language cannot trim
    return bool((profile.medical_conditions or "").strip())


class ClientProfileService:
    def __init__(self, store: DocumentStore, clock: Clock) -> None:
        self.store = store
        self.clock = clock

    async def create_profile(self, payload: ClientProfileFields) -> ClientProfile:
        with span("client_profile_service.create_profile"):
            now = self.clock.now()
            data = {**profile_fields(payload, now), "is_active": True, "created_at": now, "updated_at": now}
            with store_errors(ENTITY):
                record = await self.store.create_record(collection=COLLECTION, data=data)
            logger.info("client_profile_created", extra={"client_profile_id": record["id"]})
            return ClientProfile.model_validate(record)

    async def get_profile(self, profile_id: str) -> ClientProfile:
        """Fetch one client profile.

        Raises:
            NotFoundError: If the id does not resolve
        """
        with store_errors(ENTITY):
            record = await self.store.get_record(collection=COLLECTION, record_id=profile_id)
        return ClientProfile.model_validate(record)

    async def list_profiles(
        self,
        *,
        is_active: bool | None = True,
        search: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[ClientProfile]:
        """Profiles, newest first, optionally narrowed by a name/email/mobile substring."""
        clauses = []
        if is_active is not None:
            clauses.append(f"is_active = {'true' if is_active else 'false'}")
        if search:
            clauses.append(contains_any(search))
        return await self._query(clauses, limit=limit, offset=offset)

    async def search_profiles(self, criteria: ClientProfileSearch) -> list[ClientProfile]:
        """Profiles matching every supplied criterion."""
        with span("client_profile_service.search_profiles"):
            clauses = search_clauses(criteria)
            if criteria.has_medical_conditions is None:
                return await self._query(clauses, limit=criteria.limit)

            profiles = await self._query(clauses, limit=None)
            return [
                profile for profile in profiles if has_medical_conditions(profile) == criteria.has_medical_conditions
            ][: criteria.limit]

    async def _query(self, clauses: list[str], *, limit: int | None, offset: int = 0) -> list[ClientProfile]:
        with store_errors(ENTITY):
            records = await self.store.list_records(
                collection=COLLECTION,
                filter_query=" && ".join(clauses),
                sort="-created_at",
                limit=limit,
                offset=offset,
            )
        return [ClientProfile.model_validate(record) for record in records]

    async def update_profile(self, profile_id: str, payload: ClientProfileUpdate) -> ClientProfile:
        with span("client_profile_service.update_profile"):
            now = self.clock.now()
            updates = {**profile_fields(payload, now), "updated_at": now}
            return await self._update(profile_id, updates)

    async def update_vitals(self, profile_id: str, payload: VitalsUpdate) -> ClientProfile:
        """Replace the latest vitals; the recorded date defaults to now."""
        with span("client_profile_service.update_vitals"):
            now = self.clock.now()
            vitals = payload.model_dump()
            vitals["recorded_date"] = vitals["recorded_date"] or now
            return await self._update(profile_id, {"latest_vitals": vitals, "updated_at": now})

    async def set_active(self, profile_id: str, *, active: bool) -> ClientProfile:
        """Soft delete (``active=False``) or reactivate a profile."""
        with span("client_profile_service.set_active"):
            return await self._update(profile_id, {"is_active": active, "updated_at": self.clock.now()})

    async def _update(self, profile_id: str, updates: dict[str, Any]) -> ClientProfile:
        with store_errors(ENTITY):
            record = await self.store.update_record(collection=COLLECTION, record_id=profile_id, data=updates)
        logger.info("client_profile_updated", extra={"client_profile_id": profile_id, "fields": sorted(updates)})
        return ClientProfile.model_validate(record)
