"""Unit tests for user records and their embedded client profiles."""

from datetime import date

import pytest

from src.core.errors import NotFoundError
from src.domain.create_models import ClientProfileCreate, ClientProfileSearch
from src.domain.update_models import ClientProfileUpdate
from src.interface.auth import AuthenticatedUser


@pytest.fixture
def caller() -> AuthenticatedUser:
    return AuthenticatedUser(uid="user-1", email="carer@example.com", name="Casey Carer")


@pytest.fixture
def token(identity, caller) -> str:
    return identity.issue_token(caller.uid, email=caller.email, name=caller.name)


@pytest.mark.unit
class TestUserRecords:
    """Tests for creating users from the identity provider."""

    async def test_first_profile_creates_user(self, users, caller, token, clock):
        profile = await users.set_client_profile(
            caller, token, ClientProfileCreate(full_name="Margaret Hill", date_of_birth="1940-06-15")
        )

        user = await users.find_user("user-1")
        assert user.email == "carer@example.com"
        assert user.display_name == "Casey Carer"
        assert profile.full_name == "Margaret Hill"
        assert profile.age == 83
        assert profile.is_active is True
        assert profile.created_at == clock.now()

    async def test_provider_failure_falls_back_to_token_claims(self, users):
        """Test the user is still created when the account lookup is refused."""
        caller = AuthenticatedUser(uid="user-2", email="sam@example.com", name="Sam")

        user = await users.ensure_user(caller, "not-a-signed-token")

        assert user.uid == "user-2"
        assert user.display_name == "Sam"
        assert user.email_verified is False

    async def test_ensure_user_is_idempotent(self, users, caller, token, store):
        first = await users.ensure_user(caller, token)
        second = await users.ensure_user(caller, token)

        assert first.id == second.id
        assert await store.count_records(collection="users") == 1

    async def test_put_replaces_previous_profile(self, users, caller, token):
        await users.set_client_profile(caller, token, ClientProfileCreate(full_name="Ada", allergies="Penicillin"))

        profile = await users.set_client_profile(caller, token, ClientProfileCreate(full_name="Ada Lovelace"))

        assert profile.full_name == "Ada Lovelace"
        assert profile.allergies is None


@pytest.mark.unit
class TestUserClientProfile:
    """Tests for reading and changing the caller's client profile."""

    async def test_missing_profile(self, users, caller, token):
        with pytest.raises(NotFoundError, match="Client profile not found"):
            await users.get_client_profile("nobody")

        await users.ensure_user(caller, token)
        with pytest.raises(NotFoundError, match="Client profile not found"):
            await users.update_client_profile(caller.uid, ClientProfileUpdate(notes="x"))

    async def test_update_without_user(self, users):
        with pytest.raises(NotFoundError, match="User profile not found"):
            await users.update_client_profile("nobody", ClientProfileUpdate(notes="x"))

    async def test_patch_keeps_other_fields(self, users, caller, token, clock):
        await users.set_client_profile(caller, token, ClientProfileCreate(full_name="Ada", notes="Morning visits"))
        clock.advance(days=1)

        profile = await users.update_client_profile(caller.uid, ClientProfileUpdate(date_of_birth="2000-01-01"))

        assert profile.full_name == "Ada"
        assert profile.notes == "Morning visits"
        assert profile.date_of_birth == date(2000, 1, 1)
        assert profile.age == 24
        assert profile.updated_at == clock.now()
        assert profile.created_at != profile.updated_at

    async def test_deactivate_and_reactivate(self, users, caller, token):
        await users.set_client_profile(caller, token, ClientProfileCreate(full_name="Ada"))

        deactivated = await users.set_client_profile_active(caller.uid, active=False)
        assert deactivated.is_active is False
        assert await users.list_users_with_profiles() == []
        assert len(await users.list_users_with_profiles(is_active=False)) == 1

        reactivated = await users.set_client_profile_active(caller.uid, active=True)
        assert reactivated.is_active is True


@pytest.mark.unit
class TestUsersWithProfiles:
    """Tests for listing and searching users by their client profile."""

    @pytest.fixture
    async def people(self, users, identity):
        profiles = {
            "u-margaret": ClientProfileCreate(full_name="Margaret Hill", age=83, medical_conditions="Diabetes"),
            "u-tom": ClientProfileCreate(full_name="Tom Baker", mobile_number="07700 900123", age=67),
            "u-lee": ClientProfileCreate(full_name="Lee Chan", age=45, medical_conditions="   "),
        }
        for uid, payload in profiles.items():
            caller = AuthenticatedUser(uid=uid)
            await users.set_client_profile(caller, identity.issue_token(uid), payload)
        await users.ensure_user(AuthenticatedUser(uid="u-empty"), identity.issue_token("u-empty"))

    async def test_only_users_with_profiles_listed(self, users, people):
        listed = await users.list_users_with_profiles()

        assert sorted(u.uid for u in listed) == ["u-lee", "u-margaret", "u-tom"]

    async def test_list_search(self, users, people):
        by_mobile = await users.list_users_with_profiles(search="900123")

        assert [u.uid for u in by_mobile] == ["u-tom"]

    async def test_search_by_age(self, users, people):
        found = await users.search_users_with_profiles(ClientProfileSearch(age_min=60, age_max=70))

        assert [u.uid for u in found] == ["u-tom"]

    async def test_search_medical_conditions_ignores_whitespace(self, users, people):
        with_conditions = await users.search_users_with_profiles(ClientProfileSearch(has_medical_conditions=True))
        without_conditions = await users.search_users_with_profiles(ClientProfileSearch(has_medical_conditions=False))

        assert [u.uid for u in with_conditions] == ["u-margaret"]
        assert sorted(u.uid for u in without_conditions) == ["u-lee", "u-tom"]
