"""User domain model: an authenticated carer and the client profile they manage."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.domain.client_profile import ClientProfile


class UserClientProfile(ClientProfile):
    """Client profile embedded in a user document; it has no id of its own."""

    id: str | None = None


class User(BaseModel):
    """Caller record kept in sync with the identity provider."""

    id: str = Field(..., description="Store-assigned record ID")
    uid: str = Field(..., description="Identity provider user ID")
    email: str | None = None
    display_name: str | None = None
    email_verified: bool = False
    client_profile: UserClientProfile | None = Field(default=None, description="Profile of the person cared for")
    created_at: datetime | None = None
    updated_at: datetime | None = None
