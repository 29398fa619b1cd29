"""Authentication endpoints."""

from typing import Any

from fastapi import APIRouter

from src.interface.auth import UserRecord
from src.interface.dependencies import CurrentUser, ServicesDep, TokenDep


router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/verify")
async def verify_token(user: CurrentUser) -> dict[str, Any]:
    """Confirm the bearer token and echo the caller's identity."""
    return {"message": "Token is valid", "user": user}


@router.get("/user")
async def get_user(services: ServicesDep, token: TokenDep) -> UserRecord:
    """Account details for the bearer of the token."""
    return await services.identity.get_user(token)
