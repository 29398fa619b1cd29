"""Pydantic models for API response envelopes.

Entity payloads are the domain models themselves; these wrap them with the
messages and pagination details clients rely on.
"""

from pydantic import BaseModel


class Pagination(BaseModel):
    """Paging window applied to a listing."""

    limit: int
    offset: int


class ActionResponse(BaseModel):
    """Result of a state change on one entity."""

    message: str
    id: str


class GeneratedExecutionResponse(BaseModel):
    """Result of a manual generation request; a null id means the series is exhausted."""

    message: str
    execution_id: str | None


class CoverageResponse(BaseModel):
    """Result of marking executions as covered."""

    message: str
    covered_count: int
    covered_executions: list[str]
    covering_execution_id: str


class UserActionResponse(BaseModel):
    """Result of a state change on the caller's own record."""

    message: str
    user_id: str
