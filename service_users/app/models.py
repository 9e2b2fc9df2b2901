"""
User data models for Users Service.
"""

from pydantic import BaseModel, ConfigDict, Field


# Range of the BIGINT primary key
USER_ID_MIN = -2 ** 63
USER_ID_MAX = 2 ** 63 - 1


class UserRecord(BaseModel):
    """A user row as stored in PostgreSQL and snapshotted in Redis.

    Both stores serialize through this model so the cached form and the
    durable form always share the same field set and value types.
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="User ID")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Email address")


class UserUpdateRequest(BaseModel):
    """Request model for user update."""
    name: str = Field(..., description="New display name")
    email: str = Field(..., description="New email address")
