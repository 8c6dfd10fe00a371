"""Authentication schemas"""
from datetime import datetime
from typing import NamedTuple, Optional

from pydantic import BaseModel, Field


class Identity(NamedTuple):
    """Authenticated caller, bound to a token at login."""
    username: str
    user_id: Optional[int] = None    # database credential mode only


class TokenInfo(NamedTuple):
    """Registry entry for an issued token. Never mutated after creation."""
    identity: Identity
    created_at: datetime
    expires_at: datetime


class LoginRequest(BaseModel):
    """Schema for a login attempt"""

    username: str = Field("", max_length=255)
    password: str = Field("", max_length=255)


class LoginResponse(BaseModel):
    """Schema for login/logout results"""

    success: bool
    message: Optional[str] = None
    token: Optional[str] = None
    expires_at: Optional[datetime] = None
