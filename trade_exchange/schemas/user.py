"""
Pydantic schemas for authentication and user request/response validation.
"""
from pydantic import EmailStr, Field, field_validator
from typing import Optional

from trade_exchange.models.user import UserRole
from trade_exchange.schemas.base import CamelModel


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class SignupRequest(CamelModel):
    name: str = Field("", max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    role: UserRole = UserRole.USER

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v):
        return v.upper() if isinstance(v, str) else v


class SigninRequest(CamelModel):
    # Plain string: seeded accounts may use reserved domains such as .local
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RoleUpdate(CamelModel):
    role: UserRole

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v):
        return v.upper() if isinstance(v, str) else v


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class UserResponse(CamelModel):
    id: str
    name: str
    email: str
    role: UserRole
    provider_id: Optional[str] = None
    created_at: Optional[str] = None


class AuthResponse(CamelModel):
    """Returned by signup, signin and become-provider."""

    token: str
    user: UserResponse
