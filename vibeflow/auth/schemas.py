"""Auth Pydantic schemas for request / response validation."""


from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from vibeflow.common.constants import UserRole
from vibeflow.profiles.schemas import ProfileOut

BCRYPT_MAX_PASSWORD_BYTES = 72


# ── Requests ────────────────────────────────────────────────────────

class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    role: UserRole = UserRole.employee
    department: Optional[str] = Field(None, max_length=100)
    position: Optional[str] = Field(None, max_length=100)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        if len(v.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
            raise ValueError(
                f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes when UTF-8 encoded."
            )
        return v


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


# ── Responses ───────────────────────────────────────────────────────

class AuthResponse(BaseModel):
    user: ProfileOut
    token: str
    token_type: str = "bearer"
    expires_in: int


class MeResponse(ProfileOut):
    permissions: list[str]
    routes: list[str]
