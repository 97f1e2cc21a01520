# app/schemas/auth.py

from pydantic import BaseModel, ConfigDict, EmailStr, Field, constr, field_validator


# ──────────────── Register ────────────────
class RegisterPayload(BaseModel):
    username: constr(strip_whitespace=True, min_length=3, max_length=50)
    email: EmailStr
    password: constr(min_length=6, max_length=128)

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return v.strip().lower()


# ──────────────── Login ────────────────
class LoginPayload(BaseModel):
    email: EmailStr
    password: constr(min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return v.strip().lower()


# ──────────────── Responses ────────────────
class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str


class AuthResponse(BaseModel):
    success: bool = True
    token: str
    user: UserOut


class MeResponse(BaseModel):
    user: UserOut


# ─────────────────────────────────────────
# 🪪 Verified token claims
# ─────────────────────────────────────────
class TokenIdentity(BaseModel):
    """Caller identity rebuilt from a verified access token (no DB lookup)."""

    id: int = Field(..., description="Account id (`sub` claim).")
    username: str
    email: str
