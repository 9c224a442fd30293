"""Account schemas: seller sign-up, login and the public account view."""

from datetime import datetime
from uuid import UUID

from pydantic import EmailStr, Field, field_validator, model_validator

from partsmarket.schemas.common import CamelModel

# Shop handle shown next to listings
USERNAME_PATTERN = r"^[A-Za-z0-9][A-Za-z0-9_.-]*$"

# bcrypt only looks at the first 72 bytes
PASSWORD_MAX_BYTES = 72


class RegisterRequest(CamelModel):
    """Seller sign-up."""

    email: EmailStr
    username: str = Field(min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    password: str = Field(min_length=8)

    @field_validator("password")
    @classmethod
    def password_rules(cls, v: str) -> str:
        if len(v.encode("utf-8")) > PASSWORD_MAX_BYTES:
            raise ValueError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes")
        if not any(c.isalpha() for c in v) or not any(c.isdigit() for c in v):
            raise ValueError("Password must contain both letters and digits")
        return v

    @model_validator(mode="after")
    def password_not_username(self) -> "RegisterRequest":
        if self.username.lower() in self.password.lower():
            raise ValueError("Password must not contain the username")
        return self


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


class TokenResponse(CamelModel):
    """Bearer token and its lifetime in seconds."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int


class UserResponse(CamelModel):
    """Account as shown to its owner. ``role`` is ``seller`` or ``admin``."""

    id: UUID
    email: str
    username: str
    role: str
    is_active: bool
    created_at: datetime


class AuthResponse(CamelModel):
    user: UserResponse
    token: TokenResponse
