"""Auth request schemas."""

from pydantic import EmailStr, field_validator

from app.schemas.common import CamelModel, PersonName, StrongPassword, Username


class RegisterRequest(CamelModel):
    username: Username
    email: EmailStr
    password: StrongPassword
    first_name: PersonName | None = None
    last_name: PersonName | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class LoginRequest(CamelModel):
    identifier: str
    password: str

    @field_validator("identifier")
    @classmethod
    def require_identifier(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Email or username is required")
        return v

    @field_validator("password")
    @classmethod
    def require_password(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        return v


class RefreshRequest(CamelModel):
    refresh_token: str | None = None


class LogoutRequest(CamelModel):
    refresh_token: str | None = None
