# tutor/schemas/auth.py
"""
Pydantic schemas for authentication and profile endpoints.
"""
import re
from pydantic import BaseModel, Field, field_validator

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _normalize_email(value: str) -> str:
    value = (value or "").strip().lower()
    if not _EMAIL_RE.match(value):
        raise ValueError("Please provide a valid email")
    return value


class RegisterIn(BaseModel):
    """Sign-up payload. Email is stored lower-cased."""
    name: str = Field(min_length=1)
    email: str
    password: str = Field(min_length=6)  # Plain text, hashed server-side
    language: str | None = None
    aiTutorName: str | None = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _normalize_email(v)


class LoginIn(BaseModel):
    email: str
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _normalize_email(v)


class ProfileUpdateIn(BaseModel):
    """Only the fields present are changed."""
    name: str | None = Field(default=None, min_length=1)
    language: str | None = Field(default=None, min_length=1)
    aiTutorName: str | None = Field(default=None, min_length=1)
