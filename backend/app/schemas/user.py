"""User Schemas — profile validation for the generic user endpoints.

Invariants:
    - email matches a basic address pattern and is stored lowercased
    - No credential fields: password and token changes go through a dedicated flow,
      and extra="forbid" turns any attempt into a validation error
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.domain_types import UserRole

_SCHEMA_CONFIG = ConfigDict(
    extra="forbid", str_strip_whitespace=True, use_enum_values=True,
)
_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def _lower(v: str | None) -> str | None:
    return v.lower() if v is not None else v


class UserCreate(BaseModel):
    model_config = _SCHEMA_CONFIG

    name: str = Field(min_length=1, max_length=100)
    email: str = Field(max_length=255, pattern=_EMAIL_PATTERN)
    photo: str = Field("default.jpg", max_length=255)
    role: UserRole = UserRole.USER
    active: bool = True

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str | None) -> str | None:
        return _lower(v)


class UserUpdate(BaseModel):
    model_config = _SCHEMA_CONFIG

    name: str = Field(None, min_length=1, max_length=100)
    email: str = Field(None, max_length=255, pattern=_EMAIL_PATTERN)
    photo: str = Field(None, max_length=255)
    role: UserRole = None
    active: bool = None

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str | None) -> str | None:
        return _lower(v)
