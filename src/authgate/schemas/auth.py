"""Pydantic schemas for auth inputs.

Learn: GraphQL already checks that required arguments are present and
are strings. Pydantic checks what GraphQL can't (email shape, password
length). Errors are folded into one ValidationError whose `fields`
map uses the GraphQL (camelCase) field names, so the client can put
each message next to the right form input.
"""

from typing import Any, Optional, Type, TypeVar

import pydantic
from pydantic import BaseModel, EmailStr, Field, field_validator
from pydantic_core import PydanticCustomError

from authgate.errors import ValidationError

MIN_PASSWORD_LENGTH = 8
FULLNAME_MAX_LENGTH = 100

_M = TypeVar("_M", bound=BaseModel)


def _required(value: str, message: str) -> str:
    value = value.strip()
    if not value:
        raise PydanticCustomError("required", message)
    return value


class RegisterInput(BaseModel):
    fullname: str = Field(..., max_length=FULLNAME_MAX_LENGTH)
    email: EmailStr
    password: str
    confirm_password: str = Field(..., alias="confirmPassword")

    model_config = {"populate_by_name": True}

    @field_validator("fullname")
    @classmethod
    def fullname_required(cls, v: str) -> str:
        return _required(v, "Full name is required")

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        if len(v) < MIN_PASSWORD_LENGTH:
            raise PydanticCustomError(
                "password_too_short",
                "Password should be at least 8 characters long",
            )
        return v

    @field_validator("confirm_password")
    @classmethod
    def confirm_required(cls, v: str) -> str:
        if not v:
            raise PydanticCustomError("required", "Confirm password is required")
        return v


class LoginInput(BaseModel):
    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def password_required(cls, v: str) -> str:
        if not v:
            raise PydanticCustomError("required", "Password is required")
        return v


class UpdateProfileInput(BaseModel):
    """Blank fullname means "not supplied"; the service decides if anything is."""

    fullname: Optional[str] = Field(default=None, max_length=FULLNAME_MAX_LENGTH)

    @field_validator("fullname")
    @classmethod
    def blank_is_absent(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


# Pydantic's stock messages for these fields are too technical for a form.
_FIELD_MESSAGES = {
    "email": "Email should be a valid email",
}


def parse_input(model: Type[_M], data: Any) -> _M:
    """Validate `data` into `model`, raising authgate's ValidationError."""
    try:
        return model.model_validate(data or {})
    except pydantic.ValidationError as e:
        fields: dict[str, str] = {}
        for err in e.errors():
            name = _graphql_name(model, err["loc"][0] if err["loc"] else "input")
            if name in fields:
                continue
            fields[name] = _FIELD_MESSAGES.get(name, err["msg"])
        raise ValidationError(fields)


def _graphql_name(model: Type[BaseModel], loc: Any) -> str:
    loc = str(loc)
    field = model.model_fields.get(loc)
    if field is not None and field.alias:
        return field.alias
    return loc
