"""Request payload schemas.

Every controller validates its JSON body (or query string) through
:func:`parse`, which turns pydantic's errors into a field-level
:class:`~libraryhub.errors.ValidationError`.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from libraryhub.errors import ValidationError
from libraryhub.models.borrowing import STATUSES
from libraryhub.utils.timeutil import to_naive_utc

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class _Payload(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class RegisterIn(_Payload):
    email: str = Field(max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=8, max_length=128)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)


class AdminRegisterIn(RegisterIn):
    admin_secret: str


class LoginIn(_Payload):
    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1)


class CategoryIn(_Payload):
    name: str = Field(min_length=1, max_length=100)


class BookCreateIn(_Payload):
    title: str = Field(min_length=1, max_length=200)
    author: str = Field(min_length=1, max_length=200)
    isbn: str = Field(min_length=1, max_length=32)
    description: Optional[str] = None
    category_id: Optional[int] = Field(default=None, gt=0)
    published_date: Optional[str] = Field(default=None, max_length=32)
    cover_image: Optional[str] = Field(default=None, max_length=500)
    format: Optional[str] = Field(default=None, max_length=50)
    total_copies: int = Field(default=1, ge=0)


class BookUpdateIn(_Payload):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    author: Optional[str] = Field(default=None, min_length=1, max_length=200)
    isbn: Optional[str] = Field(default=None, min_length=1, max_length=32)
    description: Optional[str] = None
    category_id: Optional[int] = Field(default=None, gt=0)
    published_date: Optional[str] = Field(default=None, max_length=32)
    cover_image: Optional[str] = Field(default=None, max_length=500)
    format: Optional[str] = Field(default=None, max_length=50)
    total_copies: Optional[int] = Field(default=None, ge=0)


class BookFilterIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    category_id: Optional[int] = None
    available: bool = False
    search: Optional[str] = None
    format: Optional[str] = None

    @field_validator("category_id", "search", "format", mode="before")
    @classmethod
    def _blank_is_absent(cls, v):
        # an empty form field means "no filter"
        if isinstance(v, str) and not v.strip():
            return None
        return v


class BorrowIn(_Payload):
    book_id: int = Field(gt=0)
    due_date: Optional[datetime] = None

    @field_validator("due_date")
    @classmethod
    def _utc(cls, v):
        return to_naive_utc(v) if v is not None else v


class BorrowingFilterIn(BaseModel):
    status: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def _known_status(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        if v not in STATUSES:
            raise ValueError(f"status must be one of: {', '.join(STATUSES)}")
        return v


def parse(schema, data):
    try:
        return schema.model_validate(data if data is not None else {})
    except PydanticValidationError as e:
        details = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        raise ValidationError("Invalid request payload", details=details) from e
