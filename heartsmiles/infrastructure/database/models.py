from datetime import UTC, date, datetime

from sqlmodel import Field, SQLModel

from ...domain.constants import (
    DEFAULT_STAFF_ROLE,
    MAX_DESCRIPTION_LENGTH,
    MAX_EMAIL_LENGTH,
    MAX_NAME_LENGTH,
    MAX_NOTES_LENGTH,
    MAX_PHONE_LENGTH,
)


def utcnow() -> datetime:
    return datetime.now(UTC)


class StaffMember(SQLModel, table=True):  # type: ignore[call-arg]
    """A staff account that can sign in and manage program data."""

    id: int | None = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True, max_length=MAX_EMAIL_LENGTH)
    name: str = Field(max_length=MAX_NAME_LENGTH)
    role: str = Field(default=DEFAULT_STAFF_ROLE)
    password_hash: str
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utcnow)


class Program(SQLModel, table=True):  # type: ignore[call-arg]
    """A youth program participants can be enrolled in."""

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(index=True, unique=True, max_length=MAX_NAME_LENGTH)
    description: str | None = Field(default=None, max_length=MAX_DESCRIPTION_LENGTH)
    start_date: date | None = None
    end_date: date | None = None
    created_at: datetime = Field(default_factory=utcnow)


class Participant(SQLModel, table=True):  # type: ignore[call-arg]
    """A young person taking part in a program."""

    id: int | None = Field(default=None, primary_key=True)
    first_name: str = Field(index=True, max_length=MAX_NAME_LENGTH)
    last_name: str = Field(index=True, max_length=MAX_NAME_LENGTH)
    email: str | None = Field(default=None, max_length=MAX_EMAIL_LENGTH)
    phone: str | None = Field(default=None, max_length=MAX_PHONE_LENGTH)
    date_of_birth: date | None = None
    program_id: int | None = Field(default=None, foreign_key="program.id", index=True)
    notes: str | None = Field(default=None, max_length=MAX_NOTES_LENGTH)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class UploadedFile(SQLModel, table=True):  # type: ignore[call-arg]
    """Metadata of a file stored in the upload directory."""

    id: int | None = Field(default=None, primary_key=True)
    original_name: str
    stored_name: str = Field(unique=True)
    content_type: str | None = None
    size_bytes: int
    uploaded_by: int | None = Field(default=None, foreign_key="staffmember.id")
    created_at: datetime = Field(default_factory=utcnow)
