"""Pure domain validation without infrastructure dependencies."""

import re
from datetime import date
from typing import Final

from .constants import (
    MAX_EMAIL_LENGTH,
    MAX_NAME_LENGTH,
    MIN_PASSWORD_LENGTH,
    STAFF_ROLES,
)
from .exceptions import ValidationError

_EMAIL_PATTERN: Final = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_name(name: str, field: str = "name") -> str:
    """Validate a human-readable name and return it stripped.

    Args:
        name: The name to validate
        field: Field label used in error messages

    Raises:
        ValidationError: If name is empty, too long, or contains control characters
    """
    if not name or not name.strip():
        raise ValidationError(f"{field} cannot be empty")

    name = name.strip()
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(
            f"{field} cannot be longer than {MAX_NAME_LENGTH} characters"
        )

    # Allow space (ord 32), reject control chars and DEL (ord 127)
    if any(ord(char) < 32 or ord(char) == 127 for char in name):
        raise ValidationError(f"{field} cannot contain control characters")

    return name


def validate_email(email: str) -> str:
    """Validate an email address and return it normalized to lowercase."""
    email = (email or "").strip().lower()
    if len(email) > MAX_EMAIL_LENGTH or not _EMAIL_PATTERN.match(email):
        raise ValidationError("email must be a valid email address")
    return email


def validate_password(password: str) -> None:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


def validate_role(role: str) -> str:
    if role not in STAFF_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(STAFF_ROLES)}")
    return role


def validate_date_range(start: date | None, end: date | None) -> None:
    """Reject programs that end before they start."""
    if start and end and end < start:
        raise ValidationError("end_date cannot be before start_date")
