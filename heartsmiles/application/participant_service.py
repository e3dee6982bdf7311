from collections.abc import Sequence
from datetime import date
from typing import Any, Final

from sqlalchemy import func, or_
from sqlmodel import Session, col, select

from ..domain.constants import MAX_NOTES_LENGTH, MAX_PHONE_LENGTH
from ..domain.exceptions import NotFoundError, ValidationError
from ..domain.validation import validate_email, validate_name
from ..infrastructure.database.models import Participant, Program, utcnow
from ..logging_config import get_logger
from ..logging_utils import log_database_operation

logger: Final = get_logger(__name__)

UPDATABLE_FIELDS: Final = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "date_of_birth",
    "program_id",
    "notes",
)


def _ensure_program_exists(session: Session, program_id: int | None) -> None:
    if program_id is not None and session.get(Program, program_id) is None:
        logger.warning("Unknown program referenced", program_id=program_id)
        raise ValidationError(f"Program {program_id} does not exist")


def _clean_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Validate and normalize participant fields present in ``fields``.

    Raises:
        ValidationError: If a field is invalid
    """
    cleaned = dict(fields)
    for name_field in ("first_name", "last_name"):
        if name_field in cleaned:
            cleaned[name_field] = validate_name(cleaned[name_field], name_field)

    if cleaned.get("email"):
        cleaned["email"] = validate_email(cleaned["email"])
    elif "email" in cleaned:
        cleaned["email"] = None

    phone = cleaned.get("phone")
    if phone is not None:
        phone = phone.strip() or None
        if phone and len(phone) > MAX_PHONE_LENGTH:
            raise ValidationError(
                f"phone cannot be longer than {MAX_PHONE_LENGTH} characters"
            )
        cleaned["phone"] = phone

    notes = cleaned.get("notes")
    if notes is not None and len(notes) > MAX_NOTES_LENGTH:
        raise ValidationError(
            f"notes cannot be longer than {MAX_NOTES_LENGTH} characters"
        )

    birth = cleaned.get("date_of_birth")
    if birth is not None and birth > date.today():
        raise ValidationError("date_of_birth cannot be in the future")

    return cleaned


def get_participants(
    session: Session, program_id: int | None = None, search: str | None = None
) -> Sequence[Participant]:
    """List participants, optionally filtered by program or a name/email search."""
    statement = select(Participant)
    if program_id is not None:
        statement = statement.where(Participant.program_id == program_id)
    if search and search.strip():
        pattern = f"%{search.strip().lower()}%"
        statement = statement.where(
            or_(
                func.lower(Participant.first_name).like(pattern),
                func.lower(Participant.last_name).like(pattern),
                func.lower(func.coalesce(Participant.email, "")).like(pattern),
            )
        )
    statement = statement.order_by(
        col(Participant.last_name), col(Participant.first_name), col(Participant.id)
    )
    return session.exec(statement).all()


def get_participant(session: Session, participant_id: int) -> Participant:
    participant = session.get(Participant, participant_id)
    if participant is None:
        raise NotFoundError("Participant", participant_id)
    return participant


def create_participant(session: Session, **fields: Any) -> Participant:
    """Create a participant.

    Raises:
        ValidationError: If a field is invalid or program_id is unknown
    """
    cleaned: Final = _clean_fields(fields)
    _ensure_program_exists(session, cleaned.get("program_id"))

    participant = Participant(**cleaned)
    session.add(participant)
    session.commit()
    session.refresh(participant)

    log_database_operation(
        operation="create",
        table="Participant",
        participant_id=participant.id,
        program_id=participant.program_id,
    )
    return participant


def update_participant(
    session: Session, participant_id: int, **changes: Any
) -> Participant:
    """Apply a partial update to a participant.

    Raises:
        NotFoundError: If the participant does not exist
        ValidationError: If a field is invalid or program_id is unknown
    """
    participant: Final = get_participant(session, participant_id)
    cleaned: Final = _clean_fields(
        {key: value for key, value in changes.items() if key in UPDATABLE_FIELDS}
    )
    if "program_id" in cleaned:
        _ensure_program_exists(session, cleaned["program_id"])

    for key, value in cleaned.items():
        setattr(participant, key, value)
    participant.updated_at = utcnow()

    session.add(participant)
    session.commit()
    session.refresh(participant)

    log_database_operation(
        operation="update",
        table="Participant",
        participant_id=participant.id,
        fields=sorted(cleaned),
    )
    return participant


def delete_participant(session: Session, participant_id: int) -> None:
    participant: Final = get_participant(session, participant_id)
    session.delete(participant)
    session.commit()
    log_database_operation(
        operation="delete", table="Participant", participant_id=participant_id
    )
