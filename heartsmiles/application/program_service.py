from collections.abc import Sequence
from typing import Any, Final

from sqlalchemy import func
from sqlmodel import Session, col, select

from ..domain.constants import MAX_DESCRIPTION_LENGTH
from ..domain.exceptions import ConflictError, NotFoundError, ValidationError
from ..domain.validation import validate_date_range, validate_name
from ..infrastructure.database.models import Participant, Program
from ..logging_config import get_logger
from ..logging_utils import log_database_operation

logger: Final = get_logger(__name__)

UPDATABLE_FIELDS: Final = ("name", "description", "start_date", "end_date")


def _validate_description(description: str | None) -> str | None:
    if description is None:
        return None
    description = description.strip()
    if len(description) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(
            f"description cannot be longer than {MAX_DESCRIPTION_LENGTH} characters"
        )
    return description or None


def _ensure_unique_name(
    session: Session, name: str, exclude_id: int | None = None
) -> None:
    existing = get_program_by_name(session, name)
    if existing is not None and existing.id != exclude_id:
        logger.warning("Program name already taken", program_name=name)
        raise ConflictError(f"Program with name '{name}' already exists")


def get_programs(session: Session) -> Sequence[Program]:
    return session.exec(select(Program).order_by(col(Program.name))).all()


def get_program(session: Session, program_id: int) -> Program:
    program = session.get(Program, program_id)
    if program is None:
        raise NotFoundError("Program", program_id)
    return program


def get_program_by_name(session: Session, name: str) -> Program | None:
    statement: Final = select(Program).where(Program.name == name)
    return session.exec(statement).first()


def participant_counts(session: Session) -> dict[int, int]:
    """Number of participants per program id."""
    statement: Final = (
        select(Participant.program_id, func.count(col(Participant.id)))
        .where(col(Participant.program_id).is_not(None))
        .group_by(col(Participant.program_id))
    )
    return {program_id: count for program_id, count in session.exec(statement)}


def count_participants(session: Session, program_id: int) -> int:
    statement: Final = select(func.count(col(Participant.id))).where(
        Participant.program_id == program_id
    )
    return session.exec(statement).one()


def create_program(session: Session, **fields: Any) -> Program:
    """Create a program.

    Raises:
        ValidationError: If a field is invalid or the dates are reversed
        ConflictError: If a program with the same name exists
    """
    name: Final = validate_name(fields.get("name", ""))
    description: Final = _validate_description(fields.get("description"))
    validate_date_range(fields.get("start_date"), fields.get("end_date"))
    _ensure_unique_name(session, name)

    program = Program(
        name=name,
        description=description,
        start_date=fields.get("start_date"),
        end_date=fields.get("end_date"),
    )
    session.add(program)
    session.commit()
    session.refresh(program)

    log_database_operation(
        operation="create", table="Program", program_id=program.id, program_name=name
    )
    logger.info("Program created successfully", program_id=program.id)
    return program


def update_program(session: Session, program_id: int, **changes: Any) -> Program:
    """Apply a partial update to a program.

    Raises:
        NotFoundError: If the program does not exist
        ValidationError: If a field is invalid or the dates are reversed
        ConflictError: If the new name belongs to another program
    """
    program: Final = get_program(session, program_id)
    changes = {key: value for key, value in changes.items() if key in UPDATABLE_FIELDS}

    if "name" in changes:
        changes["name"] = validate_name(changes["name"])
        _ensure_unique_name(session, changes["name"], exclude_id=program_id)
    if "description" in changes:
        changes["description"] = _validate_description(changes["description"])
    validate_date_range(
        changes.get("start_date", program.start_date),
        changes.get("end_date", program.end_date),
    )

    for key, value in changes.items():
        setattr(program, key, value)
    session.add(program)
    session.commit()
    session.refresh(program)

    log_database_operation(
        operation="update",
        table="Program",
        program_id=program_id,
        fields=sorted(changes),
    )
    return program


def delete_program(session: Session, program_id: int) -> int:
    """Delete a program and detach its participants.

    Returns:
        Number of participants that were detached
    """
    program: Final = get_program(session, program_id)

    participants: Final = session.exec(
        select(Participant).where(Participant.program_id == program_id)
    ).all()
    for participant in participants:
        participant.program_id = None
        session.add(participant)

    session.delete(program)
    session.commit()

    log_database_operation(
        operation="delete",
        table="Program",
        program_id=program_id,
        detached_participants=len(participants),
    )
    return len(participants)
