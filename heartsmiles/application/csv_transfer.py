"""CSV export and import of participant and program data."""

import csv
import io
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Final

from sqlmodel import Session

from ..domain.constants import PARTICIPANT_CSV_COLUMNS, PROGRAM_CSV_COLUMNS
from ..domain.exceptions import DomainError, ValidationError
from ..logging_config import get_logger
from ..logging_utils import log_database_operation
from ..metrics import record_participants_imported
from .participant_service import create_participant, get_participants
from .program_service import get_programs, participant_counts

logger: Final = get_logger(__name__)

REQUIRED_IMPORT_COLUMNS: Final = ("first_name", "last_name")


@dataclass
class ImportResult:
    imported: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {"imported": self.imported, "errors": self.errors}


def _write_csv(columns: tuple[str, ...], rows: list[dict[str, Any]]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=columns, extrasaction="ignore")
    writer.writeheader()
    for row in rows:
        writer.writerow(
            {key: "" if value is None else value for key, value in row.items()}
        )
    return buffer.getvalue()


def export_participants_csv(session: Session) -> str:
    participants: Final = get_participants(session)
    rows = [participant.model_dump() for participant in participants]
    logger.info("Exporting participants", count=len(rows))
    return _write_csv(PARTICIPANT_CSV_COLUMNS, rows)


def export_programs_csv(session: Session) -> str:
    counts: Final = participant_counts(session)
    rows = [
        {**program.model_dump(), "participant_count": counts.get(program.id, 0)}
        for program in get_programs(session)
    ]
    logger.info("Exporting programs", count=len(rows))
    return _write_csv(PROGRAM_CSV_COLUMNS, rows)


def _parse_row(row: dict[str, str | None]) -> dict[str, Any]:
    """Convert one CSV row into participant fields.

    Raises:
        ValidationError: If a date or program id cannot be parsed
    """
    values: dict[str, Any] = {
        column: (row.get(column) or "").strip() or None
        for column in PARTICIPANT_CSV_COLUMNS
    }
    if values["date_of_birth"]:
        try:
            values["date_of_birth"] = date.fromisoformat(values["date_of_birth"])
        except ValueError as e:
            raise ValidationError("date_of_birth must be formatted YYYY-MM-DD") from e
    if values["program_id"]:
        try:
            values["program_id"] = int(values["program_id"])
        except ValueError as e:
            raise ValidationError("program_id must be an integer") from e
    values["first_name"] = values["first_name"] or ""
    values["last_name"] = values["last_name"] or ""
    return values


def import_participants_csv(session: Session, content: bytes) -> ImportResult:
    """Create participants from CSV content.

    Valid rows are created; each invalid row is reported with its line
    number (the header is row 1) and the reason it was rejected.

    Raises:
        ValidationError: If the content is not UTF-8 CSV with the required
            columns
    """
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ValidationError("CSV file must be UTF-8 encoded") from e

    reader: Final = csv.DictReader(io.StringIO(text))
    header = [name.strip() for name in reader.fieldnames or []]
    missing = [column for column in REQUIRED_IMPORT_COLUMNS if column not in header]
    if missing:
        raise ValidationError(f"CSV is missing required columns: {', '.join(missing)}")
    reader.fieldnames = header

    result = ImportResult()
    for row_number, row in enumerate(reader, start=2):
        try:
            create_participant(session, **_parse_row(row))
        except DomainError as e:
            session.rollback()
            result.errors.append({"row": row_number, "error": str(e)})
        else:
            result.imported += 1

    log_database_operation(
        operation="import",
        table="Participant",
        imported=result.imported,
        rejected=len(result.errors),
    )
    record_participants_imported(result.imported)
    return result
