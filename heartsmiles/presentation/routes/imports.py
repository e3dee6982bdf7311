from pathlib import Path
from typing import Any, Final

from fastapi import APIRouter, File, UploadFile
from pydantic import BaseModel

from ...application.csv_transfer import import_participants_csv
from ...application.upload_service import UploadTooLargeError
from ...domain.exceptions import ValidationError
from ..dependencies import CurrentStaff, SessionDep, SettingsDep

router: Final = APIRouter(
    prefix="/api/import",
    tags=["import"],
    responses={
        400: {"description": "Bad Request - Not a CSV file"},
        401: {"description": "Unauthorized - Missing or invalid token"},
    },
)

CSV_CONTENT_TYPES: Final = (
    "text/csv",
    "application/csv",
    "application/vnd.ms-excel",
    "text/plain",
    "application/octet-stream",
)


class ImportResponse(BaseModel):
    imported: int
    errors: list[dict[str, Any]]


@router.post(
    "/participants",
    response_model=ImportResponse,
    summary="Import participants from CSV",
)
def api_import_participants(
    settings: SettingsDep,
    session: SessionDep,
    staff: CurrentStaff,
    file: UploadFile = File(description="CSV file with a header row"),
) -> ImportResponse:
    """Create participants from an uploaded CSV file.

    Rows that fail validation are skipped and reported with their row number.
    """
    content_type = (file.content_type or "").split(";")[0].strip().lower()
    if (
        Path(file.filename or "").suffix.lower() != ".csv"
        or content_type not in CSV_CONTENT_TYPES
    ):
        raise ValidationError("Only CSV files can be imported")

    content = file.file.read(settings.max_upload_bytes + 1)
    if len(content) > settings.max_upload_bytes:
        raise UploadTooLargeError(settings.max_upload_bytes)

    result = import_participants_csv(session, content)
    return ImportResponse(**result.as_dict())
