from datetime import UTC, datetime
from typing import Final

from fastapi import APIRouter, Response

from ...application.csv_transfer import export_participants_csv, export_programs_csv
from ..dependencies import CurrentStaff, SessionDep

router: Final = APIRouter(
    prefix="/api/export",
    tags=["export"],
    responses={401: {"description": "Unauthorized - Missing or invalid token"}},
)


def _csv_attachment(content: str, stem: str) -> Response:
    filename = f"{stem}-{datetime.now(UTC):%Y%m%d}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get(
    "/participants",
    response_class=Response,
    summary="Export participants as CSV",
    responses={200: {"content": {"text/csv": {}}}},
)
def api_export_participants(session: SessionDep, staff: CurrentStaff) -> Response:
    return _csv_attachment(export_participants_csv(session), "participants")


@router.get(
    "/programs",
    response_class=Response,
    summary="Export programs as CSV",
    responses={200: {"content": {"text/csv": {}}}},
)
def api_export_programs(session: SessionDep, staff: CurrentStaff) -> Response:
    return _csv_attachment(export_programs_csv(session), "programs")
