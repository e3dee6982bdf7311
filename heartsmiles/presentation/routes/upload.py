from datetime import datetime
from typing import Final

from fastapi import APIRouter, File, UploadFile, status
from pydantic import BaseModel

from ...application.upload_service import get_uploads, store_upload
from ...infrastructure.database.models import UploadedFile
from ..dependencies import CurrentStaff, SessionDep, SettingsDep

router: Final = APIRouter(
    prefix="/api/upload",
    tags=["upload"],
    responses={
        400: {"description": "Bad Request - File type not allowed"},
        401: {"description": "Unauthorized - Missing or invalid token"},
        413: {"description": "Payload Too Large - File exceeds the size ceiling"},
    },
)


class UploadResponse(BaseModel):
    id: int
    original_name: str
    stored_name: str
    content_type: str | None
    size_bytes: int
    uploaded_by: int | None
    created_at: datetime

    @classmethod
    def from_model(cls, upload: UploadedFile) -> "UploadResponse":
        return cls.model_validate(upload, from_attributes=True)


class UploadListResponse(BaseModel):
    uploads: list[UploadResponse]
    count: int


@router.post(
    "",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a file",
)
def api_upload_file(
    settings: SettingsDep,
    session: SessionDep,
    staff: CurrentStaff,
    file: UploadFile = File(description="File to store"),
) -> UploadResponse:
    """Store a file in the upload directory.

    Only whitelisted extensions are accepted and the file may not exceed
    MAX_UPLOAD_BYTES.
    """
    record = store_upload(
        session,
        settings,
        file.file,
        file.filename or "",
        file.content_type,
        uploader=staff,
    )
    return UploadResponse.from_model(record)


@router.get("", response_model=UploadListResponse, summary="List uploads")
def api_list_uploads(
    session: SessionDep, staff: CurrentStaff
) -> UploadListResponse:
    uploads = [UploadResponse.from_model(upload) for upload in get_uploads(session)]
    return UploadListResponse(uploads=uploads, count=len(uploads))
