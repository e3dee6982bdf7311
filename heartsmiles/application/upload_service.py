"""Storage of uploaded files.

Files are written to the configured upload directory under a generated name;
the original name, size and uploader are kept in :class:`UploadedFile`.
"""

import uuid
from collections.abc import Sequence
from pathlib import Path
from typing import BinaryIO, Final

from sqlmodel import Session, col, select
from werkzeug.utils import secure_filename

from ..config import Settings
from ..domain.exceptions import ValidationError
from ..infrastructure.database.models import StaffMember, UploadedFile
from ..logging_config import get_logger
from ..logging_utils import log_database_operation

logger: Final = get_logger(__name__)

CHUNK_SIZE: Final = 64 * 1024


class UploadTooLargeError(ValidationError):
    """Raised when an uploaded file exceeds the size ceiling."""

    status_code = 413

    def __init__(self, limit: int):
        super().__init__(f"File exceeds the maximum size of {limit} bytes")
        self.limit = limit


def check_extension(settings: Settings, filename: str) -> str:
    """Return the lowercase extension of filename if it is allowed.

    Raises:
        ValidationError: If the filename is empty or its extension is not allowed
    """
    if not filename:
        raise ValidationError("No file provided")
    extension = Path(filename).suffix.lower()
    allowed = settings.allowed_upload_extensions_list
    if extension not in allowed:
        raise ValidationError(
            f"File type '{extension or filename}' is not allowed. "
            f"Allowed types: {', '.join(allowed)}"
        )
    return extension


def store_upload(
    session: Session,
    settings: Settings,
    stream: BinaryIO,
    filename: str,
    content_type: str | None,
    uploader: StaffMember,
) -> UploadedFile:
    """Write an uploaded stream to disk and record it.

    The stream is copied in chunks; a partial file is removed when the size
    ceiling is crossed.

    Raises:
        ValidationError: If the extension is not allowed
        UploadTooLargeError: If the file is larger than max_upload_bytes
    """
    extension: Final = check_extension(settings, filename)
    upload_dir: Final = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)

    stored_name: Final = f"{uuid.uuid4().hex}{extension}"
    target: Final = upload_dir / stored_name

    size = 0
    try:
        with target.open("wb") as out:
            while chunk := stream.read(CHUNK_SIZE):
                size += len(chunk)
                if size > settings.max_upload_bytes:
                    raise UploadTooLargeError(settings.max_upload_bytes)
                out.write(chunk)
    except UploadTooLargeError:
        target.unlink(missing_ok=True)
        logger.warning(
            "Upload rejected - too large",
            filename=filename,
            limit=settings.max_upload_bytes,
        )
        raise

    record = UploadedFile(
        original_name=secure_filename(filename) or stored_name,
        stored_name=stored_name,
        content_type=content_type,
        size_bytes=size,
        uploaded_by=uploader.id,
    )
    session.add(record)
    session.commit()
    session.refresh(record)

    log_database_operation(
        operation="create",
        table="UploadedFile",
        upload_id=record.id,
        size_bytes=size,
        uploaded_by=uploader.id,
    )
    return record


def get_uploads(session: Session) -> Sequence[UploadedFile]:
    statement: Final = select(UploadedFile).order_by(
        col(UploadedFile.created_at).desc(), col(UploadedFile.id).desc()
    )
    return session.exec(statement).all()
