from collections.abc import Sequence
from typing import Any, Final

from sqlmodel import Session, col, select

from ..domain.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from ..domain.validation import validate_name, validate_role
from ..infrastructure.database.models import StaffMember, UploadedFile
from ..logging_config import get_logger
from ..logging_utils import log_database_operation

logger: Final = get_logger(__name__)

# Changing these requires the admin role
PRIVILEGED_FIELDS: Final = ("role", "is_active")


def get_staff_members(session: Session) -> Sequence[StaffMember]:
    return session.exec(select(StaffMember).order_by(col(StaffMember.name))).all()


def get_staff_member(session: Session, staff_id: int) -> StaffMember:
    staff = session.get(StaffMember, staff_id)
    if staff is None:
        raise NotFoundError("Staff member", staff_id)
    return staff


def update_staff_member(
    session: Session, actor: StaffMember, staff_id: int, **changes: Any
) -> StaffMember:
    """Update a staff account.

    Staff may rename themselves; everything else needs an admin.

    Raises:
        NotFoundError: If the staff member does not exist
        PermissionDeniedError: If the actor may not make the change
        ValidationError: If a field is invalid
    """
    staff: Final = get_staff_member(session, staff_id)
    is_admin: Final = actor.role == "admin"

    if not is_admin and actor.id != staff_id:
        raise PermissionDeniedError("You can only update your own account")
    if not is_admin and any(key in changes for key in PRIVILEGED_FIELDS):
        raise PermissionDeniedError("Administrator role required")
    if actor.id == staff_id and changes.get("is_active") is False:
        raise ValidationError("You cannot deactivate your own account")

    if "name" in changes:
        staff.name = validate_name(changes["name"])
    if "role" in changes:
        staff.role = validate_role(changes["role"])
    if "is_active" in changes:
        staff.is_active = bool(changes["is_active"])

    session.add(staff)
    session.commit()
    session.refresh(staff)

    log_database_operation(
        operation="update",
        table="StaffMember",
        staff_id=staff_id,
        actor_id=actor.id,
        fields=sorted(changes),
    )
    return staff


def delete_staff_member(session: Session, actor: StaffMember, staff_id: int) -> None:
    """Delete a staff account. Uploads it made are kept without an owner.

    Raises:
        NotFoundError: If the staff member does not exist
        ValidationError: If the actor tries to delete their own account
    """
    if actor.id == staff_id:
        raise ValidationError("You cannot delete your own account")
    staff: Final = get_staff_member(session, staff_id)

    uploads: Final = session.exec(
        select(UploadedFile).where(UploadedFile.uploaded_by == staff_id)
    ).all()
    for upload in uploads:
        upload.uploaded_by = None
        session.add(upload)

    session.delete(staff)
    session.commit()
    log_database_operation(
        operation="delete", table="StaffMember", staff_id=staff_id, actor_id=actor.id
    )
