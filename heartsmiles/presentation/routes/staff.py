from typing import Final

from fastapi import APIRouter, Path, Response, status
from pydantic import BaseModel, Field

from ...application.staff_service import (
    delete_staff_member,
    get_staff_member,
    get_staff_members,
    update_staff_member,
)
from ...domain.constants import MAX_NAME_LENGTH
from ..dependencies import AdminStaff, CurrentStaff, SessionDep
from .auth import StaffResponse

router: Final = APIRouter(
    prefix="/api/staff",
    tags=["staff"],
    responses={
        401: {"description": "Unauthorized - Missing or invalid token"},
        403: {"description": "Forbidden - Administrator role required"},
        404: {"description": "Not Found - Staff member does not exist"},
    },
)


class StaffUpdate(BaseModel):
    """Partial update of a staff account. Role and activation need an admin."""

    name: str | None = Field(None, max_length=MAX_NAME_LENGTH)
    role: str | None = Field(None, examples=["admin", "staff"])
    is_active: bool | None = None


class StaffListResponse(BaseModel):
    staff: list[StaffResponse]
    count: int


@router.get("", response_model=StaffListResponse, summary="List staff accounts")
def api_list_staff(session: SessionDep, staff: CurrentStaff) -> StaffListResponse:
    members = [
        StaffResponse.from_model(member) for member in get_staff_members(session)
    ]
    return StaffListResponse(staff=members, count=len(members))


@router.get("/{staff_id}", response_model=StaffResponse, summary="Get staff account")
def api_get_staff(
    session: SessionDep,
    staff: CurrentStaff,
    staff_id: int = Path(description="Staff id"),
) -> StaffResponse:
    return StaffResponse.from_model(get_staff_member(session, staff_id))


@router.put("/{staff_id}", response_model=StaffResponse, summary="Update staff account")
def api_update_staff(
    session: SessionDep,
    staff: CurrentStaff,
    payload: StaffUpdate,
    staff_id: int = Path(description="Staff id"),
) -> StaffResponse:
    updated = update_staff_member(
        session, staff, staff_id, **payload.model_dump(exclude_unset=True)
    )
    return StaffResponse.from_model(updated)


@router.delete(
    "/{staff_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete staff account",
)
def api_delete_staff(
    session: SessionDep,
    admin: AdminStaff,
    staff_id: int = Path(description="Staff id"),
) -> Response:
    delete_staff_member(session, admin, staff_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
