from datetime import date, datetime
from typing import Final

from fastapi import APIRouter, Path, Query, Response, status
from pydantic import BaseModel, Field

from ...application.participant_service import (
    create_participant,
    delete_participant,
    get_participant,
    get_participants,
    update_participant,
)
from ...domain.constants import (
    MAX_EMAIL_LENGTH,
    MAX_NAME_LENGTH,
    MAX_NOTES_LENGTH,
    MAX_PHONE_LENGTH,
)
from ...infrastructure.database.models import Participant
from ..dependencies import CurrentStaff, SessionDep

router: Final = APIRouter(
    prefix="/api/participants",
    tags=["participants"],
    responses={
        400: {"description": "Bad Request - Invalid input data"},
        401: {"description": "Unauthorized - Missing or invalid token"},
        404: {"description": "Not Found - Participant does not exist"},
    },
)


# Request Models
class ParticipantCreate(BaseModel):
    """Request model for enrolling a participant."""

    first_name: str = Field(..., max_length=MAX_NAME_LENGTH, examples=["Jordan"])
    last_name: str = Field(..., max_length=MAX_NAME_LENGTH, examples=["Lee"])
    email: str | None = Field(None, max_length=MAX_EMAIL_LENGTH)
    phone: str | None = Field(None, max_length=MAX_PHONE_LENGTH)
    date_of_birth: date | None = None
    program_id: int | None = Field(None, description="Program to enroll in")
    notes: str | None = Field(None, max_length=MAX_NOTES_LENGTH)


class ParticipantUpdate(BaseModel):
    """Partial update; only fields present in the body are changed."""

    first_name: str | None = Field(None, max_length=MAX_NAME_LENGTH)
    last_name: str | None = Field(None, max_length=MAX_NAME_LENGTH)
    email: str | None = Field(None, max_length=MAX_EMAIL_LENGTH)
    phone: str | None = Field(None, max_length=MAX_PHONE_LENGTH)
    date_of_birth: date | None = None
    program_id: int | None = None
    notes: str | None = Field(None, max_length=MAX_NOTES_LENGTH)


# Response Models
class ParticipantResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str | None
    phone: str | None
    date_of_birth: date | None
    program_id: int | None
    notes: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, participant: Participant) -> "ParticipantResponse":
        return cls.model_validate(participant, from_attributes=True)


class ParticipantListResponse(BaseModel):
    participants: list[ParticipantResponse]
    count: int


@router.get("", response_model=ParticipantListResponse, summary="List participants")
def api_list_participants(
    session: SessionDep,
    staff: CurrentStaff,
    program_id: int | None = Query(None, description="Only this program"),
    search: str | None = Query(None, description="Match name or email"),
) -> ParticipantListResponse:
    participants = get_participants(session, program_id=program_id, search=search)
    return ParticipantListResponse(
        participants=[ParticipantResponse.from_model(p) for p in participants],
        count=len(participants),
    )


@router.get(
    "/{participant_id}", response_model=ParticipantResponse, summary="Get participant"
)
def api_get_participant(
    session: SessionDep,
    staff: CurrentStaff,
    participant_id: int = Path(description="Participant id"),
) -> ParticipantResponse:
    return ParticipantResponse.from_model(get_participant(session, participant_id))


@router.post(
    "",
    response_model=ParticipantResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create participant",
)
def api_create_participant(
    session: SessionDep, staff: CurrentStaff, payload: ParticipantCreate
) -> ParticipantResponse:
    participant = create_participant(session, **payload.model_dump())
    return ParticipantResponse.from_model(participant)


@router.put(
    "/{participant_id}",
    response_model=ParticipantResponse,
    summary="Update participant",
)
def api_update_participant(
    session: SessionDep,
    staff: CurrentStaff,
    payload: ParticipantUpdate,
    participant_id: int = Path(description="Participant id"),
) -> ParticipantResponse:
    participant = update_participant(
        session, participant_id, **payload.model_dump(exclude_unset=True)
    )
    return ParticipantResponse.from_model(participant)


@router.delete(
    "/{participant_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete participant",
)
def api_delete_participant(
    session: SessionDep,
    staff: CurrentStaff,
    participant_id: int = Path(description="Participant id"),
) -> Response:
    delete_participant(session, participant_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
