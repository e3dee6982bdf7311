from datetime import date, datetime
from typing import Final

from fastapi import APIRouter, Path, Response, status
from pydantic import BaseModel, Field

from ...application.program_service import (
    count_participants,
    create_program,
    delete_program,
    get_program,
    get_programs,
    participant_counts,
    update_program,
)
from ...domain.constants import MAX_DESCRIPTION_LENGTH, MAX_NAME_LENGTH
from ...infrastructure.database.models import Program
from ..dependencies import CurrentStaff, SessionDep

router: Final = APIRouter(
    prefix="/api/programs",
    tags=["programs"],
    responses={
        400: {"description": "Bad Request - Invalid input data"},
        401: {"description": "Unauthorized - Missing or invalid token"},
        404: {"description": "Not Found - Program does not exist"},
        409: {"description": "Conflict - Program name already exists"},
    },
)


# Request Models
class ProgramCreate(BaseModel):
    """Request model for creating a program."""

    name: str = Field(..., max_length=MAX_NAME_LENGTH, examples=["Summer Mentoring"])
    description: str | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH)
    start_date: date | None = None
    end_date: date | None = None


class ProgramUpdate(BaseModel):
    name: str | None = Field(None, max_length=MAX_NAME_LENGTH)
    description: str | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH)
    start_date: date | None = None
    end_date: date | None = None


# Response Models
class ProgramResponse(BaseModel):
    id: int
    name: str
    description: str | None
    start_date: date | None
    end_date: date | None
    created_at: datetime
    participant_count: int = Field(description="Participants enrolled")

    @classmethod
    def from_model(cls, program: Program, participant_count: int) -> "ProgramResponse":
        return cls(
            **program.model_dump(),
            participant_count=participant_count,
        )


class ProgramListResponse(BaseModel):
    programs: list[ProgramResponse]
    count: int


@router.get("", response_model=ProgramListResponse, summary="List programs")
def api_list_programs(
    session: SessionDep, staff: CurrentStaff
) -> ProgramListResponse:
    counts = participant_counts(session)
    programs = [
        ProgramResponse.from_model(program, counts.get(program.id, 0))
        for program in get_programs(session)
    ]
    return ProgramListResponse(programs=programs, count=len(programs))


@router.get("/{program_id}", response_model=ProgramResponse, summary="Get program")
def api_get_program(
    session: SessionDep,
    staff: CurrentStaff,
    program_id: int = Path(description="Program id"),
) -> ProgramResponse:
    program = get_program(session, program_id)
    return ProgramResponse.from_model(program, count_participants(session, program_id))


@router.post(
    "",
    response_model=ProgramResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create program",
)
def api_create_program(
    session: SessionDep, staff: CurrentStaff, payload: ProgramCreate
) -> ProgramResponse:
    program = create_program(session, **payload.model_dump())
    return ProgramResponse.from_model(program, 0)


@router.put("/{program_id}", response_model=ProgramResponse, summary="Update program")
def api_update_program(
    session: SessionDep,
    staff: CurrentStaff,
    payload: ProgramUpdate,
    program_id: int = Path(description="Program id"),
) -> ProgramResponse:
    program = update_program(
        session, program_id, **payload.model_dump(exclude_unset=True)
    )
    return ProgramResponse.from_model(program, count_participants(session, program_id))


@router.delete(
    "/{program_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete program",
    description="Delete a program. Its participants stay, without a program.",
)
def api_delete_program(
    session: SessionDep,
    staff: CurrentStaff,
    program_id: int = Path(description="Program id"),
) -> Response:
    delete_program(session, program_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
