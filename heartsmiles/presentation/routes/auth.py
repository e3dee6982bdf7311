from datetime import datetime
from typing import Final

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from ...application.auth_service import (
    authenticate,
    ensure_auth_configured,
    issue_token,
    register_staff,
)
from ...domain.constants import MAX_EMAIL_LENGTH, MAX_NAME_LENGTH
from ...infrastructure.database.models import StaffMember
from ..dependencies import CurrentStaff, SessionDep, SettingsDep

router: Final = APIRouter(
    prefix="/api/auth",
    tags=["auth"],
    responses={
        400: {"description": "Bad Request - Invalid input data"},
        401: {"description": "Unauthorized - Missing or invalid credentials"},
        503: {"description": "Service Unavailable - Authentication not configured"},
    },
)


# Request Models
class RegisterRequest(BaseModel):
    """Request model for creating a staff account."""

    email: str = Field(..., max_length=MAX_EMAIL_LENGTH, examples=["sam@example.org"])
    password: str = Field(..., description="At least 8 characters")
    name: str = Field(..., max_length=MAX_NAME_LENGTH, examples=["Sam Rivera"])


class LoginRequest(BaseModel):
    email: str
    password: str


# Response Models
class StaffResponse(BaseModel):
    """Staff account as returned by the API. Never includes the password hash."""

    id: int
    email: str
    name: str
    role: str
    is_active: bool
    created_at: datetime

    @classmethod
    def from_model(cls, staff: StaffMember) -> "StaffResponse":
        return cls.model_validate(staff, from_attributes=True)


class TokenResponse(BaseModel):
    token: str = Field(description="Bearer token for the Authorization header")
    staff: StaffResponse


class VerifyResponse(BaseModel):
    valid: bool
    staff: StaffResponse


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a staff account",
    responses={409: {"description": "Email already registered"}},
)
def api_register(
    settings: SettingsDep, session: SessionDep, payload: RegisterRequest
) -> TokenResponse:
    """Create a staff account and sign it in.

    The first account registered on a fresh deployment becomes an admin.
    """
    ensure_auth_configured(settings)
    staff = register_staff(session, payload.email, payload.password, payload.name)
    return TokenResponse(
        token=issue_token(settings, staff), staff=StaffResponse.from_model(staff)
    )


@router.post("/login", response_model=TokenResponse, summary="Sign in")
def api_login(
    settings: SettingsDep, session: SessionDep, payload: LoginRequest
) -> TokenResponse:
    ensure_auth_configured(settings)
    staff = authenticate(session, payload.email, payload.password)
    return TokenResponse(
        token=issue_token(settings, staff), staff=StaffResponse.from_model(staff)
    )


@router.get("/me", response_model=StaffResponse, summary="Current staff account")
def api_me(staff: CurrentStaff) -> StaffResponse:
    return StaffResponse.from_model(staff)


@router.post("/verify", response_model=VerifyResponse, summary="Verify a token")
def api_verify(staff: CurrentStaff) -> VerifyResponse:
    """Check that the bearer token is valid and its account active."""
    return VerifyResponse(valid=True, staff=StaffResponse.from_model(staff))
