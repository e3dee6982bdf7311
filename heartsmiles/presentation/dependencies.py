"""Dependencies shared by the route modules."""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from ..application.auth_service import decode_token, ensure_auth_configured
from ..config import Settings
from ..domain.exceptions import AuthenticationError, PermissionDeniedError
from ..infrastructure.database.database import get_session
from ..infrastructure.database.models import StaffMember

# Missing credentials are reported by get_current_staff, not by HTTPBearer
bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    """Settings the application was built with."""
    return request.app.state.settings


SettingsDep = Annotated[Settings, Depends(get_settings)]
SessionDep = Annotated[Session, Depends(get_session)]


def get_current_staff(
    settings: SettingsDep,
    session: SessionDep,
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
) -> StaffMember:
    """Resolve the staff member behind the bearer token.

    Raises:
        AuthNotConfiguredError: If JWT_SECRET is not set
        AuthenticationError: If the token is missing, invalid, or the account
            no longer exists or is inactive
    """
    if credentials is None:
        ensure_auth_configured(settings)
        raise AuthenticationError("Authentication required")

    claims = decode_token(settings, credentials.credentials)
    try:
        staff_id = int(claims.get("sub", ""))
    except ValueError as e:
        raise AuthenticationError("Invalid token: malformed subject") from e

    staff = session.get(StaffMember, staff_id)
    if staff is None or not staff.is_active:
        raise AuthenticationError("Account is not active")
    return staff


CurrentStaff = Annotated[StaffMember, Depends(get_current_staff)]


def require_admin(staff: CurrentStaff) -> StaffMember:
    if staff.role != "admin":
        raise PermissionDeniedError("Administrator role required")
    return staff


AdminStaff = Annotated[StaffMember, Depends(require_admin)]
