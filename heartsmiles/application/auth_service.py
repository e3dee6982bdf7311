from datetime import UTC, datetime, timedelta
from typing import Any, Final

import jwt
from sqlmodel import Session, select
from werkzeug.security import check_password_hash, generate_password_hash

from ..config import Settings
from ..domain.constants import DEFAULT_STAFF_ROLE
from ..domain.exceptions import (
    AuthenticationError,
    AuthNotConfiguredError,
    ConflictError,
)
from ..domain.validation import (
    validate_email,
    validate_name,
    validate_password,
    validate_role,
)
from ..infrastructure.database.models import StaffMember
from ..logging_config import get_logger
from ..logging_utils import log_database_operation
from ..metrics import record_staff_registered

logger: Final = get_logger(__name__)


def ensure_auth_configured(settings: Settings) -> str:
    if not settings.jwt_secret:
        logger.error("Token operation attempted without JWT_SECRET")
        raise AuthNotConfiguredError()
    return settings.jwt_secret


def get_staff_by_email(session: Session, email: str) -> StaffMember | None:
    statement: Final = select(StaffMember).where(StaffMember.email == email)
    return session.exec(statement).first()


def register_staff(
    session: Session,
    email: str,
    password: str,
    name: str,
    role: str = DEFAULT_STAFF_ROLE,
) -> StaffMember:
    """Create a staff account with a hashed password.

    The first account created becomes an admin so a fresh deployment can
    manage roles.

    Raises:
        ValidationError: If any field is invalid
        ConflictError: If the email is already registered
    """
    email = validate_email(email)
    name = validate_name(name)
    validate_password(password)
    role = validate_role(role)

    if get_staff_by_email(session, email):
        logger.warning("Staff registration failed - email taken", email=email)
        raise ConflictError(f"A staff member with email '{email}' already exists")

    if session.exec(select(StaffMember.id)).first() is None:
        role = "admin"

    staff = StaffMember(
        email=email,
        name=name,
        role=role,
        password_hash=generate_password_hash(password),
    )
    session.add(staff)
    session.commit()
    session.refresh(staff)

    log_database_operation(
        operation="create", table="StaffMember", staff_id=staff.id, role=staff.role
    )
    record_staff_registered(staff.role)
    return staff


def authenticate(session: Session, email: str, password: str) -> StaffMember:
    """Check credentials and return the staff member.

    Raises:
        AuthenticationError: On unknown email, wrong password or inactive account
    """
    staff = get_staff_by_email(session, (email or "").strip().lower())
    if (
        staff is None
        or not staff.is_active
        or not check_password_hash(staff.password_hash, password)
    ):
        logger.warning("Login failed", email=email)
        raise AuthenticationError("Invalid email or password")

    logger.info("Login succeeded", staff_id=staff.id)
    return staff


def issue_token(settings: Settings, staff: StaffMember) -> str:
    """Sign an access token for a staff member."""
    secret = ensure_auth_configured(settings)
    now = datetime.now(UTC)
    payload = {
        "sub": str(staff.id),
        "email": staff.email,
        "role": staff.role,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_expires_minutes),
    }
    return jwt.encode(payload, secret, algorithm=settings.jwt_algorithm)


def decode_token(settings: Settings, token: str) -> dict[str, Any]:
    """Verify a token and return its claims.

    Raises:
        AuthNotConfiguredError: If no signing secret is configured
        AuthenticationError: If the token is expired or invalid
    """
    secret = ensure_auth_configured(settings)
    try:
        return jwt.decode(token, secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError as e:
        raise AuthenticationError("Token has expired") from e
    except jwt.InvalidTokenError as e:
        logger.warning("Token validation failed", error_message=str(e))
        raise AuthenticationError("Invalid token") from e
