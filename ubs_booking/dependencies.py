"""FastAPI dependencies."""

from dataclasses import dataclass
from enum import Enum
from typing import Annotated
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ubs_booking.core.exceptions import ForbiddenException, UnauthorizedException
from ubs_booking.core.security import decode_access_token
from ubs_booking.database import get_db
from ubs_booking.services.notification_service import Notifier, get_notifier

# Security
security = HTTPBearer(auto_error=False)


class PrincipalRole(str, Enum):
    """Kinds of authenticated actors."""

    PATIENT = "patient"
    DOCTOR = "doctor"


@dataclass(frozen=True)
class Principal:
    """Authenticated actor supplied by the identity provider."""

    id: UUID
    role: PrincipalRole


async def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> Principal:
    """
    Extract the principal from the bearer token.

    The token's ``sub`` and ``role`` claims are trusted as issued.

    Raises:
        UnauthorizedException: If the token is missing, invalid or expired
    """
    if credentials is None:
        raise UnauthorizedException("Authentication token not provided")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise UnauthorizedException("Could not validate credentials")

    try:
        return Principal(id=UUID(str(payload.get("sub"))), role=PrincipalRole(payload.get("role")))
    except ValueError:
        raise UnauthorizedException("Invalid token claims")


async def require_patient(
    principal: Annotated[Principal, Depends(get_current_principal)],
) -> Principal:
    """Only patients may proceed."""
    if principal.role is not PrincipalRole.PATIENT:
        raise ForbiddenException("Access restricted to patients")
    return principal


async def require_doctor(
    principal: Annotated[Principal, Depends(get_current_principal)],
) -> Principal:
    """Only doctors may proceed."""
    if principal.role is not PrincipalRole.DOCTOR:
        raise ForbiddenException("Access restricted to doctors")
    return principal


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
CurrentPatient = Annotated[Principal, Depends(require_patient)]
CurrentDoctor = Annotated[Principal, Depends(require_doctor)]
NotifierDep = Annotated[Notifier, Depends(get_notifier)]
