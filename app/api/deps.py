"""FastAPI dependencies for authentication, collaborators and database sessions."""

import uuid
from dataclasses import dataclass
from typing import Annotated, Any, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.core.security import decode_access_token
from app.database.account_repo import AccountRepository, AdministratorRepository
from app.integrations.google_identity import GoogleIdentityVerifier
from app.integrations.payment_gateway import PaymentGateway, StripeGateway
from app.models.enums import AdminRole
from app.models.models import Account, Administrator
from app.services.notification_service import EmailNotifier
from app.utils.exceptions import ForbiddenException, UnauthorizedException

bearer_scheme = HTTPBearer(auto_error=False)

_ADMIN_ROLES = {AdminRole.ADMIN.value, AdminRole.SUPERADMIN.value}


@dataclass(frozen=True)
class AdminPrincipal:
    """Administrator identity as carried by the access token."""

    id: uuid.UUID
    email: str
    role: AdminRole


def _token_payload(credentials: Optional[HTTPAuthorizationCredentials]) -> dict[str, Any]:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise UnauthorizedException("No token provided")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise UnauthorizedException("Invalid or expired token", code="INVALID_OR_EXPIRED_TOKEN")
    return payload


def _subject_id(payload: dict[str, Any]) -> uuid.UUID:
    try:
        return uuid.UUID(str(payload.get("id")))
    except ValueError:
        raise UnauthorizedException("Invalid token payload", code="INVALID_OR_EXPIRED_TOKEN")


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Account:
    """Get the end user behind an access token. Admin tokens are rejected."""
    payload = _token_payload(credentials)
    if payload.get("role"):
        raise ForbiddenException("User token required")

    account = await AccountRepository.get_by_id(db, _subject_id(payload))
    if account is None:
        raise UnauthorizedException("User not found")
    return account


async def get_current_admin(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
) -> AdminPrincipal:
    """Trust the token's admin identity without a database round-trip."""
    payload = _token_payload(credentials)
    role = payload.get("role")
    if role not in _ADMIN_ROLES:
        raise ForbiddenException("Admin access required")
    return AdminPrincipal(id=_subject_id(payload), email=payload.get("email", ""), role=AdminRole(role))


async def get_current_superadmin(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Administrator:
    """Re-read the administrator on every call so role revocation applies immediately."""
    payload = _token_payload(credentials)
    admin = await AdministratorRepository.get_by_id(db, _subject_id(payload))
    if admin is None:
        raise UnauthorizedException("Admin not found")
    if not admin.is_active or admin.role != AdminRole.SUPERADMIN:
        raise ForbiddenException("Superadmin access required")
    return admin


def get_notifier(request: Request) -> EmailNotifier:
    notifier = getattr(request.app.state, "notifier", None)
    if notifier is None:
        notifier = EmailNotifier.from_settings()
        request.app.state.notifier = notifier
    return notifier


def get_gateway(request: Request) -> PaymentGateway:
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        gateway = StripeGateway.from_settings()
        request.app.state.gateway = gateway
    return gateway


def get_google_verifier() -> GoogleIdentityVerifier:
    return GoogleIdentityVerifier.from_settings()


# Convenience type aliases
DB = Annotated[AsyncSession, Depends(get_db)]
CurrentUser = Annotated[Account, Depends(get_current_user)]
CurrentAdmin = Annotated[AdminPrincipal, Depends(get_current_admin)]
CurrentSuperAdmin = Annotated[Administrator, Depends(get_current_superadmin)]
Notifier = Annotated[EmailNotifier, Depends(get_notifier)]
Gateway = Annotated[PaymentGateway, Depends(get_gateway)]
GoogleVerifier = Annotated[GoogleIdentityVerifier, Depends(get_google_verifier)]
