"""Enums shared by the persistence models.

- AdminRole: capability level of an administrator
- ChallengeKind: purpose of a one-time-password challenge
- TicketStatus: support ticket workflow state
"""

import enum


class AdminRole(str, enum.Enum):
    """Capability level of an administrator."""

    ADMIN = "admin"
    SUPERADMIN = "superadmin"


class ChallengeKind(str, enum.Enum):
    """Purpose of a one-time-password challenge; one live challenge per (kind, email)."""

    REGISTRATION = "registration"
    PASSWORD_RESET = "password_reset"
    ACCOUNT_DELETION = "account_deletion"
    ADMIN_PASSWORD_RESET = "admin_password_reset"


class TicketStatus(str, enum.Enum):
    """Support ticket status (new -> open -> replied)."""

    NEW = "new"
    OPEN = "open"
    REPLIED = "replied"
