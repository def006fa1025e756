from app.models.base import Base
from app.models.enums import AdminRole, ChallengeKind, TicketStatus
from app.models.models import Account, Administrator, Ticket, UserProfile
from app.models.otp_challenge import OTPChallenge
from app.models.plan import SubscriptionPlan

__all__ = [
    "Base",
    "Account",
    "Administrator",
    "AdminRole",
    "ChallengeKind",
    "OTPChallenge",
    "SubscriptionPlan",
    "Ticket",
    "TicketStatus",
    "UserProfile",
]
