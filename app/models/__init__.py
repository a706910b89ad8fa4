from app.models.user import User
from app.models.round import Round, RoundMember, InviteLink
from app.models.contribution import Contribution, PaymentProof, Payout
from app.models.timeline import TimelineEvent
from app.models.notification import Notification

__all__ = [
    "User",
    "Round",
    "RoundMember",
    "InviteLink",
    "Contribution",
    "PaymentProof",
    "Payout",
    "TimelineEvent",
    "Notification",
]
