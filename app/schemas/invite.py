from datetime import datetime
from decimal import Decimal
import uuid
from sqlmodel import SQLModel
from app.models.enums import (
    ContributionFrequency,
    PaymentVerification,
    PayoutOrder,
    RoundRole,
    RoundStatus,
)

class InvitePreview(SQLModel):
    """
    Round summary shown to a prospective member before joining.
    """
    round_id: uuid.UUID
    name: str
    description: str | None
    currency: str
    contribution_amount: Decimal
    contribution_frequency: ContributionFrequency
    start_date: datetime | None
    payout_order: PayoutOrder
    number_of_members: int
    current_member_count: int
    grace_period_days: int
    payment_verification: PaymentVerification
    organizer_name: str

class InviteLinkRead(SQLModel):
    code: str
    expires_at: datetime | None
    use_count: int
    max_uses: int | None

class JoinResult(SQLModel):
    round_id: uuid.UUID
    name: str
    status: RoundStatus
    role: RoundRole
    payout_position: int | None
