from datetime import datetime
from decimal import Decimal
import uuid
from pydantic import BaseModel
from app.models.enums import (
    CalendarEventType,
    GlobalStatus,
    PayoutStatus,
    ContributionStatus,
    RoundRole,
    RoundStatus,
)

class ContributionProgress(BaseModel):
    total: int = 0
    paid: int = 0
    pending: int = 0
    late: int = 0

class MemberCount(BaseModel):
    current: int
    total: int

class RoundDetails(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None
    currency: str
    status: RoundStatus

class CurrentPayoutStatus(BaseModel):
    next_payout_date: datetime | None = None
    next_recipient_user_id: uuid.UUID | None = None
    next_recipient: str | None = None
    position: int | None = None

class RoundOverview(BaseModel):
    round_details: RoundDetails
    contribution_progress: ContributionProgress
    current_payout_status: CurrentPayoutStatus
    next_important_date: datetime | None = None
    next_important_action: str | None = None
    member_count: MemberCount
    user_role: RoundRole

class ActiveRound(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None
    currency: str
    contribution_amount: Decimal
    number_of_members: int
    start_date: datetime | None
    status: RoundStatus
    next_important_date: datetime | None = None
    next_important_action: str | None = None

class ActionItem(BaseModel):
    type: str
    round_id: uuid.UUID
    round_name: str
    count: int

class DashboardSummary(BaseModel):
    global_status: GlobalStatus
    next_important_date: datetime | None = None
    next_important_action: str | None = None
    rounds_count: int
    unread_notification_count: int
    action_items: list[ActionItem] = []
    active_rounds: list[ActiveRound] = []

class CalendarEntry(BaseModel):
    round_id: uuid.UUID
    round_name: str
    date: datetime
    event_type: CalendarEventType
    recipient_user_id: uuid.UUID | None = None
    recipient_name: str | None = None
    amount: Decimal
    currency: str
    user_role: RoundRole
    status: PayoutStatus | ContributionStatus
