from datetime import datetime
from decimal import Decimal
import uuid
from sqlmodel import SQLModel, Field
from app.models.enums import (
    ContributionFrequency,
    PaymentVerification,
    PayoutOrder,
    RoundRole,
    RoundStatus,
    StartType,
)

# Round Schemas
class RoundBase(SQLModel):
    """
    Base Round schema with shared properties.
    """
    name: str = Field(min_length=1, max_length=120)
    description: str | None = None
    currency: str = Field(min_length=3, max_length=3)
    contribution_amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    contribution_frequency: ContributionFrequency
    number_of_members: int = Field(ge=2)
    payout_order: PayoutOrder = PayoutOrder.FIXED
    start_type: StartType
    start_date: datetime | None = None
    grace_period_days: int = Field(default=0, ge=0)
    payment_verification: PaymentVerification = PaymentVerification.OPTIONAL
    organizer_participates: bool = True
    conflict_resolution_enabled: bool = False

class RoundCreate(RoundBase):
    """
    Schema for creating a new round.
    """
    pass

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Family Savings",
                "description": "Saving for summer vacation",
                "currency": "USD",
                "contribution_amount": "100.00",
                "contribution_frequency": "weekly",
                "number_of_members": 5,
                "payout_order": "fixed",
                "start_type": "future",
                "start_date": "2025-01-01T00:00:00Z",
                "grace_period_days": 3,
                "payment_verification": "optional",
                "organizer_participates": True
            }
        }
    }

class RoundRead(RoundBase):
    """
    Schema for reading round details.
    """
    id: uuid.UUID
    organizer_id: uuid.UUID
    status: RoundStatus
    created_at: datetime
    updated_at: datetime

class RoundCreated(RoundRead):
    invite_code: str

class RoundSummary(RoundRead):
    """
    A round as listed for one user, with that user's role.
    """
    role: RoundRole

class RoundSettingsUpdate(SQLModel):
    """
    Settings the organizer may change after creation. Membership size is immutable.
    """
    name: str | None = Field(default=None, min_length=1, max_length=120)
    description: str | None = None
    grace_period_days: int | None = Field(default=None, ge=0)
    payment_verification: PaymentVerification | None = None
    conflict_resolution_enabled: bool | None = None

    model_config = {"extra": "forbid"}

# Round Member Schemas
class RoundMemberRead(SQLModel):
    id: uuid.UUID
    user_id: uuid.UUID
    user_name: str
    role: RoundRole
    payout_position: int | None
    participates: bool
    joined_at: datetime

class RoundDetail(RoundRead):
    members: list[RoundMemberRead]
