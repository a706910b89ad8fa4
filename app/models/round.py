import uuid
from datetime import datetime
from decimal import Decimal
from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint
from app.models.enums import (
    ContributionFrequency,
    PaymentVerification,
    PayoutOrder,
    RoundRole,
    RoundStatus,
    StartType,
)
from app.utils.time import utcnow

class Round(SQLModel, table=True):
    """
    A rotating savings circle with fixed membership and cadence.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, description="Unique identifier for the round")
    name: str = Field(description="Name of the round")
    description: str | None = Field(default=None, description="Description of the round goal")
    currency: str = Field(description="ISO currency code used for display only")
    contribution_amount: Decimal = Field(max_digits=12, decimal_places=2, description="Fixed amount each member contributes per cycle")
    contribution_frequency: ContributionFrequency = Field(description="Cadence of contributions")
    number_of_members: int = Field(description="Number of participating members, fixed at creation")
    payout_order: PayoutOrder = Field(default=PayoutOrder.FIXED, description="Payout order policy")
    start_type: StartType = Field(description="How the round starts")
    start_date: datetime | None = Field(default=None, description="First contribution/payout date")
    grace_period_days: int = Field(default=0, description="Days after a due date before a pending contribution is late")
    payment_verification: PaymentVerification = Field(default=PaymentVerification.OPTIONAL, description="Whether proofs are expected for contributions")
    organizer_participates: bool = Field(default=True, description="Whether the organizer takes a payout slot")
    conflict_resolution_enabled: bool = Field(default=False, description="Whether members may raise disputes")
    organizer_id: uuid.UUID = Field(foreign_key="user.id", index=True, description="ID of the organizer")
    status: RoundStatus = Field(default=RoundStatus.ACTIVE, index=True, description="Current status of the round")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

class RoundMember(SQLModel, table=True):
    """
    Membership of a user in a round.
    """
    __table_args__ = (
        UniqueConstraint("round_id", "user_id", name="uq_round_member_user"),
        UniqueConstraint("round_id", "payout_position", name="uq_round_member_position"),
        UniqueConstraint("round_id", "rotation_index", name="uq_round_member_rotation"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    round_id: uuid.UUID = Field(foreign_key="round.id", index=True, description="ID of the round")
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True, description="ID of the user")
    role: RoundRole = Field(default=RoundRole.MEMBER, description="Role in the round")
    payout_position: int | None = Field(default=None, description="Rank in the payout order (1..N), fixed order only")
    rotation_index: int | None = Field(default=None, description="0-based rotation slot held from join until removal, participants only")
    participates: bool = Field(default=True, description="Whether the member contributes and receives a payout")
    joined_at: datetime = Field(default_factory=utcnow, description="Timestamp when the user joined the round")

class InviteLink(SQLModel, table=True):
    """
    Invite code admitting new members to a round.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    round_id: uuid.UUID = Field(foreign_key="round.id", index=True)
    code: str = Field(unique=True, index=True, description="Short unique invite code")
    created_by: uuid.UUID = Field(foreign_key="user.id")
    max_uses: int | None = Field(default=None, description="Maximum number of redemptions, unlimited when null")
    use_count: int = Field(default=0, description="Number of successful redemptions")
    expires_at: datetime | None = Field(default=None, description="Expiry timestamp, never expires when null")
    created_at: datetime = Field(default_factory=utcnow)
