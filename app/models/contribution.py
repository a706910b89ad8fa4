import uuid
from datetime import datetime
from decimal import Decimal
from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint
from app.models.enums import ContributionStatus, PayoutStatus, ProofStatus, ProofType
from app.utils.time import utcnow

class Contribution(SQLModel, table=True):
    """
    One member's obligation for one cycle of a round.
    """
    __table_args__ = (
        UniqueConstraint("round_id", "user_id", "cycle_number", name="uq_contribution_member_cycle"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, description="Unique identifier for the contribution")
    round_id: uuid.UUID = Field(foreign_key="round.id", index=True, description="ID of the round")
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True, description="ID of the contributing member")
    cycle_number: int = Field(description="0-based cycle this contribution belongs to")
    amount: Decimal = Field(max_digits=12, decimal_places=2, description="Amount owed")
    due_date: datetime = Field(index=True, description="Date the contribution is due")
    paid_date: datetime | None = Field(default=None, description="Timestamp when the member recorded payment")
    status: ContributionStatus = Field(default=ContributionStatus.PENDING, index=True, description="Stored status of the contribution")
    created_at: datetime = Field(default_factory=utcnow)

class PaymentProof(SQLModel, table=True):
    """
    Evidence of payment submitted by a member for organizer review.
    """
    __table_args__ = (
        UniqueConstraint("contribution_id", "attempt", name="uq_payment_proof_attempt"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    contribution_id: uuid.UUID = Field(foreign_key="contribution.id", index=True)
    round_id: uuid.UUID = Field(foreign_key="round.id", index=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True, description="ID of the submitting member")
    attempt: int = Field(description="1-based submission number for the contribution")
    proof_type: ProofType = Field(description="Kind of evidence")
    proof_url: str | None = Field(default=None, description="Object storage URL of the uploaded file")
    reference_text: str | None = Field(default=None, description="Payment reference entered by the member")
    status: ProofStatus = Field(default=ProofStatus.PENDING, index=True)
    reviewed_by: uuid.UUID | None = Field(default=None, foreign_key="user.id")
    reviewed_at: datetime | None = None
    rejection_reason: str | None = None
    created_at: datetime = Field(default_factory=utcnow)

class Payout(SQLModel, table=True):
    """
    A scheduled disbursement of the pooled amount to one member.
    """
    __table_args__ = (
        UniqueConstraint("round_id", "cycle_index", name="uq_payout_cycle"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    round_id: uuid.UUID = Field(foreign_key="round.id", index=True)
    recipient_user_id: uuid.UUID = Field(foreign_key="user.id", index=True)
    cycle_index: int = Field(description="0-based payout index")
    amount: Decimal = Field(max_digits=12, decimal_places=2)
    scheduled_date: datetime
    completed_date: datetime | None = None
    status: PayoutStatus = Field(default=PayoutStatus.SCHEDULED, index=True)
    created_at: datetime = Field(default_factory=utcnow)
