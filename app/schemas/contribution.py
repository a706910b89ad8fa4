from datetime import datetime
from decimal import Decimal
import uuid
from sqlmodel import SQLModel, Field
from app.models.enums import ContributionStatus, PayoutStatus, ProofStatus, ProofType

# Contribution Schemas
class ContributionRead(SQLModel):
    """
    A contribution with its effective (time-derived) status.
    """
    id: uuid.UUID
    round_id: uuid.UUID
    user_id: uuid.UUID
    user_name: str | None = None
    cycle_number: int
    amount: Decimal
    due_date: datetime
    paid_date: datetime | None
    status: ContributionStatus
    proof_status: ProofStatus | None = None
    created_at: datetime

# Payment Proof Schemas
class ProofSubmit(SQLModel):
    """
    Schema for submitting payment proof. Files are uploaded to object storage first;
    only the resulting URL is sent here.
    """
    proof_type: ProofType
    proof_url: str | None = None
    reference_text: str | None = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "proof_type": "reference",
                "reference_text": "Bank transfer ref 0042"
            }
        }
    }

class ProofReject(SQLModel):
    reason: str = Field(min_length=1, max_length=500)

class ProofRead(SQLModel):
    id: uuid.UUID
    contribution_id: uuid.UUID
    round_id: uuid.UUID
    user_id: uuid.UUID
    attempt: int
    proof_type: ProofType
    proof_url: str | None
    reference_text: str | None
    status: ProofStatus
    reviewed_by: uuid.UUID | None
    reviewed_at: datetime | None
    rejection_reason: str | None
    created_at: datetime

# Payout Schemas
class PayoutRead(SQLModel):
    id: uuid.UUID
    recipient_user_id: uuid.UUID
    recipient_name: str | None = None
    payout_position: int | None = None
    cycle_index: int
    amount: Decimal
    scheduled_date: datetime
    completed_date: datetime | None
    status: PayoutStatus
