"""
Typed payloads for timeline events.

``event_data`` is a tagged union keyed by ``type``; each event type has exactly
one payload shape. ``TimelineEvent.event_type`` always equals the payload's
``type`` field.
"""
import uuid
from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class RoundCreatedData(BaseModel):
    type: Literal["round_created"] = "round_created"
    round_name: str


class RoundUpdatedData(BaseModel):
    type: Literal["round_updated"] = "round_updated"
    changed_fields: list[str] = []
    action: str | None = None


class MemberJoinedData(BaseModel):
    type: Literal["member_joined"] = "member_joined"
    member_name: str
    payout_position: int | None = None


class MemberRemovedData(BaseModel):
    type: Literal["member_removed"] = "member_removed"
    member_user_id: uuid.UUID


class ContributionRecordedData(BaseModel):
    type: Literal["contribution_recorded"] = "contribution_recorded"
    contribution_id: uuid.UUID
    contribution_amount: str
    currency: str


class ProofUploadedData(BaseModel):
    type: Literal["proof_uploaded"] = "proof_uploaded"
    contribution_id: uuid.UUID
    proof_id: uuid.UUID
    proof_type: str


class ProofApprovedData(BaseModel):
    type: Literal["proof_approved"] = "proof_approved"
    contribution_id: uuid.UUID
    proof_id: uuid.UUID


class ProofRejectedData(BaseModel):
    type: Literal["proof_rejected"] = "proof_rejected"
    contribution_id: uuid.UUID
    proof_id: uuid.UUID
    reason: str


TimelineEventData = Annotated[
    Union[
        RoundCreatedData,
        RoundUpdatedData,
        MemberJoinedData,
        MemberRemovedData,
        ContributionRecordedData,
        ProofUploadedData,
        ProofApprovedData,
        ProofRejectedData,
    ],
    Field(discriminator="type"),
]


class TimelineEventRead(BaseModel):
    id: uuid.UUID
    event_type: str
    user_id: uuid.UUID | None = None
    user_name: str | None = None
    event_data: TimelineEventData | None = None
    created_at: datetime
