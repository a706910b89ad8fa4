import uuid
from datetime import datetime
from typing import Any, Optional
from sqlmodel import SQLModel, Field, JSON, Column
from app.models.enums import TimelineEventType
from app.utils.time import utcnow

class TimelineEvent(SQLModel, table=True):
    """
    Append-only log entry describing something that happened in a round.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    round_id: uuid.UUID = Field(foreign_key="round.id", index=True)
    user_id: uuid.UUID | None = Field(default=None, foreign_key="user.id", index=True, description="Actor, when the event has one")
    event_type: TimelineEventType = Field(description="Discriminator of event_data")
    event_data: Optional[dict[str, Any]] = Field(default=None, sa_column=Column(JSON), description="Payload matching event_type")
    created_at: datetime = Field(default_factory=utcnow, index=True)
