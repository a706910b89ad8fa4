import uuid
from datetime import datetime
from sqlmodel import SQLModel, Field
from app.models.enums import NotificationCategory, NotificationType
from app.utils.time import utcnow

class Notification(SQLModel, table=True):
    """
    Model for user notifications.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, description="Unique identifier for the notification")
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True, description="ID of the user receiving the notification")
    round_id: uuid.UUID | None = Field(default=None, foreign_key="round.id", index=True, description="Round the notification refers to")
    title: str = Field(description="Notification title")
    body: str = Field(description="Content of the notification")
    type: NotificationType = Field(description="What triggered the notification")
    category: NotificationCategory = Field(default=NotificationCategory.INFORMATION, description="Grouping shown to the user")
    is_read: bool = Field(default=False, index=True, description="Whether the notification has been read")
    created_at: datetime = Field(default_factory=utcnow)
