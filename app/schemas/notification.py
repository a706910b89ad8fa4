import uuid
from datetime import datetime
from sqlmodel import SQLModel
from app.models.enums import NotificationCategory, NotificationType

class NotificationRead(SQLModel):
    """
    Schema for reading a notification.
    """
    id: uuid.UUID
    round_id: uuid.UUID | None
    title: str
    body: str
    type: NotificationType
    category: NotificationCategory
    is_read: bool
    created_at: datetime

class NotificationGroups(SQLModel):
    action_required: list[NotificationRead] = []
    upcoming: list[NotificationRead] = []
    information: list[NotificationRead] = []

class NotificationInbox(SQLModel):
    unread_count: int
    notifications: NotificationGroups
