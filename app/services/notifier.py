"""
Timeline recording and notification dispatch.

Both write into the caller's session so events and alerts commit atomically
with the change that caused them. Emails, when enabled, are queued only after
the commit succeeds.
"""
import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import settings
from app.models.enums import NotificationCategory, NotificationType
from app.models.notification import Notification
from app.models.round import RoundMember
from app.models.timeline import TimelineEvent
from app.models.user import User
from app.schemas.timeline import TimelineEventData

logger = logging.getLogger(__name__)

PENDING_EMAILS_KEY = "pending_notification_emails"


def record_event(
    session: AsyncSession,
    round_id: uuid.UUID,
    payload: TimelineEventData,
    user_id: uuid.UUID | None = None,
) -> TimelineEvent:
    event = TimelineEvent(
        round_id=round_id,
        user_id=user_id,
        event_type=payload.type,
        event_data=payload.model_dump(mode="json"),
    )
    session.add(event)
    logger.info(f"Timeline event {payload.type} recorded for round {round_id}")
    return event


def notify(
    session: AsyncSession,
    user_id: uuid.UUID,
    type: NotificationType,
    title: str,
    body: str,
    category: NotificationCategory = NotificationCategory.INFORMATION,
    round_id: uuid.UUID | None = None,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        round_id=round_id,
        type=type,
        title=title,
        body=body,
        category=category,
    )
    session.add(notification)
    if settings.EMAILS_ENABLED:
        session.info.setdefault(PENDING_EMAILS_KEY, []).append(notification)
    logger.info(f"Notification {type} queued for user {user_id}")
    return notification


async def notify_round_members(
    session: AsyncSession,
    round_id: uuid.UUID,
    exclude_user_id: uuid.UUID | None,
    type: NotificationType,
    title: str,
    body: str,
    category: NotificationCategory = NotificationCategory.INFORMATION,
) -> int:
    result = await session.execute(select(RoundMember.user_id).where(RoundMember.round_id == round_id))
    recipients = [user_id for user_id in result.scalars().all() if user_id != exclude_user_id]
    for user_id in recipients:
        notify(session, user_id, type, title, body, category, round_id)
    return len(recipients)


async def commit_with_notifications(session: AsyncSession) -> None:
    """
    Commits the session, then hands any notification emails to the worker.
    """
    await session.commit()
    pending: list[Notification] = session.info.pop(PENDING_EMAILS_KEY, [])
    if not pending:
        return

    # Imported lazily so the API never needs a broker connection unless emails are on
    from app.worker import send_email_task

    users = await session.execute(select(User).where(User.id.in_({n.user_id for n in pending})))
    user_map = {u.id: u for u in users.scalars().all()}
    for notification in pending:
        user = user_map.get(notification.user_id)
        if not user:
            continue
        send_email_task.delay(
            email_to=user.email,
            subject=notification.title,
            html_template="notification.html",
            environment={
                "project_name": settings.PROJECT_NAME,
                "name": user.first_name,
                "title": notification.title,
                "body": notification.body,
                "round_link": f"{settings.FRONTEND_URL}/round/{notification.round_id}" if notification.round_id else settings.FRONTEND_URL,
            },
        )


async def discard_pending(session: AsyncSession) -> None:
    """
    Rolls back the session and drops emails queued by the abandoned transaction.
    """
    session.info.pop(PENDING_EMAILS_KEY, None)
    await session.rollback()
