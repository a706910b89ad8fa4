import uuid
from fastapi import APIRouter, HTTPException, Request
from sqlmodel import select

from app.api.deps import CurrentUser, SessionDep
from app.core.rate_limit import limiter
from app.models.enums import NotificationCategory
from app.models.notification import Notification
from app.schemas.notification import NotificationGroups, NotificationInbox, NotificationRead
from app.schemas.response import APIResponse

router = APIRouter()

@router.get("/", response_model=APIResponse[NotificationInbox])
@limiter.limit("20/minute")
async def get_notifications(request: Request, current_user: CurrentUser, session: SessionDep):
    """
    Retrieve the current user's notifications, newest first, grouped by category.
    """
    query = (
        select(Notification)
        .where(Notification.user_id == current_user.id)
        .order_by(Notification.created_at.desc())
    )
    result = await session.execute(query)
    notifications = result.scalars().all()

    groups = NotificationGroups()
    for notification in notifications:
        read = NotificationRead.model_validate(notification)
        if notification.category == NotificationCategory.ACTION_REQUIRED:
            groups.action_required.append(read)
        elif notification.category == NotificationCategory.UPCOMING:
            groups.upcoming.append(read)
        else:
            groups.information.append(read)

    inbox = NotificationInbox(
        unread_count=sum(1 for n in notifications if not n.is_read),
        notifications=groups,
    )
    return APIResponse(message="Notifications retrieved", data=inbox)

@router.post("/{notification_id}/read", response_model=APIResponse[NotificationRead])
@limiter.limit("50/minute")
async def mark_as_read(request: Request, notification_id: uuid.UUID, current_user: CurrentUser, session: SessionDep):
    """
    Mark a specific notification as read.
    """
    notification = await session.get(Notification, notification_id)
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")

    if notification.user_id != current_user.id:
        raise HTTPException(status_code=403, detail="Not your notification")

    notification.is_read = True
    session.add(notification)
    await session.commit()
    await session.refresh(notification)

    return APIResponse(message="Marked as read", data=notification)

@router.post("/read-all", response_model=APIResponse[dict])
@limiter.limit("10/minute")
async def mark_all_as_read(request: Request, current_user: CurrentUser, session: SessionDep):
    result = await session.execute(
        select(Notification).where(Notification.user_id == current_user.id, Notification.is_read.is_(False))
    )
    unread = result.scalars().all()
    for notification in unread:
        notification.is_read = True
        session.add(notification)
    await session.commit()
    return APIResponse(message="All notifications marked as read", data={"updated": len(unread)})
