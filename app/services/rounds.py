"""
Round lifecycle: creation, settings, archival, membership and timeline reads.
"""
import logging
import uuid
from datetime import datetime

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import settings
from app.core.errors import ForbiddenError, NotFoundError, StateError, ValidationError
from app.models.contribution import Contribution, PaymentProof, Payout
from app.models.enums import (
    ContributionStatus,
    NotificationType,
    PayoutOrder,
    PayoutStatus,
    RoundRole,
    RoundStatus,
    StartType,
)
from app.models.round import InviteLink, Round, RoundMember
from app.models.timeline import TimelineEvent
from app.models.user import User
from app.schemas.round import RoundCreate, RoundMemberRead, RoundSettingsUpdate
from app.schemas.timeline import (
    MemberRemovedData,
    RoundCreatedData,
    RoundUpdatedData,
    TimelineEventRead,
)
from app.services import notifier
from app.utils.codes import generate_invite_code
from app.utils.time import as_naive_utc

logger = logging.getLogger(__name__)


async def get_round(session: AsyncSession, round_id: uuid.UUID) -> Round:
    round_ = await session.get(Round, round_id)
    if not round_:
        raise NotFoundError("Round not found")
    return round_


async def get_membership(session: AsyncSession, round_id: uuid.UUID, user_id: uuid.UUID) -> RoundMember | None:
    result = await session.execute(
        select(RoundMember).where(RoundMember.round_id == round_id, RoundMember.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def require_member(session: AsyncSession, round_id: uuid.UUID, user_id: uuid.UUID) -> tuple[Round, RoundMember]:
    round_ = await get_round(session, round_id)
    member = await get_membership(session, round_id, user_id)
    if not member:
        raise ForbiddenError("Not a member of this round")
    return round_, member


async def require_organizer(session: AsyncSession, round_id: uuid.UUID, user_id: uuid.UUID, action: str) -> Round:
    round_ = await get_round(session, round_id)
    if round_.organizer_id != user_id:
        logger.warning(f"User {user_id} is not organizer of round {round_id}")
        raise ForbiddenError(f"Only the organizer can {action}")
    return round_


def require_active(round_: Round) -> None:
    if round_.status != RoundStatus.ACTIVE:
        raise StateError("Round is archived")


async def list_members(session: AsyncSession, round_id: uuid.UUID) -> list[RoundMember]:
    result = await session.execute(
        select(RoundMember).where(RoundMember.round_id == round_id).order_by(RoundMember.joined_at)
    )
    return list(result.scalars().all())


async def user_names(session: AsyncSession, user_ids) -> dict[uuid.UUID, str]:
    ids = set(user_ids)
    if not ids:
        return {}
    result = await session.execute(select(User).where(User.id.in_(ids)))
    return {u.id: u.display_name for u in result.scalars().all()}


async def create_round(
    session: AsyncSession,
    round_in: RoundCreate,
    organizer: User,
    now: datetime,
) -> tuple[Round, str]:
    """
    Create a round with the organizer as member #1 and a fresh invite link.
    """
    if round_in.start_type == StartType.IMMEDIATE:
        start_date = now
    elif round_in.start_date is None:
        raise ValidationError(f"start_date is required when start_type is '{round_in.start_type}'")
    else:
        start_date = as_naive_utc(round_in.start_date)

    if round_in.number_of_members > settings.MAX_ROUND_MEMBERS:
        raise ValidationError(f"Number of members cannot exceed {settings.MAX_ROUND_MEMBERS}")

    round_ = Round.model_validate(
        round_in,
        update={
            "start_date": start_date,
            "organizer_id": organizer.id,
            "status": RoundStatus.ACTIVE,
            "created_at": now,
            "updated_at": now,
        },
    )
    session.add(round_)
    await session.flush()

    participates = round_in.organizer_participates
    session.add(
        RoundMember(
            round_id=round_.id,
            user_id=organizer.id,
            role=RoundRole.ORGANIZER,
            payout_position=1 if participates and round_.payout_order == PayoutOrder.FIXED else None,
            rotation_index=0 if participates else None,
            participates=participates,
            joined_at=now,
        )
    )

    invite_code = generate_invite_code()
    session.add(InviteLink(round_id=round_.id, code=invite_code, created_by=organizer.id))
    notifier.record_event(session, round_.id, RoundCreatedData(round_name=round_.name), organizer.id)

    await session.commit()
    await session.refresh(round_)
    logger.info(f"Round {round_.id} created by {organizer.id} with invite code {invite_code}")
    return round_, invite_code


async def list_rounds(session: AsyncSession, user_id: uuid.UUID) -> list[tuple[Round, RoundMember]]:
    result = await session.execute(
        select(Round, RoundMember)
        .join(RoundMember, RoundMember.round_id == Round.id)
        .where(RoundMember.user_id == user_id)
        .order_by(Round.created_at.desc())
    )
    return [(round_, member) for round_, member in result.all()]


async def member_reads(session: AsyncSession, members: list[RoundMember]) -> list[RoundMemberRead]:
    names = await user_names(session, (m.user_id for m in members))
    return [
        RoundMemberRead(
            id=m.id,
            user_id=m.user_id,
            user_name=names.get(m.user_id, str(m.user_id)),
            role=m.role,
            payout_position=m.payout_position,
            participates=m.participates,
            joined_at=m.joined_at,
        )
        for m in members
    ]


async def update_settings(
    session: AsyncSession,
    round_id: uuid.UUID,
    actor_id: uuid.UUID,
    settings_in: RoundSettingsUpdate,
    now: datetime,
) -> Round:
    round_ = await require_organizer(session, round_id, actor_id, "update round settings")

    changes = settings_in.model_dump(exclude_unset=True)
    for key, value in changes.items():
        setattr(round_, key, value)
    round_.updated_at = now
    session.add(round_)

    notifier.record_event(session, round_id, RoundUpdatedData(changed_fields=sorted(changes)), actor_id)
    await notifier.notify_round_members(
        session,
        round_id,
        actor_id,
        NotificationType.ROUND_UPDATED,
        "Round settings updated",
        f'Round "{round_.name}" settings have been updated',
    )
    await notifier.commit_with_notifications(session)
    await session.refresh(round_)
    logger.info(f"Round {round_id} settings updated: {sorted(changes)}")
    return round_


async def archive_round(session: AsyncSession, round_id: uuid.UUID, actor_id: uuid.UUID, now: datetime) -> Round:
    round_ = await require_organizer(session, round_id, actor_id, "archive the round")
    if round_.status == RoundStatus.ARCHIVED:
        return round_

    round_.status = RoundStatus.ARCHIVED
    round_.updated_at = now
    session.add(round_)

    notifier.record_event(session, round_id, RoundUpdatedData(action="archived"), actor_id)
    await notifier.notify_round_members(
        session,
        round_id,
        actor_id,
        NotificationType.ROUND_UPDATED,
        "Round archived",
        f'Round "{round_.name}" has been archived',
    )
    await notifier.commit_with_notifications(session)
    await session.refresh(round_)
    logger.info(f"Round {round_id} archived")
    return round_


async def remove_member(
    session: AsyncSession,
    round_id: uuid.UUID,
    actor_id: uuid.UUID,
    member_user_id: uuid.UUID,
) -> None:
    """
    Removes a member and frees their rotation slot.

    The member's open contributions and scheduled payouts go in the same
    transaction, so whoever joins next inherits the slot and its obligations.
    Settled rows stay as history.
    """
    round_ = await require_organizer(session, round_id, actor_id, "remove members")
    if member_user_id == actor_id:
        raise ValidationError("Organizer cannot remove themselves")

    member = await get_membership(session, round_id, member_user_id)
    if not member:
        raise NotFoundError("Member not found")

    # Serializes against obligation materialization for the same round
    await session.execute(select(Round.id).where(Round.id == round_id).with_for_update())

    result = await session.execute(
        select(Contribution.id).where(
            Contribution.round_id == round_id,
            Contribution.user_id == member_user_id,
            Contribution.status.in_((ContributionStatus.PENDING, ContributionStatus.LATE)),
        )
    )
    open_ids = list(result.scalars().all())
    if open_ids:
        await session.execute(delete(PaymentProof).where(PaymentProof.contribution_id.in_(open_ids)))
        await session.execute(delete(Contribution).where(Contribution.id.in_(open_ids)))
    payouts = await session.execute(
        delete(Payout).where(
            Payout.round_id == round_id,
            Payout.recipient_user_id == member_user_id,
            Payout.status == PayoutStatus.SCHEDULED,
        )
    )

    await session.delete(member)
    notifier.record_event(session, round_.id, MemberRemovedData(member_user_id=member_user_id), actor_id)
    await session.commit()
    logger.info(
        f"Member {member_user_id} removed from round {round_id}; "
        f"dropped {len(open_ids)} open contributions and {payouts.rowcount} scheduled payouts"
    )


async def list_timeline(session: AsyncSession, round_id: uuid.UUID, user_id: uuid.UUID) -> list[TimelineEventRead]:
    await require_member(session, round_id, user_id)
    result = await session.execute(
        select(TimelineEvent)
        .where(TimelineEvent.round_id == round_id)
        .order_by(TimelineEvent.created_at.desc())
        .limit(settings.TIMELINE_LIMIT)
    )
    events = result.scalars().all()
    names = await user_names(session, (e.user_id for e in events if e.user_id))
    return [
        TimelineEventRead(
            id=e.id,
            event_type=e.event_type,
            user_id=e.user_id,
            user_name=names.get(e.user_id) if e.user_id else None,
            event_data=e.event_data,
            created_at=e.created_at,
        )
        for e in events
    ]
