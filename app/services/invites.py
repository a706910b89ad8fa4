"""
Invite codes and membership admission.
"""
import logging
import uuid
from datetime import datetime

from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import ConflictError, GoneError, NotFoundError, RoundsError
from app.models.enums import NotificationCategory, NotificationType, RoundRole, RoundStatus
from app.models.round import InviteLink, Round, RoundMember
from app.models.user import User
from app.schemas.invite import InvitePreview, JoinResult
from app.schemas.timeline import MemberJoinedData
from app.services import notifier
from app.services.ledger import sync_obligations
from app.services.rounds import get_membership, list_members, require_organizer
from app.utils.codes import generate_invite_code
from app.utils.schedule import next_payout_position, next_rotation_index

logger = logging.getLogger(__name__)


def _check_usable(invite: InviteLink, now: datetime) -> None:
    if invite.expires_at is not None and invite.expires_at <= now:
        raise GoneError("Invite link has expired")
    if invite.max_uses is not None and invite.use_count >= invite.max_uses:
        raise GoneError("Invite link has reached its usage limit")


async def get_invite(session: AsyncSession, code: str) -> InviteLink:
    result = await session.execute(
        select(InviteLink).where(InviteLink.code == code).execution_options(populate_existing=True)
    )
    invite = result.scalar_one_or_none()
    if not invite:
        raise NotFoundError("Invalid invite code")
    return invite


async def preview_invite(session: AsyncSession, code: str, now: datetime) -> InvitePreview:
    invite = await get_invite(session, code)
    _check_usable(invite, now)

    round_ = await session.get(Round, invite.round_id)
    if not round_:
        raise NotFoundError("Round not found")
    organizer = await session.get(User, round_.organizer_id)
    members = await list_members(session, round_.id)

    return InvitePreview(
        round_id=round_.id,
        name=round_.name,
        description=round_.description,
        currency=round_.currency,
        contribution_amount=round_.contribution_amount,
        contribution_frequency=round_.contribution_frequency,
        start_date=round_.start_date,
        payout_order=round_.payout_order,
        number_of_members=round_.number_of_members,
        current_member_count=sum(1 for m in members if m.participates),
        grace_period_days=round_.grace_period_days,
        payment_verification=round_.payment_verification,
        organizer_name=organizer.display_name if organizer else "",
    )


async def redeem_invite(session: AsyncSession, code: str, user: User, now: datetime) -> JoinResult:
    """
    Admits ``user`` to the invite's round.

    The use-count increment and the membership insert commit together or not
    at all. The round row is locked for the capacity check, and the unique
    constraints on (round, user) and on the rotation slot reject whatever slips
    past a database without row locks.
    """
    user_id = user.id
    user_name = user.display_name

    invite = await get_invite(session, code)
    _check_usable(invite, now)

    try:
        result = await session.execute(select(Round).where(Round.id == invite.round_id).with_for_update())
        round_ = result.scalar_one_or_none()
        if not round_:
            raise NotFoundError("Round not found")
        if round_.status != RoundStatus.ACTIVE:
            raise ConflictError("Round is archived")
        if await get_membership(session, round_.id, user_id):
            raise ConflictError("Already a member of this round")

        members = await list_members(session, round_.id)
        participants = [m for m in members if m.participates]
        if len(participants) >= round_.number_of_members:
            raise ConflictError("Round is full")

        claimed = await session.execute(
            update(InviteLink)
            .where(
                InviteLink.id == invite.id,
                or_(InviteLink.max_uses.is_(None), InviteLink.use_count < InviteLink.max_uses),
                or_(InviteLink.expires_at.is_(None), InviteLink.expires_at > now),
            )
            .values(use_count=InviteLink.use_count + 1)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount == 0:
            raise GoneError("Invite link is no longer valid")

        position = next_payout_position(
            (m.payout_position for m in members), round_.number_of_members, round_.payout_order
        )
        member = RoundMember(
            round_id=round_.id,
            user_id=user_id,
            role=RoundRole.MEMBER,
            payout_position=position,
            rotation_index=next_rotation_index((m.rotation_index for m in participants), round_.number_of_members),
            participates=True,
            joined_at=now,
        )
        session.add(member)

        notifier.record_event(
            session, round_.id, MemberJoinedData(member_name=user_name, payout_position=position), user_id
        )
        notifier.notify(
            session,
            round_.organizer_id,
            NotificationType.MEMBER_JOINED,
            "New member joined",
            f'{user_name} joined "{round_.name}"',
            NotificationCategory.INFORMATION,
            round_.id,
        )
        await notifier.commit_with_notifications(session)
    except IntegrityError:
        await notifier.discard_pending(session)
        logger.warning(f"Concurrent admission conflict for user {user_id} on invite {code}")
        raise ConflictError("Could not join round: membership changed concurrently")
    except RoundsError as e:
        await notifier.discard_pending(session)
        logger.warning(f"User {user_id} could not redeem invite {code}: {e.message}")
        raise

    logger.info(f"User {user_id} joined round {round_.id} at position {position}")
    await sync_obligations(session, round_)

    return JoinResult(
        round_id=round_.id,
        name=round_.name,
        status=round_.status,
        role=RoundRole.MEMBER,
        payout_position=position,
    )


async def get_invite_link(session: AsyncSession, round_id: uuid.UUID, actor_id: uuid.UUID) -> InviteLink:
    """
    The round's newest invite link, created on first use if the round has none.
    """
    await require_organizer(session, round_id, actor_id, "view the invite link")
    result = await session.execute(
        select(InviteLink)
        .where(InviteLink.round_id == round_id)
        .order_by(InviteLink.created_at.desc())
        .limit(1)
        .execution_options(populate_existing=True)
    )
    invite = result.scalar_one_or_none()
    if invite:
        return invite

    invite = InviteLink(round_id=round_id, code=generate_invite_code(), created_by=actor_id)
    session.add(invite)
    await session.commit()
    await session.refresh(invite)
    logger.info(f"Invite link created for round {round_id}")
    return invite
