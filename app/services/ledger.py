"""
Contribution ledger: materialized obligations and the contribution state machine.

Stored statuses move pending|late -> paid -> verified. ``late`` is also a
read-time projection: a pending contribution whose grace period has run out
reads as late whether or not the sweep has persisted it yet.
"""
import logging
import uuid
from datetime import datetime, timedelta

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import ForbiddenError, NotFoundError
from app.models.contribution import Contribution, PaymentProof, Payout
from app.models.enums import ContributionStatus, RoundStatus
from app.models.round import Round
from app.schemas.contribution import ContributionRead, PayoutRead
from app.schemas.timeline import ContributionRecordedData
from app.services import notifier
from app.services.rounds import list_members, require_active, require_member, user_names
from app.utils.schedule import recipient_for, rotation_slot, schedule_contributions, schedule_payouts

logger = logging.getLogger(__name__)

OPEN_STATUSES = (ContributionStatus.PENDING, ContributionStatus.LATE)
SETTLED_STATUSES = (ContributionStatus.PAID, ContributionStatus.VERIFIED)


def effective_status(
    status: ContributionStatus,
    due_date: datetime,
    grace_period_days: int,
    now: datetime,
) -> ContributionStatus:
    if status == ContributionStatus.PENDING and now > due_date + timedelta(days=grace_period_days):
        return ContributionStatus.LATE
    return ContributionStatus(status)


def contribution_status(contribution: Contribution, round_: Round, now: datetime) -> ContributionStatus:
    return effective_status(contribution.status, contribution.due_date, round_.grace_period_days, now)


async def sync_obligations(session: AsyncSession, round_: Round) -> int:
    """
    Inserts the contribution and payout rows the round's current membership implies.

    Existing rows are never modified, so calling this repeatedly is safe.
    Returns the number of rows added.
    """
    if round_.status != RoundStatus.ACTIVE or round_.start_date is None:
        return 0

    # Serializes concurrent materialization of the same round
    await session.execute(select(Round.id).where(Round.id == round_.id).with_for_update())

    members = await list_members(session, round_.id)
    n = round_.number_of_members

    result = await session.execute(
        select(Contribution.user_id, Contribution.cycle_number, Contribution.due_date)
        .where(Contribution.round_id == round_.id)
    )
    rows = result.all()
    existing_contributions = {(user_id, cycle) for user_id, cycle, _ in rows}
    # Each (cycle, slot) has its own due date; one settled by a former member stays covered
    covered_dates = {due_date for _, _, due_date in rows}
    result = await session.execute(select(Payout.cycle_index).where(Payout.round_id == round_.id))
    existing_payouts = set(result.scalars().all())

    due_dates = schedule_contributions(round_.start_date, round_.contribution_frequency, n, n)
    added = 0
    for member in members:
        slot = rotation_slot(member, members, round_.payout_order)
        if slot is None or slot >= n:
            continue
        for cycle in range(n):
            due_date = due_dates[cycle * n + slot]
            if (member.user_id, cycle) in existing_contributions or due_date in covered_dates:
                continue
            session.add(
                Contribution(
                    round_id=round_.id,
                    user_id=member.user_id,
                    cycle_number=cycle,
                    amount=round_.contribution_amount,
                    due_date=due_date,
                )
            )
            added += 1

    payout_dates = schedule_payouts(round_.start_date, round_.contribution_frequency, n, 1)
    for index, scheduled_date in enumerate(payout_dates):
        if index in existing_payouts:
            continue
        recipient = recipient_for(members, round_.payout_order, index, n)
        if recipient is None:
            continue
        session.add(
            Payout(
                round_id=round_.id,
                recipient_user_id=recipient.user_id,
                cycle_index=index,
                amount=round_.contribution_amount * n,
                scheduled_date=scheduled_date,
            )
        )
        added += 1

    if not added:
        # Releases the row lock
        await session.commit()
        return 0

    try:
        await session.commit()
    except IntegrityError:
        # Another request materialized the same rows first
        await session.rollback()
        await session.refresh(round_)
        logger.info(f"Obligations for round {round_.id} already materialized concurrently")
        return 0

    logger.info(f"Materialized {added} obligations for round {round_.id}")
    return added


async def mark_paid(
    session: AsyncSession,
    contribution_id: uuid.UUID,
    actor_id: uuid.UUID,
    now: datetime,
) -> Contribution:
    """
    Records that the owning member paid. Already settled contributions are returned unchanged.
    """
    contribution = await session.get(Contribution, contribution_id)
    if not contribution:
        raise NotFoundError("Contribution not found")
    if contribution.user_id != actor_id:
        logger.warning(f"User {actor_id} tried to mark contribution {contribution_id} owned by {contribution.user_id}")
        raise ForbiddenError("Only the contributing member can mark this contribution paid")

    # Former members keep settled rows as history but cannot act on them
    round_, _ = await require_member(session, contribution.round_id, actor_id)
    if contribution.status in SETTLED_STATUSES:
        return contribution
    require_active(round_)

    result = await session.execute(
        update(Contribution)
        .where(Contribution.id == contribution_id, Contribution.status.in_(OPEN_STATUSES))
        .values(status=ContributionStatus.PAID, paid_date=now)
    )
    if result.rowcount == 0:
        # A concurrent mark-paid or approval settled it first
        await session.commit()
        await session.refresh(contribution)
        return contribution

    notifier.record_event(
        session,
        round_.id,
        ContributionRecordedData(
            contribution_id=contribution.id,
            contribution_amount=str(contribution.amount),
            currency=round_.currency,
        ),
        actor_id,
    )
    await session.commit()
    await session.refresh(contribution)
    logger.info(f"Contribution {contribution_id} marked paid by {actor_id}")
    return contribution


def verify_contribution(session: AsyncSession, contribution: Contribution, now: datetime) -> None:
    """
    Moves a contribution to verified. Only an approved proof may call this; the caller commits.
    """
    contribution.status = ContributionStatus.VERIFIED
    if contribution.paid_date is None:
        contribution.paid_date = now
    session.add(contribution)
    logger.info(f"Contribution {contribution.id} verified")


async def current_proofs(session: AsyncSession, contribution_ids) -> dict[uuid.UUID, PaymentProof]:
    """
    Most recent proof per contribution.
    """
    ids = list(contribution_ids)
    if not ids:
        return {}
    result = await session.execute(
        select(PaymentProof)
        .where(PaymentProof.contribution_id.in_(ids))
        .order_by(PaymentProof.attempt)
    )
    latest = {}
    for proof in result.scalars().all():
        latest[proof.contribution_id] = proof
    return latest


async def list_contributions(
    session: AsyncSession,
    round_id: uuid.UUID,
    user_id: uuid.UUID,
    now: datetime,
) -> list[ContributionRead]:
    round_, _ = await require_member(session, round_id, user_id)
    await sync_obligations(session, round_)

    result = await session.execute(
        select(Contribution)
        .where(Contribution.round_id == round_id)
        .order_by(Contribution.due_date, Contribution.cycle_number)
    )
    contributions = result.scalars().all()
    names = await user_names(session, (c.user_id for c in contributions))
    proofs = await current_proofs(session, (c.id for c in contributions))
    return [
        ContributionRead(
            id=c.id,
            round_id=c.round_id,
            user_id=c.user_id,
            user_name=names.get(c.user_id),
            cycle_number=c.cycle_number,
            amount=c.amount,
            due_date=c.due_date,
            paid_date=c.paid_date,
            status=contribution_status(c, round_, now),
            proof_status=proofs[c.id].status if c.id in proofs else None,
            created_at=c.created_at,
        )
        for c in contributions
    ]


async def sweep_late(session: AsyncSession, now: datetime) -> int:
    """
    Persists pending -> late for every overdue contribution in an active round.
    """
    result = await session.execute(
        select(Contribution.id, Contribution.due_date, Round.grace_period_days)
        .join(Round, Round.id == Contribution.round_id)
        .where(
            Contribution.status == ContributionStatus.PENDING,
            Contribution.due_date < now,
            Round.status == RoundStatus.ACTIVE,
        )
    )
    overdue = [
        contribution_id
        for contribution_id, due_date, grace_period_days in result.all()
        if now > due_date + timedelta(days=grace_period_days)
    ]
    if not overdue:
        return 0

    result = await session.execute(
        update(Contribution)
        .where(Contribution.id.in_(overdue), Contribution.status == ContributionStatus.PENDING)
        .values(status=ContributionStatus.LATE)
    )
    await session.commit()
    logger.info(f"Marked {result.rowcount} contributions late")
    return result.rowcount


async def round_obligations(
    session: AsyncSession,
    round_id: uuid.UUID,
) -> tuple[list[Contribution], list[Payout]]:
    contributions = await session.execute(select(Contribution).where(Contribution.round_id == round_id))
    payouts = await session.execute(
        select(Payout).where(Payout.round_id == round_id).order_by(Payout.cycle_index)
    )
    return list(contributions.scalars().all()), list(payouts.scalars().all())


async def list_payouts(session: AsyncSession, round_id: uuid.UUID, user_id: uuid.UUID) -> list[PayoutRead]:
    """
    Payout schedule of a round. Organizers see every payout, members only their own.
    """
    round_, _ = await require_member(session, round_id, user_id)
    await sync_obligations(session, round_)

    query = select(Payout).where(Payout.round_id == round_id).order_by(Payout.cycle_index)
    if round_.organizer_id != user_id:
        query = query.where(Payout.recipient_user_id == user_id)
    result = await session.execute(query)
    payouts = result.scalars().all()

    members = await list_members(session, round_id)
    positions = {m.user_id: m.payout_position for m in members}
    names = await user_names(session, (p.recipient_user_id for p in payouts))
    return [
        PayoutRead(
            id=p.id,
            recipient_user_id=p.recipient_user_id,
            recipient_name=names.get(p.recipient_user_id),
            payout_position=positions.get(p.recipient_user_id),
            cycle_index=p.cycle_index,
            amount=p.amount,
            scheduled_date=p.scheduled_date,
            completed_date=p.completed_date,
            status=p.status,
        )
        for p in payouts
    ]
