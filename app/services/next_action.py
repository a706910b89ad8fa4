"""
"What should I do next" for one round and across all of a user's rounds.

Within a round the choice is by priority: overdue contributions, then the
earliest upcoming contribution, then the user's earliest upcoming payout.
Across rounds the earliest date wins, and any overdue round flags the user
as needing action.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Sequence

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.contribution import Contribution, PaymentProof, Payout
from app.models.enums import ContributionStatus, GlobalStatus, PayoutStatus, ProofStatus, RoundRole, RoundStatus
from app.models.notification import Notification
from app.schemas.dashboard import (
    ActionItem,
    ActiveRound,
    ContributionProgress,
    CurrentPayoutStatus,
    DashboardSummary,
    MemberCount,
    RoundDetails,
    RoundOverview,
)
from app.services import ledger
from app.services.rounds import list_members, list_rounds, require_member, user_names

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NextAction:
    date: datetime
    action: str
    overdue_count: int = 0

    @property
    def is_overdue(self) -> bool:
        return self.overdue_count > 0


def format_money(currency: str, amount: Decimal) -> str:
    return f"{currency} {Decimal(amount):.2f}"


def round_next_action(
    contributions: Iterable[Contribution],
    payouts: Iterable[Payout],
    user_id: uuid.UUID,
    currency: str,
    grace_period_days: int,
    now: datetime,
) -> NextAction | None:
    own = [c for c in contributions if c.user_id == user_id]

    overdue = [
        c for c in own
        if ledger.effective_status(c.status, c.due_date, grace_period_days, now) == ContributionStatus.LATE
    ]
    if overdue:
        return NextAction(now, f"{len(overdue)} overdue contribution(s)", len(overdue))

    upcoming = [c for c in own if c.status == ContributionStatus.PENDING and c.due_date > now]
    if upcoming:
        due = min(upcoming, key=lambda c: (c.due_date, c.cycle_number))
        return NextAction(due.due_date, f"Contribution due: {format_money(currency, due.amount)}")

    scheduled = [
        p for p in payouts
        if p.recipient_user_id == user_id and p.status == PayoutStatus.SCHEDULED and p.scheduled_date >= now
    ]
    if scheduled:
        payout = min(scheduled, key=lambda p: p.scheduled_date)
        return NextAction(payout.scheduled_date, f"Payout scheduled: {format_money(currency, payout.amount)}")

    return None


def summarize(actions: Iterable[NextAction | None]) -> tuple[GlobalStatus, NextAction | None]:
    """
    Earliest action across rounds, and whether any round is overdue.
    """
    found = [a for a in actions if a is not None]
    status = GlobalStatus.ACTION_NEEDED if any(a.is_overdue for a in found) else GlobalStatus.HEALTHY
    if not found:
        return status, None
    return status, min(found, key=lambda a: a.date)


def contribution_progress(
    contributions: Sequence[Contribution],
    grace_period_days: int,
    now: datetime,
) -> ContributionProgress:
    progress = ContributionProgress(total=len(contributions))
    for c in contributions:
        status = ledger.effective_status(c.status, c.due_date, grace_period_days, now)
        if status in ledger.SETTLED_STATUSES:
            progress.paid += 1
        elif status == ContributionStatus.LATE:
            progress.late += 1
        else:
            progress.pending += 1
    return progress


async def round_overview(
    session: AsyncSession,
    round_id: uuid.UUID,
    user_id: uuid.UUID,
    now: datetime,
) -> RoundOverview:
    round_, membership = await require_member(session, round_id, user_id)
    await ledger.sync_obligations(session, round_)

    contributions, payouts = await ledger.round_obligations(session, round_id)
    members = await list_members(session, round_id)

    payout_status = CurrentPayoutStatus()
    upcoming = [p for p in payouts if p.status == PayoutStatus.SCHEDULED and p.scheduled_date >= now]
    if upcoming:
        next_payout = min(upcoming, key=lambda p: p.scheduled_date)
        names = await user_names(session, [next_payout.recipient_user_id])
        payout_status = CurrentPayoutStatus(
            next_payout_date=next_payout.scheduled_date,
            next_recipient_user_id=next_payout.recipient_user_id,
            next_recipient=names.get(next_payout.recipient_user_id),
            position=next_payout.cycle_index + 1,
        )

    action = round_next_action(
        contributions, payouts, user_id, round_.currency, round_.grace_period_days, now
    )
    return RoundOverview(
        round_details=RoundDetails(
            id=round_.id,
            name=round_.name,
            description=round_.description,
            currency=round_.currency,
            status=round_.status,
        ),
        contribution_progress=contribution_progress(contributions, round_.grace_period_days, now),
        current_payout_status=payout_status,
        next_important_date=action.date if action else None,
        next_important_action=action.action if action else None,
        member_count=MemberCount(
            current=sum(1 for m in members if m.participates),
            total=round_.number_of_members,
        ),
        user_role=membership.role,
    )


async def dashboard(session: AsyncSession, user_id: uuid.UUID, now: datetime) -> DashboardSummary:
    memberships = await list_rounds(session, user_id)

    active_rounds = []
    action_items = []
    actions = []
    for round_, membership in memberships:
        if round_.status != RoundStatus.ACTIVE:
            continue
        await ledger.sync_obligations(session, round_)
        contributions, payouts = await ledger.round_obligations(session, round_.id)

        action = round_next_action(
            contributions, payouts, user_id, round_.currency, round_.grace_period_days, now
        )
        actions.append(action)
        active_rounds.append(
            ActiveRound(
                id=round_.id,
                name=round_.name,
                description=round_.description,
                currency=round_.currency,
                contribution_amount=round_.contribution_amount,
                number_of_members=round_.number_of_members,
                start_date=round_.start_date,
                status=round_.status,
                next_important_date=action.date if action else None,
                next_important_action=action.action if action else None,
            )
        )

        if membership.role == RoundRole.ORGANIZER:
            result = await session.execute(
                select(func.count(PaymentProof.id)).where(
                    PaymentProof.round_id == round_.id,
                    PaymentProof.status == ProofStatus.PENDING,
                )
            )
            pending_proofs = result.scalar_one()
            if pending_proofs:
                action_items.append(
                    ActionItem(type="pending_proofs", round_id=round_.id, round_name=round_.name, count=pending_proofs)
                )
        if action and action.is_overdue:
            action_items.append(
                ActionItem(
                    type="overdue_contributions",
                    round_id=round_.id,
                    round_name=round_.name,
                    count=action.overdue_count,
                )
            )

    global_status, next_action = summarize(actions)

    result = await session.execute(
        select(func.count(Notification.id)).where(
            Notification.user_id == user_id,
            Notification.is_read.is_(False),
        )
    )
    unread = result.scalar_one()

    logger.info(f"Dashboard for user {user_id}: {len(active_rounds)} active rounds, status {global_status}")
    return DashboardSummary(
        global_status=global_status,
        next_important_date=next_action.date if next_action else None,
        next_important_action=next_action.action if next_action else None,
        rounds_count=len(active_rounds),
        unread_notification_count=unread,
        action_items=action_items,
        active_rounds=active_rounds,
    )
