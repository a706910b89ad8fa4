import logging
import uuid
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import CalendarEventType, CalendarFilter, RoundRole
from app.schemas.dashboard import CalendarEntry
from app.services import ledger
from app.services.rounds import list_rounds, user_names

logger = logging.getLogger(__name__)


async def upcoming_events(
    session: AsyncSession,
    user_id: uuid.UUID,
    filter: CalendarFilter,
    now: datetime,
) -> list[CalendarEntry]:
    """
    Future payouts and contribution due dates across the user's rounds, soonest first.

    Organizers see every payout of their rounds; members see only their own.
    """
    entries: list[CalendarEntry] = []
    for round_, membership in await list_rounds(session, user_id):
        is_organizer = round_.organizer_id == user_id
        if filter == CalendarFilter.ORGANIZED and not is_organizer:
            continue
        if filter == CalendarFilter.JOINED and is_organizer:
            continue
        if round_.start_date is None:
            logger.warning(f"Round {round_.id} has no start date")
            continue

        await ledger.sync_obligations(session, round_)
        contributions, payouts = await ledger.round_obligations(session, round_.id)
        role = RoundRole.ORGANIZER if is_organizer else membership.role

        visible = [
            p for p in payouts
            if p.scheduled_date >= now and (is_organizer or p.recipient_user_id == user_id)
        ]
        names = await user_names(session, (p.recipient_user_id for p in visible))
        for payout in visible:
            entries.append(
                CalendarEntry(
                    round_id=round_.id,
                    round_name=round_.name,
                    date=payout.scheduled_date,
                    event_type=CalendarEventType.PAYOUT,
                    recipient_user_id=payout.recipient_user_id,
                    recipient_name=names.get(payout.recipient_user_id),
                    amount=payout.amount,
                    currency=round_.currency,
                    user_role=role,
                    status=payout.status,
                )
            )

        for contribution in contributions:
            if contribution.user_id != user_id or contribution.due_date < now:
                continue
            entries.append(
                CalendarEntry(
                    round_id=round_.id,
                    round_name=round_.name,
                    date=contribution.due_date,
                    event_type=CalendarEventType.CONTRIBUTION_DUE,
                    amount=contribution.amount,
                    currency=round_.currency,
                    user_role=role,
                    status=ledger.contribution_status(contribution, round_, now),
                )
            )

    entries.sort(key=lambda e: (e.date, e.event_type != CalendarEventType.PAYOUT, str(e.round_id)))
    logger.info(f"Calendar for user {user_id} ({filter}): {len(entries)} entries")
    return entries
