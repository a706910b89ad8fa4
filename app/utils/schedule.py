"""
Calendar and payout-rotation math for rounds.

Every function here is pure: no database access and no clock reads. Callers
pass ``now`` explicitly wherever the current time matters.
"""
from datetime import datetime, timedelta
from typing import Iterable, Protocol, Sequence, TypeVar

from app.core.errors import NotFoundError, ValidationError
from app.models.enums import ContributionFrequency, PayoutOrder

# Monthly is a fixed 30-day approximation, not calendar-month aware
INTERVAL_DAYS = {
    ContributionFrequency.DAILY: 1,
    ContributionFrequency.WEEKLY: 7,
    ContributionFrequency.BIWEEKLY: 14,
    ContributionFrequency.MONTHLY: 30,
}


class RotationMember(Protocol):
    payout_position: int | None
    rotation_index: int | None
    joined_at: datetime
    participates: bool


M = TypeVar("M", bound=RotationMember)


def interval_days(frequency: ContributionFrequency | str) -> int:
    try:
        return INTERVAL_DAYS[ContributionFrequency(frequency)]
    except ValueError:
        raise ValidationError(f"Unsupported contribution frequency: {frequency}")


def _check_counts(number_of_members: int, cycles_to_generate: int) -> None:
    if number_of_members < 1:
        raise ValidationError("number_of_members must be at least 1")
    if cycles_to_generate < 0:
        raise ValidationError("cycles_to_generate cannot be negative")


def schedule_contributions(
    start_date: datetime,
    frequency: ContributionFrequency | str,
    number_of_members: int,
    cycles_to_generate: int,
) -> list[datetime]:
    """
    Due dates for every (cycle, member slot) pair, ordered by cycle then slot.

    Within a cycle the member slots are spread one interval apart, so a cycle
    spans ``number_of_members`` intervals.
    """
    _check_counts(number_of_members, cycles_to_generate)
    step = interval_days(frequency)
    return [
        start_date + timedelta(days=cycle * step * number_of_members + slot * step)
        for cycle in range(cycles_to_generate)
        for slot in range(number_of_members)
    ]


def schedule_payouts(
    start_date: datetime,
    frequency: ContributionFrequency | str,
    number_of_members: int,
    cycles_to_generate: int,
) -> list[datetime]:
    """
    One payout date per interval, ``number_of_members * cycles_to_generate`` in total.

    Unlike contributions these are not bundled per cycle.
    """
    _check_counts(number_of_members, cycles_to_generate)
    step = interval_days(frequency)
    return [
        start_date + timedelta(days=index * step)
        for index in range(number_of_members * cycles_to_generate)
    ]


def current_cycle(
    start_date: datetime,
    frequency: ContributionFrequency | str,
    number_of_members: int,
    now: datetime,
) -> int:
    """
    0-based index of the contribution cycle containing ``now``; 0 before the round starts.
    """
    _check_counts(number_of_members, 0)
    if now <= start_date:
        return 0
    cycle_days = interval_days(frequency) * number_of_members
    return (now - start_date).days // cycle_days


def rotation_order(members: Iterable[M], payout_order: PayoutOrder | str) -> list[M]:
    """
    Participating members in payout order.

    Fixed order sorts by payout position. "Random" order sorts by the rotation
    index stored at join, which is join order until a member leaves and the
    freed slot is reused.
    """
    participants = [m for m in members if m.participates]
    if PayoutOrder(payout_order) == PayoutOrder.FIXED:
        return sorted(
            participants,
            key=lambda m: (m.payout_position is None, m.payout_position or 0, m.joined_at),
        )
    # sorted() is stable, so equal join times keep their input order
    return sorted(
        participants,
        key=lambda m: (m.rotation_index is None, m.rotation_index or 0, m.joined_at),
    )


def recipient_for(
    members: Sequence[M],
    payout_order: PayoutOrder | str,
    cycle_index: int,
    number_of_members: int | None = None,
) -> M | None:
    """
    Member receiving payout ``cycle_index``, or None when that slot is not filled yet.
    """
    rotation = rotation_order(members, payout_order)
    size = number_of_members or len(rotation)
    if size < 1:
        return None
    slot = cycle_index % size
    return next((m for m in rotation if rotation_slot(m, rotation, payout_order) == slot), None)


def resolve_recipient(
    members: Sequence[M],
    payout_order: PayoutOrder | str,
    cycle_index: int,
    number_of_members: int | None = None,
) -> M:
    if not any(m.participates for m in members):
        raise ValidationError("Round has no participating members")
    recipient = recipient_for(members, payout_order, cycle_index, number_of_members)
    if recipient is None:
        raise NotFoundError(f"No member holds the payout slot for cycle {cycle_index}")
    return recipient


def rotation_slot(
    member: M,
    members: Sequence[M],
    payout_order: PayoutOrder | str,
) -> int | None:
    """
    0-based slot of ``member`` inside a contribution cycle, None for non-participants.
    """
    if not member.participates:
        return None
    if PayoutOrder(payout_order) == PayoutOrder.FIXED:
        return member.payout_position - 1 if member.payout_position else None
    if member.rotation_index is not None:
        return member.rotation_index
    rotation = rotation_order(members, payout_order)
    for index, candidate in enumerate(rotation):
        if candidate is member:
            return index
    return None


def next_rotation_index(taken_indexes: Iterable[int | None], number_of_members: int) -> int | None:
    """
    Lowest free 0-based rotation slot, None when all ``number_of_members`` are held.
    """
    taken = {i for i in taken_indexes if i is not None}
    for index in range(number_of_members):
        if index not in taken:
            return index
    return None


def next_payout_position(
    taken_positions: Iterable[int | None],
    number_of_members: int,
    payout_order: PayoutOrder | str,
) -> int | None:
    """
    Position for the next admitted member: the lowest free slot, which is
    ``current_count + 1`` while no member has left. None unless order is fixed.
    """
    if PayoutOrder(payout_order) != PayoutOrder.FIXED:
        return None
    taken = {p for p in taken_positions if p is not None}
    for position in range(1, number_of_members + 1):
        if position not in taken:
            return position
    return None
