from typing import List
import uuid
from fastapi import APIRouter

from app.api.deps import CurrentUser, Now, SessionDep
from app.schemas.contribution import ContributionRead, PayoutRead
from app.schemas.dashboard import RoundOverview
from app.schemas.invite import InviteLinkRead
from app.schemas.response import APIResponse
from app.schemas.round import (
    RoundCreate,
    RoundCreated,
    RoundDetail,
    RoundMemberRead,
    RoundRead,
    RoundSettingsUpdate,
    RoundSummary,
)
from app.schemas.timeline import TimelineEventRead
from app.services import invites, ledger, next_action, rounds

router = APIRouter()

@router.post("/", response_model=APIResponse[RoundCreated])
async def create_round(round_in: RoundCreate, current_user: CurrentUser, session: SessionDep, now: Now):
    """
    Create a new round.

    The creator becomes the organizer and member #1, and an invite code is generated.
    """
    round_, invite_code = await rounds.create_round(session, round_in, current_user, now)
    data = RoundCreated.model_validate(round_, update={"invite_code": invite_code})
    return APIResponse(message="Round created successfully", data=data)

@router.get("/", response_model=APIResponse[List[RoundSummary]])
async def get_rounds(current_user: CurrentUser, session: SessionDep):
    """
    List all rounds where the current user is a member.
    """
    memberships = await rounds.list_rounds(session, current_user.id)
    data = [RoundSummary.model_validate(round_, update={"role": member.role}) for round_, member in memberships]
    return APIResponse(message="Rounds retrieved", data=data)

@router.get("/{round_id}", response_model=APIResponse[RoundDetail])
async def get_round(round_id: uuid.UUID, current_user: CurrentUser, session: SessionDep):
    """
    Get details of a specific round. Only members can view it.
    """
    round_, _ = await rounds.require_member(session, round_id, current_user.id)
    members = await rounds.member_reads(session, await rounds.list_members(session, round_id))
    data = RoundDetail.model_validate(round_, update={"members": members})
    return APIResponse(message="Round details retrieved", data=data)

@router.put("/{round_id}/settings", response_model=APIResponse[RoundRead])
async def update_round_settings(
    round_id: uuid.UUID,
    settings_in: RoundSettingsUpdate,
    current_user: CurrentUser,
    session: SessionDep,
    now: Now,
):
    """
    Update round settings. Organizer only; the number of members cannot change.
    """
    round_ = await rounds.update_settings(session, round_id, current_user.id, settings_in, now)
    return APIResponse(message="Round settings updated", data=round_)

@router.delete("/{round_id}/archive", response_model=APIResponse[RoundRead])
async def archive_round(round_id: uuid.UUID, current_user: CurrentUser, session: SessionDep, now: Now):
    """
    Archive a round. Organizer only; the round is kept but no longer accepts members or payments.
    """
    round_ = await rounds.archive_round(session, round_id, current_user.id, now)
    return APIResponse(message="Round archived", data=round_)

@router.get("/{round_id}/members", response_model=APIResponse[List[RoundMemberRead]])
async def get_members(round_id: uuid.UUID, current_user: CurrentUser, session: SessionDep):
    await rounds.require_member(session, round_id, current_user.id)
    members = await rounds.member_reads(session, await rounds.list_members(session, round_id))
    return APIResponse(message="Members retrieved", data=members)

@router.delete("/{round_id}/members/{user_id}", response_model=APIResponse[dict])
async def remove_member(round_id: uuid.UUID, user_id: uuid.UUID, current_user: CurrentUser, session: SessionDep):
    """
    Remove a member from the round. Organizer only.
    """
    await rounds.remove_member(session, round_id, current_user.id, user_id)
    return APIResponse(message="Member removed", data={})

@router.get("/{round_id}/overview", response_model=APIResponse[RoundOverview])
async def get_overview(round_id: uuid.UUID, current_user: CurrentUser, session: SessionDep, now: Now):
    """
    Contribution progress, payout status and the user's next important action.
    """
    overview = await next_action.round_overview(session, round_id, current_user.id, now)
    return APIResponse(message="Round overview retrieved", data=overview)

@router.get("/{round_id}/timeline", response_model=APIResponse[List[TimelineEventRead]])
async def get_timeline(round_id: uuid.UUID, current_user: CurrentUser, session: SessionDep):
    events = await rounds.list_timeline(session, round_id, current_user.id)
    return APIResponse(message="Timeline retrieved", data=events)

@router.get("/{round_id}/payouts", response_model=APIResponse[List[PayoutRead]])
async def get_payouts(round_id: uuid.UUID, current_user: CurrentUser, session: SessionDep):
    payouts = await ledger.list_payouts(session, round_id, current_user.id)
    return APIResponse(message="Payouts retrieved", data=payouts)

@router.get("/{round_id}/contributions", response_model=APIResponse[List[ContributionRead]])
async def get_contributions(round_id: uuid.UUID, current_user: CurrentUser, session: SessionDep, now: Now):
    """
    All contributions of the round with their current status.
    """
    contributions = await ledger.list_contributions(session, round_id, current_user.id, now)
    return APIResponse(message="Contributions retrieved", data=contributions)

@router.get("/{round_id}/invite-link", response_model=APIResponse[InviteLinkRead])
async def get_invite_link(round_id: uuid.UUID, current_user: CurrentUser, session: SessionDep):
    invite = await invites.get_invite_link(session, round_id, current_user.id)
    return APIResponse(message="Invite link retrieved", data=invite)
