from fastapi import APIRouter, Request

from app.api.deps import CurrentUser, Now, SessionDep
from app.core.rate_limit import limiter
from app.schemas.invite import InvitePreview, JoinResult
from app.schemas.response import APIResponse
from app.services import invites

router = APIRouter()

@router.get("/preview/{code}", response_model=APIResponse[InvitePreview])
@limiter.limit("30/minute")
async def preview_invite(request: Request, code: str, session: SessionDep, now: Now):
    """
    Round summary for an invite code. No authentication required.
    """
    preview = await invites.preview_invite(session, code, now)
    return APIResponse(message="Invite preview retrieved", data=preview)

@router.post("/join/{code}", response_model=APIResponse[JoinResult])
@limiter.limit("10/minute")
async def join_round(request: Request, code: str, current_user: CurrentUser, session: SessionDep, now: Now):
    """
    Join a round using an invite code.

    Fails with 409 when the round is full or the user is already a member,
    and with 410 when the code has expired or is used up.
    """
    result = await invites.redeem_invite(session, code, current_user, now)
    return APIResponse(message="Joined round successfully", data=result)
