from typing import Annotated, List
from fastapi import APIRouter, Query

from app.api.deps import CurrentUser, Now, SessionDep
from app.models.enums import CalendarFilter
from app.schemas.dashboard import CalendarEntry, DashboardSummary
from app.schemas.response import APIResponse
from app.services import calendar, next_action

router = APIRouter()

@router.get("/dashboard", response_model=APIResponse[DashboardSummary])
async def get_dashboard(current_user: CurrentUser, session: SessionDep, now: Now):
    """
    Summary across all of the user's rounds: global status, next action and pending work.
    """
    summary = await next_action.dashboard(session, current_user.id, now)
    return APIResponse(message="Dashboard summary retrieved", data=summary)

@router.get("/calendar/payouts", response_model=APIResponse[List[CalendarEntry]])
async def get_calendar(
    current_user: CurrentUser,
    session: SessionDep,
    now: Now,
    filter: Annotated[CalendarFilter, Query(description="Which rounds to include")] = CalendarFilter.ALL,
):
    """
    Upcoming payouts and contribution due dates, soonest first.
    """
    entries = await calendar.upcoming_events(session, current_user.id, filter, now)
    return APIResponse(message="Calendar retrieved", data=entries)
