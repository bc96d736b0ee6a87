# routes/Leaderboard/leaderboard.py
from fastapi import APIRouter, Depends, Query
from typing import Optional
import logging

from db.connection import get_session_factory
from db.models import UserDetails, UserRole
from db.Schema.dashboard import EnrollmentGoalResponse, LeaderboardResponse
from routes.auth.auth_dependency import get_current_user
from routes.http_errors import to_http_error
from services.analytics.date_ranges import validate_month_year
from services.analytics.errors import AnalyticsError, UnauthorizedScopeError
from services.analytics.leaderboard import get_enrollment_goal, get_leaderboard

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leaderboard", tags=["Leaderboard"])


@router.get("", response_model=LeaderboardResponse)
async def monthly_leaderboard(
    month: int = Query(..., description="1-12"),
    year: int = Query(..., description="e.g. 2026"),
    session_factory=Depends(get_session_factory),
    current_user: UserDetails = Depends(get_current_user),
):
    try:
        validate_month_year(month, year)
        return await get_leaderboard(
            session_factory, month, year,
            actor_id=current_user.id, role=current_user.role,
        )
    except AnalyticsError as e:
        raise to_http_error(e)


@router.get("/enrollment-goal", response_model=EnrollmentGoalResponse)
async def enrollment_goal(
    counsellor_id: Optional[int] = Query(None, alias="counsellorId"),
    month: Optional[int] = Query(None),
    year: Optional[int] = Query(None),
    session_factory=Depends(get_session_factory),
    current_user: UserDetails = Depends(get_current_user),
):
    """Target vs achieved enrollments for one counsellor's month (defaults: self, current month)."""
    target_id = counsellor_id if counsellor_id is not None else current_user.id
    try:
        if current_user.role == UserRole.counsellor and target_id != current_user.id:
            raise UnauthorizedScopeError("Counsellors can only view their own enrollment goal")
        return await get_enrollment_goal(session_factory, target_id, month=month, year=year)
    except (AnalyticsError, LookupError) as e:
        raise to_http_error(e)
