# routes/Dashboard/dashboard.py
from fastapi import APIRouter, Depends, Query
from typing import Optional, Dict, Any
import logging

from db.connection import get_session_factory
from db.models import UserDetails, UserRole
from db.Schema.dashboard import CacheClearResponse
from routes.auth.auth_dependency import get_current_user, require_role
from routes.http_errors import to_http_error
from services.analytics.dashboard import get_dashboard_stats
from services.analytics.errors import AnalyticsError
from utils.dashboard_cache import clear_dashboard_cache, get_cached, set_cached, stats_cache_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/stats")
async def dashboard_stats(
    filter: str = Query("monthly", description="today | weekly | monthly | yearly | custom"),
    before_date: Optional[str] = Query(None, alias="beforeDate", description="custom start, YYYY-MM-DD"),
    after_date: Optional[str] = Query(None, alias="afterDate", description="custom end, YYYY-MM-DD"),
    session_factory=Depends(get_session_factory),
    current_user: UserDetails = Depends(get_current_user),
) -> Dict[str, Any]:
    """
    Summary cards, leaderboard, chart series and (for counsellors) the
    period-over-period comparison. Served from cache for DASHBOARD_CACHE_TTL.
    """
    role = current_user.role.value
    key = stats_cache_key(filter.strip().lower(), before_date, after_date, current_user.id, role)

    cached = await get_cached(key)
    if cached is not None:
        return cached

    try:
        stats = await get_dashboard_stats(
            session_factory,
            filter,
            before_date=before_date,
            after_date=after_date,
            actor_id=current_user.id,
            role=role,
        )
    except AnalyticsError as e:
        raise to_http_error(e)

    await set_cached(key, stats)
    return stats


@router.delete(
    "/cache",
    response_model=CacheClearResponse,
    dependencies=[Depends(require_role(UserRole.admin))],
)
async def clear_cache():
    cleared = await clear_dashboard_cache()
    return CacheClearResponse(cleared=cleared, message="Dashboard cache cleared")
