# routes/Reports/report.py
# Counsellor performance + manager target/achieved report

from fastapi import APIRouter, Depends, Query
from typing import Optional, Dict, Any
import logging

from db.connection import get_session_factory
from db.models import UserDetails
from routes.auth.auth_dependency import get_current_user
from routes.http_errors import to_http_error
from services.analytics.date_ranges import resolve_date_range
from services.analytics.errors import AnalyticsError
from services.analytics.report import get_report

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("")
async def performance_report(
    filter: str = Query("monthly", description="today | weekly | monthly | yearly | custom"),
    before_date: Optional[str] = Query(None, alias="beforeDate"),
    after_date: Optional[str] = Query(None, alias="afterDate"),
    manager_id: Optional[int] = Query(None, alias="managerId"),
    counsellor_id: Optional[int] = Query(None, alias="counsellorId"),
    session_factory=Depends(get_session_factory),
    current_user: UserDetails = Depends(get_current_user),
) -> Dict[str, Any]:
    try:
        date_range = resolve_date_range(filter, before_date, after_date)
        return await get_report(
            session_factory,
            actor_id=current_user.id,
            role=current_user.role,
            date_range=date_range,
            manager_id=manager_id,
            counsellor_id=counsellor_id,
        )
    except AnalyticsError as e:
        raise to_http_error(e)
