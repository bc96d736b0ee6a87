# utils/user_tree.py
from typing import Dict, List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import select
from db.models import UserDetails, UserRole


def _user_row(u: UserDetails) -> Dict:
    return {
        "id": u.id,
        "full_name": u.full_name,
        "email": u.email,
        "emp_id": u.emp_id,
        "manager_id": u.manager_id,
        "designation": u.designation,
        "role": u.role.value if u.role else None,
        "is_supervisor": bool(u.is_supervisor),
    }


def list_counsellors(db: Session, manager_id: Optional[int] = None) -> List[Dict]:
    """
    Counsellor roster as plain dicts (safe to use after the session closes),
    ordered by id. With manager_id, only that manager's direct reports.

    is_active only gates login; inactive counsellors keep their history here.
    """
    stmt = select(UserDetails).where(UserDetails.role == UserRole.counsellor)
    if manager_id is not None:
        stmt = stmt.where(UserDetails.manager_id == manager_id)
    stmt = stmt.order_by(UserDetails.id)
    return [_user_row(u) for u in db.execute(stmt).scalars()]


def list_managers(db: Session) -> List[Dict]:
    stmt = select(UserDetails).where(UserDetails.role == UserRole.manager)
    return [_user_row(u) for u in db.execute(stmt.order_by(UserDetails.id)).scalars()]


def get_user(db: Session, user_id: int) -> Optional[Dict]:
    u = db.get(UserDetails, user_id)
    return _user_row(u) if u else None
