from dataclasses import dataclass
from typing import Optional

from db.models import UserRole
from services.analytics.errors import InvalidFilterError


@dataclass(frozen=True)
class RoleScope:
    """
    Who is asking. Only a counsellor scope narrows rows (to that counsellor's
    clients); admin and manager scopes see every client.
    """
    role: UserRole
    counsellor_id: Optional[int] = None

    @property
    def restricts_rows(self) -> bool:
        return self.role == UserRole.counsellor and self.counsellor_id is not None

    @classmethod
    def for_actor(cls, actor_id: Optional[int], role) -> "RoleScope":
        r = parse_role(role)
        if r == UserRole.counsellor:
            return cls(role=r, counsellor_id=actor_id)
        return cls(role=r)

    @classmethod
    def counsellor(cls, counsellor_id: int) -> "RoleScope":
        return cls(role=UserRole.counsellor, counsellor_id=counsellor_id)


ADMIN_SCOPE = RoleScope(role=UserRole.admin)


def parse_role(role) -> UserRole:
    if isinstance(role, UserRole):
        return role
    try:
        return UserRole((role or "").strip().lower())
    except ValueError:
        raise InvalidFilterError(f"Unknown role '{role}'")
