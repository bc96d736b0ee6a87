# db/Schema/dashboard.py - response models for leaderboard endpoints

from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional


def to_camel(string: str) -> str:
    parts = string.split('_')
    return parts[0] + ''.join(word.capitalize() for word in parts[1:])


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True
    )


class ProductFigures(CamelModel):
    count: int = 0
    amount: str = "0.00"


class LeaderboardEntry(CamelModel):
    counsellor_id: int
    full_name: str
    email: Optional[str] = None
    emp_id: Optional[str] = None
    manager_id: Optional[int] = None
    designation: Optional[str] = None
    enrollments: int = 0
    revenue: float = 0.0
    target: int = 0
    achieved_target: int = 0
    target_id: Optional[int] = None
    rank: int


class MonthlyLeaderboardEntry(LeaderboardEntry):
    core_sale: ProductFigures
    core_product: ProductFigures
    other_product: ProductFigures


class LeaderboardSummary(CamelModel):
    total_counsellors: int = 0
    total_enrollments: int = 0
    total_revenue: str = "0.00"


class LeaderboardResponse(CamelModel):
    month: int = Field(..., ge=1, le=12)
    year: int
    leaderboard: List[MonthlyLeaderboardEntry] = []
    summary: LeaderboardSummary


class EnrollmentGoalResponse(CamelModel):
    counsellor_id: int
    full_name: str
    month: int
    year: int
    target: int = 0
    target_id: Optional[int] = None
    achieved: int = 0
    remaining: int = 0
    percentage_completed: int = 0


class CacheClearResponse(CamelModel):
    cleared: int
    message: str
