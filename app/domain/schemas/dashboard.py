"""Pydantic schemas for the dashboard."""

from datetime import date
from typing import Dict, List

from pydantic import BaseModel

from app.domain.schemas.client import ClientRead
from app.domain.schemas.policy import RenewalRead


class DashboardStats(BaseModel):
    overdue: int
    due_in_0_to_7: int
    due_in_8_to_15: int
    due_in_16_to_30: int
    birthdays_this_month: int
    birthdays_today: int


class DashboardSummary(BaseModel):
    today: date
    stats: DashboardStats
    top_renewals: List[RenewalRead]
    birthdays_today: List[ClientRead]
    birthdays_this_month: List[ClientRead]
    renewals_by_month: Dict[str, int]
