"""Dashboard service — due-status buckets, birthdays and monthly renewal counts."""

from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

import pytz

from app.config import get_settings
from app.domain.models.client import Client
from app.domain.models.policy import Policy
from app.domain.repositories.client_repository import ClientRepository
from app.domain.repositories.policy_repository import PolicyRepository
from app.domain.schemas.dashboard import DashboardStats

settings = get_settings()
tz = pytz.timezone(settings.TIMEZONE)

# Snapshot size for dashboard aggregation
DASHBOARD_LIMIT = 10000


def get_current_date() -> date:
    """Get current date in the configured timezone."""
    return datetime.now(tz).date()


def classify_due_status(due_date: date, today: Optional[date] = None) -> str:
    """overdue | d7 | d15 | d30 | future, by days until due."""
    days = (due_date - (today or get_current_date())).days
    if days < 0:
        return "overdue"
    if days <= 7:
        return "d7"
    if days <= 15:
        return "d15"
    if days <= 30:
        return "d30"
    return "future"


def is_birthday_today(birthday: Optional[date], today: date) -> bool:
    return birthday is not None and (birthday.month, birthday.day) == (today.month, today.day)


def is_birthday_this_month(birthday: Optional[date], today: date) -> bool:
    return birthday is not None and birthday.month == today.month


def _active(policies: Iterable[Policy]) -> List[Policy]:
    return [p for p in policies if p.status == "active"]


def compute_dashboard_stats(
    policies: Iterable[Policy],
    clients: Iterable[Client],
    today: Optional[date] = None,
) -> DashboardStats:
    """Count active policies per due bucket plus client birthdays."""
    today = today or get_current_date()
    clients = list(clients)

    buckets = {"overdue": 0, "d7": 0, "d15": 0, "d30": 0, "future": 0}
    for policy in _active(policies):
        buckets[classify_due_status(policy.due_date, today)] += 1

    return DashboardStats(
        overdue=buckets["overdue"],
        due_in_0_to_7=buckets["d7"],
        due_in_8_to_15=buckets["d15"],
        due_in_16_to_30=buckets["d30"],
        birthdays_this_month=sum(1 for c in clients if is_birthday_this_month(c.birthday, today)),
        birthdays_today=sum(1 for c in clients if is_birthday_today(c.birthday, today)),
    )


def get_top_renewals(renewals: Iterable[Policy], limit: int = 10) -> List[Policy]:
    """Active renewals, soonest due first."""
    return sorted(_active(renewals), key=lambda p: (p.due_date, p.id or 0))[:limit]


def get_todays_birthdays(clients: Iterable[Client], today: Optional[date] = None) -> List[Client]:
    today = today or get_current_date()
    return [c for c in clients if is_birthday_today(c.birthday, today)]


def get_month_birthdays(clients: Iterable[Client], today: Optional[date] = None) -> List[Client]:
    """Clients with a birthday this month, ordered by day."""
    today = today or get_current_date()
    matches = [c for c in clients if is_birthday_this_month(c.birthday, today)]
    return sorted(matches, key=lambda c: (c.birthday.day, c.name.lower()))


def get_next_12_months(today: Optional[date] = None) -> List[date]:
    """First day of the current month and the eleven after it."""
    today = today or get_current_date()
    months = []
    year, month = today.year, today.month
    for _ in range(12):
        months.append(date(year, month, 1))
        month += 1
        if month > 12:
            month, year = 1, year + 1
    return months


def month_key(value: date) -> str:
    return f"{value.month}/{value.year}"


def get_renewals_by_month(renewals: Iterable[Policy], months: Iterable[date]) -> Dict[str, int]:
    """Active renewal count per 'M/YYYY' for the given months."""
    result = {month_key(m): 0 for m in months}
    for policy in _active(renewals):
        key = month_key(policy.due_date)
        if key in result:
            result[key] += 1
    return result


def get_dashboard_summary(
    client_repo: ClientRepository,
    policy_repo: PolicyRepository,
    today: Optional[date] = None,
) -> dict:
    """Everything the dashboard page shows."""
    today = today or get_current_date()
    clients = client_repo.fetch_clients(DASHBOARD_LIMIT)
    policies = policy_repo.fetch_policies_with_client(DASHBOARD_LIMIT)

    return {
        "today": today,
        "stats": compute_dashboard_stats(policies, clients, today),
        "top_renewals": get_top_renewals(policies),
        "birthdays_today": get_todays_birthdays(clients, today),
        "birthdays_this_month": get_month_birthdays(clients, today),
        "renewals_by_month": get_renewals_by_month(policies, get_next_12_months(today)),
    }
