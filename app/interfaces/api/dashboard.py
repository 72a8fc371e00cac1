"""Dashboard API — renewal buckets, birthdays and monthly totals."""

from fastapi import APIRouter, Depends

from app.interfaces.deps import get_client_repository, get_policy_repository
from app.domain.repositories.client_repository import ClientRepository
from app.domain.repositories.policy_repository import PolicyRepository
from app.domain.schemas.dashboard import DashboardSummary
from app.application.services.dashboard_service import get_dashboard_summary

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


@router.get("/summary", response_model=DashboardSummary)
def dashboard_summary(
    client_repo: ClientRepository = Depends(get_client_repository),
    policy_repo: PolicyRepository = Depends(get_policy_repository),
):
    """Everything the dashboard page needs in one call."""
    return get_dashboard_summary(client_repo, policy_repo)
