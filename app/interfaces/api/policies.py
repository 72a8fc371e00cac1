"""Policy API routes — renewals CRUD and status changes."""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from app.interfaces.deps import get_client_repository, get_policy_repository
from app.domain.repositories.client_repository import ClientRepository
from app.domain.repositories.policy_repository import PolicyRepository
from app.domain.schemas.policy import (
    PolicyCreate,
    PolicyFilter,
    PolicyRead,
    PolicyStatus,
    PolicyUpdate,
    RenewalRead,
)
from app.application.services.policy_service import (
    create_policy,
    delete_policy,
    get_policies,
    get_policy,
    update_policy,
)

router = APIRouter(prefix="/api/policies", tags=["Policies"])


def _filters(
    client_id: Optional[int] = None,
    status: Optional[PolicyStatus] = None,
    due_date_from: Optional[date] = None,
    due_date_to: Optional[date] = None,
    limit: int = Query(1000, ge=1, le=10000),
    offset: int = Query(0, ge=0),
) -> PolicyFilter:
    return PolicyFilter(
        client_id=client_id,
        status=status,
        due_date_from=due_date_from,
        due_date_to=due_date_to,
        limit=limit,
        offset=offset,
    )


@router.get("", response_model=List[PolicyRead])
def list_policies(
    filters: PolicyFilter = Depends(_filters),
    repo: PolicyRepository = Depends(get_policy_repository),
):
    """List policies ordered by due date."""
    return get_policies(repo, filters)


@router.get("/renewals", response_model=List[RenewalRead])
def list_renewals(
    filters: PolicyFilter = Depends(_filters),
    repo: PolicyRepository = Depends(get_policy_repository),
):
    """Same as the policy list, with each policy's client embedded."""
    return get_policies(repo, filters)


@router.get("/{policy_id}", response_model=PolicyRead)
def read_policy(policy_id: int, repo: PolicyRepository = Depends(get_policy_repository)):
    return get_policy(repo, policy_id)


@router.post("", response_model=PolicyRead, status_code=status.HTTP_201_CREATED)
def add_policy(
    data: PolicyCreate,
    repo: PolicyRepository = Depends(get_policy_repository),
    client_repo: ClientRepository = Depends(get_client_repository),
):
    return create_policy(repo, client_repo, data)


@router.patch("/{policy_id}", response_model=PolicyRead)
def edit_policy(
    policy_id: int,
    data: PolicyUpdate,
    repo: PolicyRepository = Depends(get_policy_repository),
    client_repo: ClientRepository = Depends(get_client_repository),
):
    """Partial update; also used to mark a renewal as renewed or lost."""
    return update_policy(repo, client_repo, policy_id, data)


@router.delete("/{policy_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_policy(policy_id: int, repo: PolicyRepository = Depends(get_policy_repository)):
    delete_policy(repo, policy_id)
