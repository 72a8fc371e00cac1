"""Data maintenance API — wipe all clients and policies."""

from fastapi import APIRouter, Depends

from app.interfaces.deps import get_client_repository, get_policy_repository
from app.domain.repositories.client_repository import ClientRepository
from app.domain.repositories.policy_repository import PolicyRepository
from app.application.services.policy_service import clear_all_data

router = APIRouter(prefix="/api/data", tags=["Data"])


@router.delete("")
def delete_all_data(
    client_repo: ClientRepository = Depends(get_client_repository),
    policy_repo: PolicyRepository = Depends(get_policy_repository),
):
    """Delete every policy, then every client."""
    return clear_all_data(policy_repo, client_repo)
