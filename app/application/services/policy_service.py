"""Policy service — business logic for renewal CRUD."""

from typing import List

import structlog

from app.core.exceptions import EntityNotFoundException
from app.domain.models.policy import Policy
from app.domain.repositories.client_repository import ClientRepository
from app.domain.repositories.policy_repository import PolicyRepository
from app.domain.schemas.policy import PolicyCreate, PolicyFilter, PolicyUpdate

logger = structlog.get_logger(__name__)


def get_policies(repo: PolicyRepository, filters: PolicyFilter) -> List[Policy]:
    return repo.get_with_filters(filters)


def get_policy(repo: PolicyRepository, policy_id: int) -> Policy:
    policy = repo.get_by_id(policy_id)
    if policy is None:
        raise EntityNotFoundException("Apólice não encontrada", details={"policy_id": policy_id})
    return policy


def _ensure_client(client_repo: ClientRepository, client_id: int) -> None:
    if client_repo.get_by_id(client_id) is None:
        raise EntityNotFoundException("Cliente não encontrado", details={"client_id": client_id})


def create_policy(repo: PolicyRepository, client_repo: ClientRepository, data: PolicyCreate) -> Policy:
    _ensure_client(client_repo, data.client_id)
    policy = repo.create(data)
    logger.info("Policy created", policy_id=policy.id, client_id=policy.client_id)
    return policy


def update_policy(
    repo: PolicyRepository,
    client_repo: ClientRepository,
    policy_id: int,
    data: PolicyUpdate,
) -> Policy:
    policy = get_policy(repo, policy_id)
    if data.client_id is not None:
        _ensure_client(client_repo, data.client_id)
    updated = repo.update(policy, data)
    if data.status is not None:
        logger.info("Policy status changed", policy_id=policy_id, status=data.status)
    return updated


def delete_policy(repo: PolicyRepository, policy_id: int) -> None:
    get_policy(repo, policy_id)
    repo.delete(policy_id)
    logger.info("Policy deleted", policy_id=policy_id)


def clear_all_data(policy_repo: PolicyRepository, client_repo: ClientRepository) -> dict:
    """Delete every policy, then every client."""
    policies_deleted = policy_repo.delete_all()
    clients_deleted = client_repo.delete_all()
    logger.warning("All data cleared", policies_deleted=policies_deleted, clients_deleted=clients_deleted)
    return {"policies_deleted": policies_deleted, "clients_deleted": clients_deleted}
