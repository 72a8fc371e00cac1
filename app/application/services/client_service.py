"""Client service — business logic for client CRUD."""

from typing import List

import structlog

from app.core.exceptions import EntityNotFoundException
from app.domain.models.client import Client
from app.domain.repositories.client_repository import ClientRepository
from app.domain.schemas.client import ClientCreate, ClientFilter, ClientUpdate

logger = structlog.get_logger(__name__)

# Shown wherever a renewal has lost its client
UNKNOWN_CLIENT_NAME = "Cliente desconhecido"


def get_clients(repo: ClientRepository, filters: ClientFilter) -> List[Client]:
    return repo.get_with_filters(filters)


def get_client(repo: ClientRepository, client_id: int) -> Client:
    client = repo.get_by_id(client_id)
    if client is None:
        raise EntityNotFoundException("Cliente não encontrado", details={"client_id": client_id})
    return client


def create_client(repo: ClientRepository, data: ClientCreate) -> Client:
    client = repo.create(data)
    logger.info("Client created", client_id=client.id)
    return client


def update_client(repo: ClientRepository, client_id: int, data: ClientUpdate) -> Client:
    client = get_client(repo, client_id)
    return repo.update(client, data)


def delete_client(repo: ClientRepository, client_id: int) -> None:
    """Delete a client and, by cascade, its policies."""
    get_client(repo, client_id)
    repo.delete(client_id)
    logger.info("Client deleted", client_id=client_id)


def display_name(client: Client) -> str:
    return client.name if client is not None and client.name else UNKNOWN_CLIENT_NAME
