"""Client API routes — list, search, create, update and delete clients."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from app.interfaces.deps import get_client_repository
from app.domain.repositories.client_repository import ClientRepository
from app.domain.schemas.client import ClientCreate, ClientFilter, ClientRead, ClientUpdate
from app.application.services.client_service import (
    create_client,
    delete_client,
    get_client,
    get_clients,
    update_client,
)

router = APIRouter(prefix="/api/clients", tags=["Clients"])


@router.get("", response_model=List[ClientRead])
def list_clients(
    search: Optional[str] = None,
    limit: int = Query(1000, ge=1, le=10000),
    offset: int = Query(0, ge=0),
    repo: ClientRepository = Depends(get_client_repository),
):
    """List clients ordered by name, optionally searching name/email/phone."""
    return get_clients(repo, ClientFilter(search=search, limit=limit, offset=offset))


@router.get("/{client_id}", response_model=ClientRead)
def read_client(client_id: int, repo: ClientRepository = Depends(get_client_repository)):
    return get_client(repo, client_id)


@router.post("", response_model=ClientRead, status_code=status.HTTP_201_CREATED)
def add_client(data: ClientCreate, repo: ClientRepository = Depends(get_client_repository)):
    return create_client(repo, data)


@router.patch("/{client_id}", response_model=ClientRead)
def edit_client(
    client_id: int,
    data: ClientUpdate,
    repo: ClientRepository = Depends(get_client_repository),
):
    return update_client(repo, client_id, data)


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_client(client_id: int, repo: ClientRepository = Depends(get_client_repository)):
    """Delete a client together with its policies."""
    delete_client(repo, client_id)
