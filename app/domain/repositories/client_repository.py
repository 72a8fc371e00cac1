"""
Client Repository Interface.
Defines specific data access operations for Clients.
"""

from typing import List

from app.domain.repositories.base import BaseRepository
from app.domain.models.client import Client
from app.domain.schemas.client import ClientCreate, ClientFilter


class ClientRepository(BaseRepository[Client]):
    """Interface for Client-specific operations."""

    def get_with_filters(self, filters: ClientFilter) -> List[Client]:
        """Search clients by name, email or phone, ordered by name."""
        ...

    def fetch_clients(self, limit: int) -> List[Client]:
        """Snapshot of existing clients used during imports."""
        ...

    def batch_create_clients(self, clients: List[ClientCreate]) -> List[Client]:
        """Create clients in one call; results keep the submission order."""
        ...
