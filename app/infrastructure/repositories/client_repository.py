"""
SQLAlchemy Implementation of Client Repository.
"""

from typing import List

from sqlalchemy import or_

from app.domain.models.client import Client
from app.domain.repositories.client_repository import ClientRepository
from app.domain.schemas.client import ClientCreate, ClientFilter
from app.infrastructure.repositories.base_repository import SQLAlchemyRepository

MAX_LIMIT = 10000


class SQLAlchemyClientRepository(SQLAlchemyRepository[Client], ClientRepository):
    """Client repository implementation using SQLAlchemy."""

    def get_with_filters(self, filters: ClientFilter) -> List[Client]:
        query = self.db.query(Client)

        if filters.search:
            pattern = f"%{filters.search}%"
            query = query.filter(
                or_(
                    Client.name.ilike(pattern),
                    Client.email.ilike(pattern),
                    Client.phone.ilike(pattern),
                )
            )

        limit = min(filters.limit, MAX_LIMIT)
        return query.order_by(Client.name.asc()).offset(filters.offset).limit(limit).all()

    def fetch_clients(self, limit: int) -> List[Client]:
        return self.db.query(Client).order_by(Client.name.asc()).limit(min(limit, MAX_LIMIT)).all()

    def batch_create_clients(self, clients: List[ClientCreate]) -> List[Client]:
        return self.create_many(clients)
