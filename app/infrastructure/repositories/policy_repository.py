"""
SQLAlchemy Implementation of Policy Repository.
"""

from typing import List

from sqlalchemy.orm import joinedload

from app.domain.models.policy import Policy
from app.domain.repositories.policy_repository import PolicyRepository
from app.domain.schemas.policy import PolicyCreate, PolicyFilter
from app.infrastructure.repositories.base_repository import SQLAlchemyRepository

MAX_LIMIT = 10000


class SQLAlchemyPolicyRepository(SQLAlchemyRepository[Policy], PolicyRepository):
    """Policy repository implementation using SQLAlchemy."""

    def get_with_filters(self, filters: PolicyFilter) -> List[Policy]:
        query = self.db.query(Policy).options(joinedload(Policy.client))

        if filters.client_id:
            query = query.filter(Policy.client_id == filters.client_id)
        if filters.status:
            query = query.filter(Policy.status == filters.status)
        if filters.due_date_from:
            query = query.filter(Policy.due_date >= filters.due_date_from)
        if filters.due_date_to:
            query = query.filter(Policy.due_date <= filters.due_date_to)

        limit = min(filters.limit, MAX_LIMIT)
        return (
            query.order_by(Policy.due_date.asc(), Policy.id.asc())
            .offset(filters.offset)
            .limit(limit)
            .all()
        )

    def fetch_policies_with_client(self, limit: int, newest_first: bool = False) -> List[Policy]:
        if newest_first:
            order = (Policy.due_date.desc(), Policy.id.desc())
        else:
            order = (Policy.due_date.asc(), Policy.id.asc())
        return (
            self.db.query(Policy)
            .options(joinedload(Policy.client))
            .order_by(*order)
            .limit(min(limit, MAX_LIMIT))
            .all()
        )

    def batch_create_policies(self, policies: List[PolicyCreate]) -> List[Policy]:
        return self.create_many(policies)
