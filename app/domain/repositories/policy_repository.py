"""
Policy Repository Interface.
Defines specific data access operations for Policies (renewals).
"""

from typing import List

from app.domain.repositories.base import BaseRepository
from app.domain.models.policy import Policy
from app.domain.schemas.policy import PolicyCreate, PolicyFilter


class PolicyRepository(BaseRepository[Policy]):
    """Interface for Policy-specific operations."""

    def get_with_filters(self, filters: PolicyFilter) -> List[Policy]:
        """Filter policies by client, status and due date range, ordered by due date."""
        ...

    def fetch_policies_with_client(self, limit: int, newest_first: bool = False) -> List[Policy]:
        """Policies with their owning client already loaded, by due date.

        When the table outgrows `limit`, newest_first keeps the most recent
        renewals, which are the ones a new spreadsheet overlaps.
        """
        ...

    def batch_create_policies(self, policies: List[PolicyCreate]) -> List[Policy]:
        """Create policies in one call; results keep the submission order."""
        ...
