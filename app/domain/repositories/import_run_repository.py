"""
Import Run Repository Interface.
"""

from typing import List

from app.domain.repositories.base import BaseRepository
from app.domain.models.import_run import ImportRun


class ImportRunRepository(BaseRepository[ImportRun]):
    """Interface for import history."""

    def latest(self, limit: int = 50) -> List[ImportRun]:
        """Most recent import runs first."""
        ...
