"""
SQLAlchemy Implementation of Import Run Repository.
"""

from typing import List

from app.domain.models.import_run import ImportRun
from app.domain.repositories.import_run_repository import ImportRunRepository
from app.infrastructure.repositories.base_repository import SQLAlchemyRepository


class SQLAlchemyImportRunRepository(SQLAlchemyRepository[ImportRun], ImportRunRepository):
    """Import history repository implementation using SQLAlchemy."""

    def latest(self, limit: int = 50) -> List[ImportRun]:
        return (
            self.db.query(ImportRun)
            .order_by(ImportRun.created_at.desc(), ImportRun.id.desc())
            .limit(limit)
            .all()
        )
