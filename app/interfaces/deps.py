"""
API Dependencies.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from app.infrastructure.database import get_db
from app.domain.models.client import Client
from app.domain.models.import_run import ImportRun
from app.domain.models.policy import Policy
from app.domain.repositories.client_repository import ClientRepository
from app.domain.repositories.import_run_repository import ImportRunRepository
from app.domain.repositories.policy_repository import PolicyRepository
from app.infrastructure.repositories.client_repository import SQLAlchemyClientRepository
from app.infrastructure.repositories.import_run_repository import SQLAlchemyImportRunRepository
from app.infrastructure.repositories.policy_repository import SQLAlchemyPolicyRepository


def get_client_repository(db: Session = Depends(get_db)) -> ClientRepository:
    """Get client repository instance."""
    return SQLAlchemyClientRepository(db, Client)


def get_policy_repository(db: Session = Depends(get_db)) -> PolicyRepository:
    """Get policy repository instance."""
    return SQLAlchemyPolicyRepository(db, Policy)


def get_import_run_repository(db: Session = Depends(get_db)) -> ImportRunRepository:
    """Get import history repository instance."""
    return SQLAlchemyImportRunRepository(db, ImportRun)
