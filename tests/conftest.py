import os
import tempfile

# Settings are cached on first import, so the environment must be ready first
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="renovacoes-uploads-"))
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.infrastructure.database import Base, get_db
from app.domain.models.client import Client
from app.domain.models.import_run import ImportRun
from app.domain.models.policy import Policy
from app.infrastructure.repositories.client_repository import SQLAlchemyClientRepository
from app.infrastructure.repositories.import_run_repository import SQLAlchemyImportRunRepository
from app.infrastructure.repositories.policy_repository import SQLAlchemyPolicyRepository
from app.main import app
from tests.factories import make_workbook


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def enable_foreign_keys(dbapi_conn, _):
        dbapi_conn.execute("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def db_session(engine):
    SessionTesting = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    session = SessionTesting()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client_repo(db_session):
    return SQLAlchemyClientRepository(db_session, Client)


@pytest.fixture()
def policy_repo(db_session):
    return SQLAlchemyPolicyRepository(db_session, Policy)


@pytest.fixture()
def run_repo(db_session):
    return SQLAlchemyImportRunRepository(db_session, ImportRun)


@pytest.fixture()
def api(engine):
    SessionTesting = sessionmaker(bind=engine, autoflush=False, autocommit=False)

    def override_get_db():
        db = SessionTesting()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def joao_silva_workbook():
    return make_workbook((
        "Renovações",
        [
            ["Nome", "Vencimento Apólice", "Seguradora", "Telefone Celular", "Email"],
            ["João Silva", "15/03/2026", "Porto Seguro", "11987654321", "joao@x.com"],
        ],
    ))
