"""FastAPI application — main entry point."""

import structlog
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.infrastructure.database import engine, Base
from app.core.logging import configure_logging
from app.core.middleware import setup_middleware
from app.core.exceptions import AppError, global_exception_handler

# Import all models so SQLAlchemy knows about them
from app.domain.models.client import Client
from app.domain.models.policy import Policy
from app.domain.models.import_run import ImportRun

# Import routers
from app.interfaces.api.clients import router as clients_router
from app.interfaces.api.policies import router as policies_router
from app.interfaces.api.imports import router as imports_router
from app.interfaces.api.dashboard import router as dashboard_router
from app.interfaces.api.exports import router as exports_router
from app.interfaces.api.data import router as data_router

settings = get_settings()

# Configure logging immediately
configure_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan — startup and shutdown events."""
    logger.info("Starting renewals backend...", env=settings.ENVIRONMENT)

    # Create DB tables (dev only, use Alembic in production)
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    yield

    logger.info("Renewals backend stopped")


app = FastAPI(
    title="Corretora — Gestão de Renovações",
    description="API Backend — importação de planilhas de renovação, clientes, apólices e aniversários",
    version="1.0.0",
    lifespan=lifespan,
)

# Setup Middleware (Correlation ID, Logging)
setup_middleware(app)

# Global Exception Handling
app.add_exception_handler(AppError, global_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# CORS is added last so it wraps everything else
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:3001"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(clients_router)
app.include_router(policies_router)
app.include_router(imports_router)
app.include_router(dashboard_router)
app.include_router(exports_router)
app.include_router(data_router)


@app.get("/")
def root():
    return {
        "name": "Corretora Renovações",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health")
def health():
    return {"status": "healthy"}
