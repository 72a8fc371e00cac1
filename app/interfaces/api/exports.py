"""Export API — Excel downloads of clients, renewals and the dashboard."""

from io import BytesIO

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from app.interfaces.deps import get_client_repository, get_policy_repository
from app.domain.repositories.client_repository import ClientRepository
from app.domain.repositories.policy_repository import PolicyRepository
from app.application.services.dashboard_service import DASHBOARD_LIMIT
from app.application.services.export_service import (
    XLSX_MEDIA_TYPE,
    export_clients,
    export_dashboard,
    export_filename,
    export_renewals,
)

router = APIRouter(prefix="/api/exports", tags=["Exports"])


def _attachment(content: bytes, filename: str) -> StreamingResponse:
    return StreamingResponse(
        BytesIO(content),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/clients")
def download_clients(
    client_repo: ClientRepository = Depends(get_client_repository),
    policy_repo: PolicyRepository = Depends(get_policy_repository),
):
    clients = client_repo.fetch_clients(DASHBOARD_LIMIT)
    policies = policy_repo.fetch_policies_with_client(DASHBOARD_LIMIT)
    return _attachment(export_clients(clients, policies), export_filename("clientes"))


@router.get("/renewals")
def download_renewals(policy_repo: PolicyRepository = Depends(get_policy_repository)):
    policies = policy_repo.fetch_policies_with_client(DASHBOARD_LIMIT)
    return _attachment(export_renewals(policies), export_filename("renovacoes"))


@router.get("/dashboard")
def download_dashboard(
    client_repo: ClientRepository = Depends(get_client_repository),
    policy_repo: PolicyRepository = Depends(get_policy_repository),
):
    clients = client_repo.fetch_clients(DASHBOARD_LIMIT)
    policies = policy_repo.fetch_policies_with_client(DASHBOARD_LIMIT)
    return _attachment(export_dashboard(clients, policies), export_filename("dashboard"))
