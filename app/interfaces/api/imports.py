"""Import API routes — upload renewal spreadsheets and list past imports."""

import os
import uuid
from typing import List

import structlog
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from starlette.concurrency import run_in_threadpool

from app.config import get_settings
from app.interfaces.deps import get_client_repository, get_import_run_repository, get_policy_repository
from app.domain.repositories.client_repository import ClientRepository
from app.domain.repositories.import_run_repository import ImportRunRepository
from app.domain.repositories.policy_repository import PolicyRepository
from app.domain.schemas.importing import ImportRunRead, ImportSummary
from app.application.importing.workbook_loader import EXCEL_ENGINES, file_extension
from app.application.services.import_service import import_spreadsheet, list_import_runs

logger = structlog.get_logger(__name__)
settings = get_settings()
router = APIRouter(prefix="/api/imports", tags=["Imports"])


@router.post("", response_model=ImportSummary)
async def upload_spreadsheet(
    file: UploadFile = File(...),
    client_repo: ClientRepository = Depends(get_client_repository),
    policy_repo: PolicyRepository = Depends(get_policy_repository),
    run_repo: ImportRunRepository = Depends(get_import_run_repository),
):
    """Upload an Excel workbook of renewals and import it."""
    if not file.filename:
        raise HTTPException(status_code=400, detail="Arquivo não informado")

    ext = file_extension(file.filename)
    if ext not in EXCEL_ENGINES:
        raise HTTPException(status_code=400, detail="Apenas arquivos .xlsx, .xlsm e .xls são aceitos")

    content = await file.read()
    if len(content) > settings.IMPORT_MAX_FILE_MB * 1024 * 1024:
        raise HTTPException(
            status_code=413,
            detail=f"Arquivo maior que o limite de {settings.IMPORT_MAX_FILE_MB} MB",
        )

    # Keep a copy of what was imported
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    safe_name = f"{uuid.uuid4().hex}_{os.path.basename(file.filename)}"
    with open(os.path.join(settings.UPLOAD_DIR, safe_name), "wb") as f:
        f.write(content)

    logger.info("Spreadsheet received", file=file.filename, stored_as=safe_name, size_bytes=len(content))

    return await run_in_threadpool(
        import_spreadsheet,
        content,
        file.filename,
        client_repo,
        policy_repo,
        run_repo,
        stored_name=safe_name,
    )


@router.get("", response_model=List[ImportRunRead])
def list_imports(run_repo: ImportRunRepository = Depends(get_import_run_repository)):
    """List the latest 50 imports."""
    return list_import_runs(run_repo, limit=50)
