"""Import service — runs the renewal spreadsheet pipeline end to end.

load → locate header → map columns → normalize rows → snapshot existing data
→ deduplicate → write clients and policies. Each run is tracked in
`import_runs` with its counts, or with the error message when it fails.
"""

import threading
from datetime import date
from typing import Optional

import structlog

from app.application.importing.client_writer import write_rows
from app.application.importing.column_mapper import map_columns
from app.application.importing.deduplicator import deduplicate
from app.application.importing.header_locator import locate_header
from app.application.importing.row_normalizer import normalize_rows
from app.application.importing.workbook_loader import load_workbook
from app.application.services.dashboard_service import get_current_date
from app.config import Settings, get_settings
from app.core.exceptions import AllRowsDuplicateError, ImportInProgressError, NoValidRowsError
from app.domain.models.import_run import ImportRun
from app.domain.repositories.client_repository import ClientRepository
from app.domain.repositories.import_run_repository import ImportRunRepository
from app.domain.repositories.policy_repository import PolicyRepository
from app.domain.schemas.importing import ImportSummary

logger = structlog.get_logger(__name__)

# One import at a time per process
_import_lock = threading.Lock()


def import_spreadsheet(
    content: bytes,
    original_name: str,
    client_repo: ClientRepository,
    policy_repo: PolicyRepository,
    run_repo: ImportRunRepository,
    stored_name: Optional[str] = None,
    today: Optional[date] = None,
    settings: Optional[Settings] = None,
) -> ImportSummary:
    """Import a renewal workbook and return the counts of what was created."""
    if not _import_lock.acquire(blocking=False):
        raise ImportInProgressError()
    try:
        return _run_import(
            content,
            original_name,
            client_repo,
            policy_repo,
            run_repo,
            stored_name=stored_name or original_name,
            today=today or get_current_date(),
            settings=settings or get_settings(),
        )
    finally:
        _import_lock.release()


def _run_import(
    content: bytes,
    original_name: str,
    client_repo: ClientRepository,
    policy_repo: PolicyRepository,
    run_repo: ImportRunRepository,
    stored_name: str,
    today: date,
    settings: Settings,
) -> ImportSummary:
    run: ImportRun = run_repo.create(
        {"filename": stored_name, "original_name": original_name, "status": "processing"}
    )
    log = logger.bind(import_id=run.id, file=original_name)
    log.info("Import started", size_bytes=len(content))

    try:
        sheets = load_workbook(content, original_name)
        header = locate_header(sheets)

        data_rows = sheets[header.sheet_index].rows[header.row_index + 1:]
        mapping = map_columns(header.headers, data_rows)

        rows, rows_read, rows_invalid = normalize_rows(data_rows, mapping, today)
        if not rows:
            raise NoValidRowsError(
                details={
                    "rows_read": rows_read,
                    "rows_invalid": rows_invalid,
                    "sheet_name": header.sheet_name,
                    "columns": mapping.as_headers(),
                }
            )

        existing_clients = client_repo.fetch_clients(settings.IMPORT_SNAPSHOT_LIMIT)
        existing_policies = policy_repo.fetch_policies_with_client(
            settings.IMPORT_SNAPSHOT_LIMIT, newest_first=True
        )

        dedup = deduplicate(rows, existing_policies, settings.IMPORT_DEDUP_MATCH_ON_NAME)
        if not dedup.new_rows:
            raise AllRowsDuplicateError(
                details={
                    "rows_read": rows_read,
                    "rows_valid": len(rows),
                    "duplicates_skipped": dedup.duplicates,
                }
            )

        written = write_rows(
            dedup.new_rows,
            existing_clients,
            client_repo,
            policy_repo,
            write_legacy_notes=settings.IMPORT_WRITE_LEGACY_NOTES,
        )
    except Exception as e:
        log.warning("Import failed", error=str(e), error_type=e.__class__.__name__)
        # A failed flush leaves the shared session unusable until rolled back
        run_repo.rollback()
        run_repo.update(run, {"status": "failed", "error_message": str(e)[:1000]})
        raise

    summary = ImportSummary(
        clients_created=written.clients_created,
        policies_created=written.policies_created,
        duplicates_skipped=dedup.duplicates,
        rows_read=rows_read,
        rows_invalid=rows_invalid,
        sheet_name=header.sheet_name,
        header_row=header.row_index + 1,
        import_id=run.id,
    )
    run_repo.update(
        run,
        {
            "status": "completed",
            "sheet_name": summary.sheet_name,
            "header_row": summary.header_row,
            "rows_read": summary.rows_read,
            "rows_invalid": summary.rows_invalid,
            "duplicates_skipped": summary.duplicates_skipped,
            "clients_created": summary.clients_created,
            "policies_created": summary.policies_created,
        },
    )
    log.info("Import completed", **summary.model_dump(exclude={"import_id", "sheet_name"}))
    return summary


def list_import_runs(run_repo: ImportRunRepository, limit: int = 50):
    return run_repo.latest(limit)
