"""Pydantic schemas for spreadsheet imports."""

from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class ImportSummary(BaseModel):
    clients_created: int
    policies_created: int
    duplicates_skipped: int
    rows_read: int = 0
    rows_invalid: int = 0
    sheet_name: Optional[str] = None
    header_row: Optional[int] = None
    import_id: Optional[int] = None


class ImportRunRead(BaseModel):
    id: int
    filename: str
    original_name: str
    status: str
    sheet_name: Optional[str] = None
    header_row: Optional[int] = None
    rows_read: int = 0
    rows_invalid: int = 0
    duplicates_skipped: int = 0
    clients_created: int = 0
    policies_created: int = 0
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
