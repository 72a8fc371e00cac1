"""Workbook loader — decodes an uploaded spreadsheet into raw cell grids.

No header row is assumed: every sheet is read with header=None so the header
locator can look for the real header anywhere in the sheet.
"""

import io
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List

import pandas as pd
import structlog

from app.application.importing.parsers import is_blank
from app.core.exceptions import FileUnreadableError

logger = structlog.get_logger(__name__)

# Extension → pandas engine
EXCEL_ENGINES = {
    "xlsx": "openpyxl",
    "xlsm": "openpyxl",
    "xls": "xlrd",
}


@dataclass
class Sheet:
    name: str
    rows: List[List[Any]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return max((len(row) for row in self.rows), default=0)


def file_extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


def _clean_cell(value: Any) -> Any:
    if is_blank(value):
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, str):
        return value.replace("\xa0", " ").strip()
    if hasattr(value, "item") and not isinstance(value, datetime):
        # numpy scalar → python scalar
        return value.item()
    return value


def _trim(row: List[Any]) -> List[Any]:
    end = len(row)
    while end and row[end - 1] is None:
        end -= 1
    return row[:end]


def load_workbook(content: bytes, filename: str) -> List[Sheet]:
    """Read every sheet of an .xlsx/.xlsm/.xls file into memory."""
    ext = file_extension(filename)
    engine = EXCEL_ENGINES.get(ext)
    if engine is None:
        raise FileUnreadableError(
            "Formato de arquivo não suportado. Use .xlsx, .xlsm ou .xls",
            details={"filename": filename},
        )

    try:
        frames = pd.read_excel(
            io.BytesIO(content),
            sheet_name=None,
            header=None,
            dtype=object,
            engine=engine,
        )
    except Exception as e:
        logger.warning("Workbook could not be decoded", filename=filename, error=str(e))
        raise FileUnreadableError(
            "Não foi possível ler o arquivo Excel. Verifique se o arquivo não está corrompido.",
            details={"filename": filename, "reason": str(e)[:500]},
        ) from e

    sheets = []
    for name, df in frames.items():
        rows = [_trim([_clean_cell(v) for v in row]) for row in df.itertuples(index=False, name=None)]
        sheets.append(Sheet(name=str(name), rows=rows))

    if not any(sheet.rows for sheet in sheets):
        raise FileUnreadableError("A planilha está vazia", details={"filename": filename})

    logger.info(
        "Workbook loaded",
        filename=filename,
        sheets=[{"name": s.name, "rows": s.row_count, "columns": s.column_count} for s in sheets],
    )
    return sheets
