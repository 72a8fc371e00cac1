"""Row normalizer — turns raw spreadsheet rows into typed ProcessedRows."""

import re
from dataclasses import dataclass
from datetime import date
from typing import Any, List, Optional, Sequence, Tuple

import structlog

from app.application.importing.column_mapper import CLIENT_NAME, DUE_DATE, ColumnMapping
from app.application.importing.parsers import (
    clean_cpf_cnpj,
    clean_email,
    clean_phone,
    clean_plate,
    is_blank,
    parse_date,
    parse_numeric,
)
from app.application.importing.text import clean_text

logger = structlog.get_logger(__name__)

_EMAIL_LOCAL_SEPARATORS = re.compile(r"[._\-+]+")
_DIGITS = re.compile(r"\d+")


@dataclass(frozen=True)
class ProcessedRow:
    """One validated spreadsheet row. Lives only for the duration of an import."""

    client_name: str
    due_date: date
    unique_key: str
    birthday: Optional[date] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    insurer: Optional[str] = None
    product: Optional[str] = None
    premium: Optional[float] = None
    iof: Optional[float] = None
    net_premium: Optional[float] = None
    commission: Optional[float] = None
    cpf_cnpj: Optional[str] = None
    plate: Optional[str] = None


def build_unique_key(client_name: str, due_date: date, cpf_cnpj: Optional[str] = None, plate: Optional[str] = None) -> str:
    """Tax ID, else plate, else client name — joined to the ISO due date."""
    identifier = cpf_cnpj or plate or client_name
    return f"{identifier}_{due_date.isoformat()}"


def name_from_email(email: Optional[str]) -> str:
    """'joao.silva@x.com' → 'Joao Silva'."""
    if not email or "@" not in email:
        return ""
    local = _DIGITS.sub("", email.split("@", 1)[0])
    parts = [p for p in _EMAIL_LOCAL_SEPARATORS.split(local) if p]
    return " ".join(p.capitalize() for p in parts)


def _cell(row: Sequence[Any], mapping: ColumnMapping, field_name: str) -> Any:
    index = mapping.columns.get(field_name)
    if index is None or index >= len(row):
        return None
    return row[index]


def _optional_text(value: Any) -> Optional[str]:
    return clean_text(value) or None


def normalize_row(row: Sequence[Any], mapping: ColumnMapping, today: Optional[date] = None) -> Optional[ProcessedRow]:
    """Build a ProcessedRow, or None when the client name or due date is missing."""
    email = clean_email(_cell(row, mapping, "email"))

    if mapping.name_from_email:
        client_name = name_from_email(email)
    else:
        client_name = clean_text(_cell(row, mapping, CLIENT_NAME))
    if not client_name:
        return None

    due_date = parse_date(_cell(row, mapping, DUE_DATE), today)
    if due_date is None:
        return None

    cpf_cnpj = clean_cpf_cnpj(_cell(row, mapping, "cpf_cnpj"))
    plate = clean_plate(_cell(row, mapping, "plate"))

    return ProcessedRow(
        client_name=client_name,
        due_date=due_date,
        unique_key=build_unique_key(client_name, due_date, cpf_cnpj, plate),
        birthday=parse_date(_cell(row, mapping, "birthday"), today),
        phone=clean_phone(_cell(row, mapping, "phone")),
        email=email,
        insurer=_optional_text(_cell(row, mapping, "insurer")),
        product=_optional_text(_cell(row, mapping, "product")),
        premium=parse_numeric(_cell(row, mapping, "premium")),
        iof=parse_numeric(_cell(row, mapping, "iof")),
        net_premium=parse_numeric(_cell(row, mapping, "net_premium")),
        commission=parse_numeric(_cell(row, mapping, "commission")),
        cpf_cnpj=cpf_cnpj,
        plate=plate,
    )


def normalize_rows(
    rows: Sequence[Sequence[Any]],
    mapping: ColumnMapping,
    today: Optional[date] = None,
) -> Tuple[List[ProcessedRow], int, int]:
    """Normalize every data row.

    Returns (processed rows, rows read, rows dropped). Blank rows are neither
    read nor dropped.
    """
    processed: List[ProcessedRow] = []
    read = 0
    for row in rows:
        if all(is_blank(value) for value in row):
            continue
        read += 1
        normalized = normalize_row(row, mapping, today)
        if normalized is not None:
            processed.append(normalized)

    invalid = read - len(processed)
    logger.info("Rows normalized", read=read, valid=len(processed), invalid=invalid)
    return processed, read, invalid
