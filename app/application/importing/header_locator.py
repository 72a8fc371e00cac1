"""Header locator — finds the real column-header row inside a workbook.

Broker spreadsheets often start with titles, filters or dashboard blocks, so
every row of every sheet is scored for header-likeness and the best one wins.
"""

import re
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

import structlog

from app.application.importing.parsers import is_number
from app.application.importing.text import normalize_header
from app.application.importing.workbook_loader import Sheet
from app.core.exceptions import HeaderNotFoundError

logger = structlog.get_logger(__name__)

HEADER_MIN_CELLS = 8
HEADER_MIN_SCORE = 8

WIDE_ROW_COLUMNS = 10
WIDE_ROW_BONUS = 5
VERY_WIDE_ROW_COLUMNS = 14
VERY_WIDE_ROW_BONUS = 3

# (category, weight, keywords); a cell scores for the first category it matches
HEADER_KEYWORD_WEIGHTS: Tuple[Tuple[str, int, Tuple[str, ...]], ...] = (
    ("due_date", 6, ("vencimento", "fimvigencia", "finalvigencia", "vigenciafinal", "terminovigencia", "renovacao")),
    ("net_premium", 3, ("premioliquido", "liquido")),
    ("iof", 3, ("iof",)),
    ("commission", 3, ("comissao",)),
    ("premium", 3, ("premio",)),
    ("birthday", 3, ("aniversario", "nascimento", "datanasc", "dtnasc")),
    ("phone", 4, ("telefone", "celular", "fone", "whatsapp")),
    ("insurer", 4, ("seguradora", "companhia")),
    ("email", 4, ("email",)),
    ("tax_id", 4, ("cpf", "cnpj")),
    ("plate", 3, ("placa",)),
    ("product", 3, ("produto", "ramo")),
)

# Cells that mark dashboard / summary blocks rather than headers
SUMMARY_TOKENS = frozenset({"total", "totais", "totalgeral", "subtotal", "resumo", "dashboard", "indicadores"})

MONTH_TOKENS = frozenset({
    "jan", "fev", "mar", "abr", "mai", "jun", "jul", "ago", "set", "out", "nov", "dez",
    "janeiro", "fevereiro", "marco", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
})

_DIGITS = re.compile(r"\d")


@dataclass(frozen=True)
class HeaderMatch:
    sheet_index: int
    sheet_name: str
    row_index: int
    score: int
    headers: List[str]


def _non_empty(row: Sequence[Any]) -> List[Any]:
    return [cell for cell in row if cell is not None and str(cell).strip()]


def cell_weight(cell: Any) -> int:
    """Keyword weight of one header cell."""
    if not isinstance(cell, str):
        return 0
    text = normalize_header(cell)
    if not text:
        return 0
    for _, weight, keywords in HEADER_KEYWORD_WEIGHTS:
        if any(keyword in text for keyword in keywords):
            return weight
    return 0


def _is_numeric_or_month(cell: Any) -> bool:
    if is_number(cell) or not isinstance(cell, str):
        return True
    letters = _DIGITS.sub("", normalize_header(cell))
    return not letters or letters in MONTH_TOKENS


def _is_summary_token(cell: Any) -> bool:
    return isinstance(cell, str) and normalize_header(cell) in SUMMARY_TOKENS


def is_summary_row(cells: Sequence[Any]) -> bool:
    """A summary token in the leading cell, or one next to mostly numeric cells.

    A header may legitimately carry a "Total" column, so a token elsewhere in
    the row only counts when the remaining cells are mostly figures.
    """
    if not cells:
        return False
    if _is_summary_token(cells[0]):
        return True
    if not any(_is_summary_token(cell) for cell in cells):
        return False
    others = [cell for cell in cells if not _is_summary_token(cell)]
    numeric = sum(1 for cell in others if _is_numeric_or_month(cell))
    return numeric * 2 > len(others)


def is_non_header_row(cells: Sequence[Any]) -> bool:
    """Summary rows and rows made only of numbers or month names."""
    if is_summary_row(cells):
        return True
    return all(_is_numeric_or_month(cell) for cell in cells)


def score_row(row: Sequence[Any], min_cells: int = HEADER_MIN_CELLS) -> Optional[int]:
    """Header-likeness score of a row, or None when the row is not a candidate."""
    cells = _non_empty(row)
    if not cells or len(cells) < min_cells or is_non_header_row(cells):
        return None

    score = sum(cell_weight(cell) for cell in cells)
    if len(cells) >= WIDE_ROW_COLUMNS:
        score += WIDE_ROW_BONUS
    if len(cells) >= VERY_WIDE_ROW_COLUMNS:
        score += VERY_WIDE_ROW_BONUS
    return score


def _header_text(cell: Any) -> str:
    if cell is None:
        return ""
    if is_number(cell) and float(cell).is_integer():
        return str(int(cell))
    return str(cell).strip()


def locate_header(sheets: Sequence[Sheet]) -> HeaderMatch:
    """Pick the best-scoring (sheet, row) across the workbook.

    Ties keep the first row found. Raises HeaderNotFoundError when no row
    reaches HEADER_MIN_SCORE.
    """
    best: Optional[HeaderMatch] = None
    diagnostics = []

    for sheet_index, sheet in enumerate(sheets):
        widest = max((len(_non_empty(row)) for row in sheet.rows), default=0)
        # Narrow sheets can still hold a valid header
        min_cells = max(1, min(HEADER_MIN_CELLS, widest))
        sheet_best = 0

        for row_index, row in enumerate(sheet.rows):
            score = score_row(row, min_cells)
            if score is None:
                continue
            sheet_best = max(sheet_best, score)
            if score >= HEADER_MIN_SCORE and (best is None or score > best.score):
                best = HeaderMatch(
                    sheet_index=sheet_index,
                    sheet_name=sheet.name,
                    row_index=row_index,
                    score=score,
                    headers=[_header_text(cell) for cell in row],
                )

        diagnostics.append({
            "name": sheet.name,
            "rows": sheet.row_count,
            "columns": sheet.column_count,
            "best_score": sheet_best,
        })

    if best is None:
        summary = "; ".join(
            f"{d['name']}: {d['rows']} linhas x {d['columns']} colunas (pontuação {d['best_score']})"
            for d in diagnostics
        )
        raise HeaderNotFoundError(
            f"Não foi possível identificar a linha de cabeçalho. Planilhas analisadas: {summary}",
            details={"sheets": diagnostics, "min_score": HEADER_MIN_SCORE},
        )

    logger.info(
        "Header row located",
        sheet=best.sheet_name,
        row=best.row_index,
        score=best.score,
    )
    return best
