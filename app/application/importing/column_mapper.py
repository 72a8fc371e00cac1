"""Column mapper — assigns semantic fields to spreadsheet columns.

Mapping is driven by COLUMN_RULES, an ordered list of (field, predicate) pairs
over the normalized header text. Rules are evaluated in order; each rule
scans headers left to right and claims the first free header it matches,
unless its field already has a column. When the client name or due date is
still missing afterwards, columns are sniffed by content.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import structlog

from app.application.importing.parsers import is_blank, is_number, looks_like_date
from app.application.importing.text import clean_text, normalize_header
from app.core.exceptions import RequiredColumnsNotFoundError

logger = structlog.get_logger(__name__)

CLIENT_NAME = "client_name"
DUE_DATE = "due_date"
REQUIRED_FIELDS = (CLIENT_NAME, DUE_DATE)

FIELD_LABELS = {
    CLIENT_NAME: "Nome do Cliente",
    DUE_DATE: "Data de Vencimento",
    "birthday": "Data de Aniversário",
    "phone": "Telefone",
    "email": "Email",
    "insurer": "Seguradora",
    "product": "Produto",
    "premium": "Prêmio",
    "iof": "IOF",
    "net_premium": "Prêmio Líquido",
    "commission": "Comissão",
    "cpf_cnpj": "CPF/CNPJ",
    "plate": "Placa",
}

SNIFF_SAMPLE_SIZE = 10

CLIENT_NAME_HEADERS = frozenset({
    "nome", "cliente", "segurado", "nomecliente", "nomedocliente", "nomesegurado",
    "nomedosegurado", "nomecompleto", "razaosocial",
})
NOT_CLIENT_NAME = ("seguradora", "email", "fone", "cpf", "cnpj", "corretor", "vendedor", "produtor", "usuario")

# Header hints that rule a column out of content sniffing
PHONE_KEYWORDS = ("fone", "celular", "whatsapp")
PHONE_HINTS = PHONE_KEYWORDS + ("contato",)
DATE_HINTS = ("data", "vencimento", "vigencia", "nascimento", "aniversario", "renovacao", "validade")
EMAIL_HINTS = ("email",)
FINANCIAL_HINTS = ("premio", "iof", "liquido", "comissao", "valor", "parcela")
INSURER_HINTS = ("seguradora", "companhia")
IDENTIFIER_HINTS = ("cpf", "cnpj", "placa", "apolice", "codigo")

_DIGITS_AND_PUNCT = re.compile(r"^[\d\s.,/()\-+]+$")


def _has(*keywords: str) -> Callable[[str], bool]:
    return lambda header: any(keyword in header for keyword in keywords)


def _is_phone_header(header: str) -> bool:
    return header.startswith("tel") or any(keyword in header for keyword in PHONE_KEYWORDS)


def _is_client_name_header(header: str) -> bool:
    if any(word in header for word in NOT_CLIENT_NAME):
        return False
    return any(word in header for word in ("nome", "cliente", "segurado", "razaosocial"))


COLUMN_RULES: Tuple[Tuple[str, Callable[[str], bool]], ...] = (
    (DUE_DATE, lambda h: "vencimento" in h and any(k in h for k in ("apolice", "seguro", "vigencia"))),
    (DUE_DATE, _has("vencimento")),
    (DUE_DATE, _has("fimvigencia", "finalvigencia", "vigenciafinal", "terminovigencia")),
    (DUE_DATE, _has("renovacao", "validade")),
    ("birthday", _has("aniversario", "nascimento", "datanasc", "dtnasc")),
    ("cpf_cnpj", _has("cpf", "cnpj")),
    ("plate", _has("placa")),
    ("email", _has("email")),
    # Cellphone beats a work line, which beats any other phone column
    ("phone", _has("celular", "whatsapp")),
    ("phone", lambda h: "comercial" in h and _is_phone_header(h)),
    ("phone", _is_phone_header),
    ("insurer", _has("seguradora", "companhia")),
    ("net_premium", _has("premioliquido", "liquido")),
    ("iof", _has("iof")),
    ("commission", _has("comissao")),
    ("premium", _has("premiototal")),
    ("premium", _has("premio")),
    ("product", _has("produto", "ramo")),
    (CLIENT_NAME, lambda h: h in CLIENT_NAME_HEADERS),
    (CLIENT_NAME, _is_client_name_header),
)


@dataclass
class ColumnMapping:
    headers: List[str]
    columns: Dict[str, int] = field(default_factory=dict)
    # Client name is derived from the email column's local part
    name_from_email: bool = False

    def header_for(self, field_name: str) -> Optional[str]:
        index = self.columns.get(field_name)
        return None if index is None else self.headers[index]

    def as_headers(self) -> Dict[str, str]:
        """Field → header string, the way the mapping is shown to users."""
        mapped = {name: self.headers[index] for name, index in self.columns.items()}
        if self.name_from_email and "email" in self.columns:
            mapped[CLIENT_NAME] = self.headers[self.columns["email"]]
        return mapped


def apply_rules(headers: Sequence[str]) -> Dict[str, int]:
    """Run COLUMN_RULES over the headers."""
    normalized = [normalize_header(h) for h in headers]
    columns: Dict[str, int] = {}
    claimed = set()

    for field_name, predicate in COLUMN_RULES:
        if field_name in columns:
            continue
        for index, header in enumerate(normalized):
            if header and index not in claimed and predicate(header):
                columns[field_name] = index
                claimed.add(index)
                break

    return columns


def _column_samples(rows: Sequence[Sequence[Any]], index: int) -> List[Any]:
    samples = []
    for row in rows:
        if index < len(row) and not is_blank(row[index]):
            samples.append(row[index])
            if len(samples) >= SNIFF_SAMPLE_SIZE:
                break
    return samples


def looks_like_free_text(value: Any) -> bool:
    if is_number(value) or not isinstance(value, str):
        return False
    text = clean_text(value)
    if not text or "@" in text or _DIGITS_AND_PUNCT.match(text) or looks_like_date(text):
        return False
    return any(c.isalpha() for c in text)


def _allows_name_sniffing(header: str) -> bool:
    hints = PHONE_HINTS + DATE_HINTS + EMAIL_HINTS + FINANCIAL_HINTS + INSURER_HINTS + IDENTIFIER_HINTS
    return not (header.startswith(("tel", "dt")) or any(hint in header for hint in hints))


def _allows_date_sniffing(header: str) -> bool:
    hints = PHONE_HINTS + EMAIL_HINTS + FINANCIAL_HINTS + INSURER_HINTS + IDENTIFIER_HINTS
    return not (header.startswith("tel") or any(hint in header for hint in hints))


def sniff_column(
    headers: Sequence[str],
    rows: Sequence[Sequence[Any]],
    taken: Sequence[int],
    header_ok: Callable[[str], bool],
    value_ok: Callable[[Any], bool],
) -> Optional[int]:
    """First free column whose header passes header_ok and whose sampled values all pass value_ok."""
    width = max([len(headers)] + [len(row) for row in rows[:SNIFF_SAMPLE_SIZE * 5]])
    for index in range(width):
        if index in taken:
            continue
        header = normalize_header(headers[index]) if index < len(headers) else ""
        if not header_ok(header):
            continue
        samples = _column_samples(rows, index)
        if samples and all(value_ok(value) for value in samples):
            return index
    return None


def map_columns(headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> ColumnMapping:
    """Map the header row to semantic fields, with content-sniffing fallbacks.

    Raises RequiredColumnsNotFoundError when the client name or due date
    cannot be resolved.
    """
    headers = list(headers)
    columns = apply_rules(headers)
    mapping = ColumnMapping(headers=headers, columns=columns)

    if DUE_DATE not in columns:
        index = sniff_column(headers, rows, list(columns.values()), _allows_date_sniffing, looks_like_date)
        if index is not None:
            columns[DUE_DATE] = index
            logger.info("Due date column found by content", column=index)

    if CLIENT_NAME not in columns:
        if "email" in columns:
            mapping.name_from_email = True
            logger.info("Client name derived from email column", column=columns["email"])
        else:
            index = sniff_column(headers, rows, list(columns.values()), _allows_name_sniffing, looks_like_free_text)
            if index is not None:
                columns[CLIENT_NAME] = index
                logger.info("Client name column found by content", column=index)

    missing = [
        name for name in REQUIRED_FIELDS
        if name not in columns and not (name == CLIENT_NAME and mapping.name_from_email)
    ]
    if missing:
        sample = next((row for row in rows if any(not is_blank(v) for v in row)), [])
        detected = [h for h in headers if h]
        raise RequiredColumnsNotFoundError(
            "Não foi possível identificar as colunas obrigatórias: "
            + ", ".join(FIELD_LABELS[name] for name in missing)
            + ". Cabeçalhos detectados: "
            + ", ".join(detected),
            details={
                "missing": missing,
                "headers": detected,
                "sample_row": [clean_text(v) for v in sample],
            },
        )

    logger.info("Columns mapped", mapping=mapping.as_headers())
    return mapping
