"""Text normalization shared by header detection, mapping and deduplication."""

import re
import unicodedata
from typing import Any

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_WHITESPACE = re.compile(r"\s+")


def strip_accents(value: str) -> str:
    """'Apólice' → 'Apolice'."""
    decomposed = unicodedata.normalize("NFKD", value)
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def normalize_header(value: Any) -> str:
    """Lowercase, accent-free, alphanumerics only: 'Vencimento Apólice' → 'vencimentoapolice'."""
    if value is None:
        return ""
    return _NON_ALNUM.sub("", strip_accents(str(value)).lower())


def normalize_name(value: Any) -> str:
    """Comparison form of a person's name: lowercase, accent-free, single spaces."""
    if value is None:
        return ""
    return _WHITESPACE.sub(" ", strip_accents(str(value)).lower()).strip()


def clean_text(value: Any) -> str:
    """Trimmed display text with collapsed whitespace; blanks and 'nan' become ''."""
    if value is None:
        return ""
    text = _WHITESPACE.sub(" ", str(value).replace("\xa0", " ")).strip()
    if text.lower() in ("nan", "none", "null", "-", "#n/a", "#ref!", "#error!"):
        return ""
    return text
