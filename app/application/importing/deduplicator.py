"""Deduplicator — drops rows that are already persisted as renewals.

A renewal is identified by (identifier, due date at day precision), where the
identifier may be the tax ID, the vehicle plate, the client name or the client
email. Any single matching key is enough to reject an incoming row.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set, Tuple

import structlog

from app.application.importing.row_normalizer import ProcessedRow
from app.application.importing.text import normalize_name
from app.domain.models.policy import Policy

logger = structlog.get_logger(__name__)

DedupKey = Tuple[str, str, str]  # (kind, identifier, ISO due date)

# Plates written into notes by older imports
LEGACY_PLATE_PATTERN = re.compile(r"Placa:\s*(\w+)", re.IGNORECASE)

_NON_DIGITS = re.compile(r"\D")


@dataclass
class DedupResult:
    new_rows: List[ProcessedRow] = field(default_factory=list)
    existing_duplicates: int = 0
    in_file_duplicates: int = 0

    @property
    def duplicates(self) -> int:
        return self.existing_duplicates + self.in_file_duplicates


def _digits(value: Optional[str]) -> str:
    return _NON_DIGITS.sub("", value or "")


def _normalize_email(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def _policy_plates(policy: Policy) -> Iterable[str]:
    if policy.plate:
        yield policy.plate.upper()
    for match in LEGACY_PLATE_PATTERN.finditer(policy.notes or ""):
        yield match.group(1).upper()


def existing_keys(policies: Iterable[Policy], match_on_name: bool = True) -> Set[DedupKey]:
    """Every key the persisted policies can be matched by."""
    keys: Set[DedupKey] = set()
    for policy in policies:
        day = policy.due_date.isoformat()

        number = _digits(policy.policy_number)
        if number:
            keys.add(("id", number, day))
        for plate in _policy_plates(policy):
            keys.add(("plate", plate, day))

        client = policy.client
        if client is None:
            continue
        name = normalize_name(client.name)
        if match_on_name and name:
            keys.add(("name", name, day))
        email = _normalize_email(client.email)
        if email:
            keys.add(("email", email, day))
    return keys


def row_keys(row: ProcessedRow, match_on_name: bool = True) -> List[DedupKey]:
    """Candidate keys of an incoming row, in the same shapes as existing_keys."""
    day = row.due_date.isoformat()
    keys: List[DedupKey] = []

    tax_id = _digits(row.cpf_cnpj)
    if tax_id:
        keys.append(("id", tax_id, day))
    if row.plate:
        keys.append(("plate", row.plate.upper(), day))
    name = normalize_name(row.client_name)
    if match_on_name and name:
        keys.append(("name", name, day))
    email = _normalize_email(row.email)
    if email:
        keys.append(("email", email, day))
    return keys


def deduplicate(
    rows: Iterable[ProcessedRow],
    policies: Iterable[Policy],
    match_on_name: bool = True,
) -> DedupResult:
    """Keep the rows that match no persisted renewal and no earlier row of the file."""
    known = existing_keys(policies, match_on_name)
    seen_unique_keys: Set[str] = set()
    result = DedupResult()

    for row in rows:
        if any(key in known for key in row_keys(row, match_on_name)):
            result.existing_duplicates += 1
            continue
        if row.unique_key in seen_unique_keys:
            result.in_file_duplicates += 1
            continue
        seen_unique_keys.add(row.unique_key)
        result.new_rows.append(row)

    logger.info(
        "Rows deduplicated",
        existing_keys=len(known),
        new=len(result.new_rows),
        existing_duplicates=result.existing_duplicates,
        in_file_duplicates=result.in_file_duplicates,
    )
    return result
