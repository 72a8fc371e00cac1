"""Client resolver & writer — persists the deduplicated rows.

Rows are grouped per client, matched against existing clients, and written in
two batch calls: new clients first, then one policy per row. A failure in the
policy batch does not undo the client batch.
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

import structlog
from sqlalchemy.exc import SQLAlchemyError

from app.application.importing.parsers import format_brl
from app.application.importing.row_normalizer import ProcessedRow
from app.core.exceptions import BatchWriteError
from app.domain.models.client import Client
from app.domain.repositories.client_repository import ClientRepository
from app.domain.repositories.policy_repository import PolicyRepository
from app.domain.schemas.client import ClientCreate
from app.domain.schemas.policy import PolicyCreate

logger = structlog.get_logger(__name__)

_NON_DIGITS = re.compile(r"\D")

LEGACY_NOTE_LABELS = (
    ("iof", "IOF"),
    ("net_premium", "Prêmio Líquido"),
    ("commission", "Comissão"),
)


@dataclass
class WriteResult:
    clients_created: int
    policies_created: int


@dataclass
class ClientGroup:
    key: str
    rows: List[ProcessedRow]

    @property
    def name(self) -> str:
        return self.rows[0].client_name

    def first(self, attr: str):
        """First non-empty value of an attribute across the group's rows."""
        return next((getattr(r, attr) for r in self.rows if getattr(r, attr)), None)


def group_rows_by_client(rows: Iterable[ProcessedRow]) -> List[ClientGroup]:
    """Group rows by lowercase client name, keeping first-seen order."""
    groups: Dict[str, ClientGroup] = {}
    for row in rows:
        key = row.client_name.strip().lower()
        groups.setdefault(key, ClientGroup(key=key, rows=[])).rows.append(row)
    return list(groups.values())


class ClientIndex:
    """Lookup of existing clients by name, email and phone."""

    def __init__(self, clients: Iterable[Client]):
        self.by_name: Dict[str, int] = {}
        self.by_email: Dict[str, int] = {}
        self.by_phone: Dict[str, int] = {}
        for client in clients:
            if client.name:
                self.by_name.setdefault(client.name.strip().lower(), client.id)
            if client.email:
                self.by_email.setdefault(client.email.strip().lower(), client.id)
            phone = _NON_DIGITS.sub("", client.phone or "")
            if phone:
                self.by_phone.setdefault(phone, client.id)

    def resolve(self, group: ClientGroup) -> Optional[int]:
        """Name first, then email, then digits-only phone."""
        client_id = self.by_name.get(group.key)
        if client_id is not None:
            return client_id
        email = (group.first("email") or "").strip().lower()
        if email and email in self.by_email:
            return self.by_email[email]
        phone = _NON_DIGITS.sub("", group.first("phone") or "")
        if phone and phone in self.by_phone:
            return self.by_phone[phone]
        return None


def resolve_clients(
    groups: List[ClientGroup],
    existing_clients: Iterable[Client],
) -> Tuple[Dict[str, int], List[ClientGroup]]:
    """Split groups into resolved (key → client id) and groups needing a new client."""
    index = ClientIndex(existing_clients)
    resolved: Dict[str, int] = {}
    pending: List[ClientGroup] = []
    for group in groups:
        client_id = index.resolve(group)
        if client_id is None:
            pending.append(group)
        else:
            resolved[group.key] = client_id
    return resolved, pending


def legacy_notes(row: ProcessedRow) -> Optional[str]:
    """'IOF: R$ 123,45 | Comissão: R$ 67,89' for readers of the old notes format."""
    parts = [
        f"{label}: R$ {format_brl(getattr(row, attr))}"
        for attr, label in LEGACY_NOTE_LABELS
        if getattr(row, attr) is not None
    ]
    if row.plate:
        parts.append(f"Placa: {row.plate}")
    return " | ".join(parts) or None


def build_policy(row: ProcessedRow, client_id: int, write_legacy_notes: bool = False) -> PolicyCreate:
    return PolicyCreate(
        client_id=client_id,
        policy_number=row.cpf_cnpj or row.plate,
        insurer=row.insurer,
        product=row.product,
        due_date=row.due_date,
        premium=row.premium,
        status="active",
        notes=legacy_notes(row) if write_legacy_notes else None,
        iof=row.iof,
        net_premium=row.net_premium,
        commission=row.commission,
        plate=row.plate,
    )


def write_rows(
    rows: List[ProcessedRow],
    existing_clients: Iterable[Client],
    client_repo: ClientRepository,
    policy_repo: PolicyRepository,
    write_legacy_notes: bool = False,
) -> WriteResult:
    """Create the missing clients, then every policy."""
    groups = group_rows_by_client(rows)
    resolved, pending = resolve_clients(groups, existing_clients)

    new_clients = [
        ClientCreate(
            name=group.name,
            phone=group.first("phone"),
            email=group.first("email"),
            birthday=group.first("birthday"),
        )
        for group in pending
    ]

    created_clients: List[Client] = []
    if new_clients:
        try:
            created_clients = client_repo.batch_create_clients(new_clients)
        except SQLAlchemyError as e:
            logger.error("Client batch failed", count=len(new_clients), error=str(e))
            raise BatchWriteError(
                "Erro ao criar os clientes. Nenhuma apólice foi importada.",
                details={"stage": "clients", "reason": str(e)[:500]},
            ) from e
        if len(created_clients) != len(new_clients):
            raise BatchWriteError(
                "A criação de clientes retornou um número inesperado de registros.",
                details={"stage": "clients", "expected": len(new_clients), "received": len(created_clients)},
            )

    # Positional correspondence between submitted and created clients
    for group, client in zip(pending, created_clients):
        resolved[group.key] = client.id

    policies = [
        build_policy(row, resolved[group.key], write_legacy_notes)
        for group in groups
        for row in group.rows
    ]

    try:
        created_policies = policy_repo.batch_create_policies(policies)
    except SQLAlchemyError as e:
        logger.error(
            "Policy batch failed after clients were created",
            clients_created=len(created_clients),
            policies=len(policies),
            error=str(e),
        )
        message = "Erro ao criar as apólices."
        if created_clients:
            message += f" Atenção: {len(created_clients)} cliente(s) novo(s) já foram criados e permanecem salvos."
        raise BatchWriteError(
            message,
            details={"stage": "policies", "clients_created": len(created_clients), "reason": str(e)[:500]},
        ) from e

    logger.info(
        "Import rows written",
        clients_resolved=len(groups) - len(pending),
        clients_created=len(created_clients),
        policies_created=len(created_policies),
    )
    return WriteResult(clients_created=len(created_clients), policies_created=len(created_policies))
