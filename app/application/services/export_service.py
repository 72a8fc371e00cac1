"""Export service — builds the client, renewal and dashboard Excel files.

Workbooks are written in memory with pandas + openpyxl; financial values come
from the typed policy columns, falling back to the text that older imports
packed into notes.
"""

import re
from datetime import date
from io import BytesIO
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd
from openpyxl.utils import get_column_letter

from app.application.importing.parsers import format_brl
from app.application.services.client_service import display_name
from app.application.services.dashboard_service import compute_dashboard_stats, get_current_date
from app.domain.models.client import Client
from app.domain.models.policy import Policy
from app.domain.schemas.dashboard import DashboardStats

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
COLUMN_WIDTH = 20

STATUS_LABELS = {"active": "Ativo", "renewed": "Renovado", "lost": "Perdido"}

CLIENT_COLUMNS = [
    "Nome", "Telefone", "Email", "Data de Nascimento", "Total de Apólices", "Próxima Renovação",
]
RENEWAL_COLUMNS = [
    "Cliente", "Telefone", "Email", "Número da Apólice", "Seguradora", "Produto",
    "Data de Vencimento", "Prêmio Total", "IOF", "Prêmio Líquido", "Comissão",
    "Placa", "Status", "Observações",
]
DASHBOARD_CLIENT_COLUMNS = ["Nome", "Telefone", "Email", "Data de Nascimento"]
DASHBOARD_POLICY_COLUMNS = [
    "Cliente", "Número da Apólice", "Seguradora", "Produto", "Data de Vencimento", "Prêmio Total", "Status",
]

# Legacy notes: "IOF: R$ 12,34 | Prêmio Líquido: R$ 100,00 | Comissão: R$ 5,00 | Placa: ABC1D23"
LEGACY_NOTE_PATTERNS = {
    "iof": re.compile(r"IOF:\s*R\$\s*([\d.,]+)", re.IGNORECASE),
    "net_premium": re.compile(r"Prêmio\s+Líquido:\s*R\$\s*([\d.,]+)", re.IGNORECASE),
    "commission": re.compile(r"Comissão:\s*R\$\s*([\d.,]+)", re.IGNORECASE),
    "plate": re.compile(r"Placa:\s*(\w+)", re.IGNORECASE),
}
_LEGACY_SEGMENT = re.compile(r"(IOF|Prêmio\s+Líquido|Comissão|Placa):[^|]*\|?", re.IGNORECASE)


def format_date_br(value: Optional[date]) -> str:
    return value.strftime("%d/%m/%Y") if value else ""


def format_currency(value: Optional[float]) -> str:
    return f"R$ {format_brl(value)}" if value else ""


def _legacy_value(notes: str, field_name: str) -> str:
    match = LEGACY_NOTE_PATTERNS[field_name].search(notes)
    return match.group(1) if match else ""


def _money_field(policy: Policy, field_name: str) -> str:
    value = getattr(policy, field_name)
    if value is not None:
        return format_currency(value)
    legacy = _legacy_value(policy.notes or "", field_name)
    return f"R$ {legacy}" if legacy else ""


def free_notes(notes: Optional[str]) -> str:
    """Notes without the legacy financial/plate segments."""
    return _LEGACY_SEGMENT.sub("", notes or "").replace("|", "").strip()


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, status)


def next_renewal(policies: Iterable[Policy]) -> Optional[date]:
    dates = [p.due_date for p in policies if p.status == "active"]
    return min(dates) if dates else None


def _policies_by_client(policies: Iterable[Policy]) -> Dict[int, List[Policy]]:
    grouped: Dict[int, List[Policy]] = {}
    for policy in policies:
        grouped.setdefault(policy.client_id, []).append(policy)
    return grouped


def client_rows(clients: Iterable[Client], policies: Iterable[Policy]) -> List[dict]:
    by_client = _policies_by_client(policies)
    rows = []
    for client in clients:
        owned = by_client.get(client.id, [])
        rows.append({
            "Nome": client.name,
            "Telefone": client.phone or "",
            "Email": client.email or "",
            "Data de Nascimento": format_date_br(client.birthday),
            "Total de Apólices": len(owned),
            "Próxima Renovação": format_date_br(next_renewal(owned)),
        })
    return rows


def renewal_rows(policies: Iterable[Policy]) -> List[dict]:
    rows = []
    for policy in policies:
        client = policy.client
        rows.append({
            "Cliente": display_name(client),
            "Telefone": (client.phone if client else None) or "",
            "Email": (client.email if client else None) or "",
            "Número da Apólice": policy.policy_number or "",
            "Seguradora": policy.insurer or "",
            "Produto": policy.product or "",
            "Data de Vencimento": format_date_br(policy.due_date),
            "Prêmio Total": format_currency(policy.premium),
            "IOF": _money_field(policy, "iof"),
            "Prêmio Líquido": _money_field(policy, "net_premium"),
            "Comissão": _money_field(policy, "commission"),
            "Placa": policy.plate or _legacy_value(policy.notes or "", "plate"),
            "Status": status_label(policy.status),
            "Observações": free_notes(policy.notes),
        })
    return rows


def stats_rows(stats: DashboardStats) -> List[dict]:
    return [
        {"Métrica": "Vencidos", "Valor": stats.overdue},
        {"Métrica": "Vence em 0-7 dias", "Valor": stats.due_in_0_to_7},
        {"Métrica": "Vence em 8-15 dias", "Valor": stats.due_in_8_to_15},
        {"Métrica": "Vence em 16-30 dias", "Valor": stats.due_in_16_to_30},
        {"Métrica": "Aniversários este mês", "Valor": stats.birthdays_this_month},
        {"Métrica": "Aniversários hoje", "Valor": stats.birthdays_today},
    ]


def write_workbook(sheets: Sequence[Tuple[str, List[dict], List[str]]]) -> bytes:
    """Write (sheet name, rows, columns) triples to an in-memory .xlsx."""
    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        for name, rows, columns in sheets:
            pd.DataFrame(rows, columns=columns).to_excel(writer, sheet_name=name, index=False)
            worksheet = writer.sheets[name]
            for index in range(1, len(columns) + 1):
                worksheet.column_dimensions[get_column_letter(index)].width = COLUMN_WIDTH
    return buffer.getvalue()


def export_filename(prefix: str, today: Optional[date] = None) -> str:
    return f"{prefix}_{(today or get_current_date()).isoformat()}.xlsx"


def export_clients(clients: Iterable[Client], policies: Iterable[Policy]) -> bytes:
    return write_workbook([("Clientes", client_rows(clients, policies), CLIENT_COLUMNS)])


def export_renewals(policies: Iterable[Policy]) -> bytes:
    return write_workbook([("Renovações", renewal_rows(policies), RENEWAL_COLUMNS)])


def export_dashboard(
    clients: Iterable[Client],
    policies: Iterable[Policy],
    today: Optional[date] = None,
) -> bytes:
    clients = list(clients)
    policies = list(policies)
    stats = compute_dashboard_stats(policies, clients, today)

    dashboard_clients = [
        {
            "Nome": c.name,
            "Telefone": c.phone or "",
            "Email": c.email or "",
            "Data de Nascimento": format_date_br(c.birthday),
        }
        for c in clients
    ]
    dashboard_policies = [
        {
            "Cliente": display_name(p.client),
            "Número da Apólice": p.policy_number or "",
            "Seguradora": p.insurer or "",
            "Produto": p.product or "",
            "Data de Vencimento": format_date_br(p.due_date),
            "Prêmio Total": p.premium if p.premium else "",
            "Status": status_label(p.status),
        }
        for p in policies
    ]
    return write_workbook([
        ("Estatísticas", stats_rows(stats), ["Métrica", "Valor"]),
        ("Clientes", dashboard_clients, DASHBOARD_CLIENT_COLUMNS),
        ("Apólices", dashboard_policies, DASHBOARD_POLICY_COLUMNS),
    ])
