from datetime import date

import pytest
from sqlalchemy.exc import IntegrityError

from app.application.services import import_service
from app.application.services.import_service import import_spreadsheet
from app.config import Settings
from app.core.exceptions import (
    AllRowsDuplicateError,
    FileUnreadableError,
    HeaderNotFoundError,
    ImportInProgressError,
    NoValidRowsError,
)
from app.domain.models.client import Client
from tests.factories import TODAY, make_workbook


def _import(content, client_repo, policy_repo, run_repo, name="renovacoes.xlsx", **settings):
    return import_spreadsheet(
        content,
        name,
        client_repo,
        policy_repo,
        run_repo,
        today=TODAY,
        settings=Settings(**settings),
    )


def test_joao_silva_scenario(joao_silva_workbook, client_repo, policy_repo, run_repo):
    summary = _import(joao_silva_workbook, client_repo, policy_repo, run_repo)

    assert summary.clients_created == 1
    assert summary.policies_created == 1
    assert summary.duplicates_skipped == 0
    assert summary.header_row == 1

    [client] = client_repo.list()
    assert client.name == "João Silva"
    assert client.phone == "11987654321"
    assert client.email == "joao@x.com"

    [policy] = policy_repo.list()
    assert policy.due_date == date(2026, 3, 15)
    assert policy.insurer == "Porto Seguro"
    assert policy.status == "active"
    assert policy.client_id == client.id

    [run] = run_repo.latest()
    assert run.status == "completed"
    assert run.policies_created == 1


def test_second_import_of_the_same_file_finds_only_duplicates(
    joao_silva_workbook, client_repo, policy_repo, run_repo
):
    _import(joao_silva_workbook, client_repo, policy_repo, run_repo)

    with pytest.raises(AllRowsDuplicateError) as exc_info:
        _import(joao_silva_workbook, client_repo, policy_repo, run_repo)

    assert exc_info.value.details["duplicates_skipped"] == 1
    assert len(policy_repo.list()) == 1
    assert [r.status for r in run_repo.latest()] == ["failed", "completed"]


def test_header_below_report_title_with_mixed_rows(client_repo, policy_repo, run_repo):
    content = make_workbook(
        ("Resumo", [["Total de renovações", 3]]),
        (
            "Base",
            [
                ["Carteira de Renovações"],
                ["Gerado em 01/03/2026"],
                ["Segurado", "CPF", "Celular", "Email", "Seguradora", "Produto", "Prêmio Total", "Vencimento"],
                ["Ana Lima", "123.456.789-01", "11999990000", "ana@x.com", "Allianz", "Auto", "1.200,50", "10/03/2026"],
                ["", "", "", "", "Porto", "Auto", "900", "11/03/2026"],
                ["Bruno Costa", "", "", "", "Porto", "Residencial", "900", "sem data"],
                ["ana lima", "", "", "", "Tokio", "Vida", 300, 46120],
            ],
        ),
    )

    summary = _import(content, client_repo, policy_repo, run_repo)

    assert summary.sheet_name == "Base"
    assert summary.header_row == 3
    assert summary.rows_read == 4
    assert summary.rows_invalid == 2
    assert summary.clients_created == 1
    assert summary.policies_created == 2

    policies = policy_repo.list()
    assert {p.policy_number for p in policies} == {"12345678901", None}
    assert {p.premium for p in policies} == {1200.5, 300.0}


def test_existing_client_is_reused(joao_silva_workbook, client_repo, policy_repo, run_repo):
    client_repo.create({"name": "joão silva"})

    summary = _import(joao_silva_workbook, client_repo, policy_repo, run_repo)

    assert summary.clients_created == 0
    assert summary.policies_created == 1
    assert len(client_repo.list()) == 1


def test_legacy_notes_are_written_only_when_enabled(client_repo, policy_repo, run_repo):
    content = make_workbook((
        "Plan1",
        [
            ["Cliente", "Vencimento", "IOF", "Comissão", "Placa"],
            ["Ana", "15/03/2026", "12,34", "100", "abc1d23"],
        ],
    ))

    _import(content, client_repo, policy_repo, run_repo, IMPORT_WRITE_LEGACY_NOTES=True)

    [policy] = policy_repo.list()
    assert policy.iof == 12.34
    assert policy.commission == 100.0
    assert policy.plate == "ABC1D23"
    assert policy.notes == "IOF: R$ 12,34 | Comissão: R$ 100,00 | Placa: ABC1D23"


def test_rows_without_name_or_date_never_become_policies(client_repo, policy_repo, run_repo):
    content = make_workbook((
        "Plan1",
        [
            ["Nome", "Vencimento", "Seguradora"],
            ["", "15/03/2026", "Allianz"],
            ["Carla", "32/13/2026", "Allianz"],
        ],
    ))

    with pytest.raises(NoValidRowsError) as exc_info:
        _import(content, client_repo, policy_repo, run_repo)

    assert exc_info.value.details["rows_read"] == 2
    assert policy_repo.list() == []


def test_unreadable_file(client_repo, policy_repo, run_repo):
    with pytest.raises(FileUnreadableError):
        _import(b"not a workbook", client_repo, policy_repo, run_repo)

    [run] = run_repo.latest()
    assert run.status == "failed"
    assert run.error_message


def test_missing_header(client_repo, policy_repo, run_repo):
    content = make_workbook(("Plan1", [["a", "b"], ["c", "d"]]))
    with pytest.raises(HeaderNotFoundError):
        _import(content, client_repo, policy_repo, run_repo)


def test_concurrent_import_is_rejected(joao_silva_workbook, client_repo, policy_repo, run_repo):
    assert import_service._import_lock.acquire(blocking=False)
    try:
        with pytest.raises(ImportInProgressError):
            _import(joao_silva_workbook, client_repo, policy_repo, run_repo)
    finally:
        import_service._import_lock.release()

    assert run_repo.latest() == []


def test_duplicate_snapshot_keeps_the_most_recent_renewals(
    joao_silva_workbook, client_repo, policy_repo, run_repo
):
    client = client_repo.create({"name": "João Silva"})
    for due_date in (date(2024, 3, 15), date(2025, 3, 15), date(2026, 3, 15)):
        policy_repo.create({"client_id": client.id, "due_date": due_date})

    newest = policy_repo.fetch_policies_with_client(2, newest_first=True)
    assert [p.due_date for p in newest] == [date(2026, 3, 15), date(2025, 3, 15)]

    with pytest.raises(AllRowsDuplicateError):
        _import(joao_silva_workbook, client_repo, policy_repo, run_repo, IMPORT_SNAPSHOT_LIMIT=1)


def test_database_error_is_recorded_on_the_run(
    joao_silva_workbook, client_repo, policy_repo, run_repo, monkeypatch
):
    def broken_snapshot(*args, **kwargs):
        policy_repo.db.add(Client(name=None))
        policy_repo.db.flush()

    monkeypatch.setattr(policy_repo, "fetch_policies_with_client", broken_snapshot)

    with pytest.raises(IntegrityError):
        _import(joao_silva_workbook, client_repo, policy_repo, run_repo)

    [run] = run_repo.latest()
    assert run.status == "failed"
    assert run.error_message
    assert client_repo.list() == []
