from datetime import date

from app.application.importing.column_mapper import map_columns
from app.application.importing.row_normalizer import (
    build_unique_key,
    name_from_email,
    normalize_row,
    normalize_rows,
)

TODAY = date(2026, 3, 1)

HEADERS = [
    "Segurado", "CPF", "Placa", "Celular", "Email", "Seguradora", "Produto",
    "Prêmio Total", "IOF", "Prêmio Líquido", "Comissão", "Vencimento", "Nascimento",
]


def _mapping():
    return map_columns(HEADERS, [])


def test_full_row():
    row = [
        " Maria  Souza ", "123.456.789-01", "abc-1d23", "(11) 98765-4321", "Maria@X.com",
        "Allianz", "Auto", "1.234,56", "12,34", "1.100,00", "110,00", "15/03/2026", "10/05/1980",
    ]
    processed = normalize_row(row, _mapping(), TODAY)

    assert processed.client_name == "Maria Souza"
    assert processed.cpf_cnpj == "12345678901"
    assert processed.plate == "ABC1D23"
    assert processed.phone == "11987654321"
    assert processed.email == "maria@x.com"
    assert processed.insurer == "Allianz"
    assert processed.product == "Auto"
    assert processed.premium == 1234.56
    assert processed.iof == 12.34
    assert processed.net_premium == 1100.0
    assert processed.commission == 110.0
    assert processed.due_date == date(2026, 3, 15)
    assert processed.birthday == date(1980, 5, 10)
    assert processed.unique_key == "12345678901_2026-03-15"


def test_unique_key_precedence():
    due = date(2026, 3, 15)
    assert build_unique_key("Ana", due, "12345678901", "ABC1D23") == "12345678901_2026-03-15"
    assert build_unique_key("Ana", due, None, "ABC1D23") == "ABC1D23_2026-03-15"
    assert build_unique_key("Ana", due) == "Ana_2026-03-15"


def test_rows_without_name_or_valid_date_are_dropped():
    mapping = _mapping()
    blank_name = [""] * 11 + ["15/03/2026"]
    bad_date = ["Ana"] + [None] * 10 + ["not a date"]
    assert normalize_row(blank_name, mapping, TODAY) is None
    assert normalize_row(bad_date, mapping, TODAY) is None


def test_normalize_rows_counts():
    mapping = _mapping()
    rows = [
        ["Ana"] + [None] * 10 + ["15/03/2026"],
        [None] * 13,
        [],
        ["Bruno"] + [None] * 10 + ["sem data"],
        ["Carla"] + [None] * 10 + [46096],
    ]
    processed, read, invalid = normalize_rows(rows, mapping, TODAY)

    assert [p.client_name for p in processed] == ["Ana", "Carla"]
    assert read == 3
    assert invalid == 1


def test_name_from_email():
    assert name_from_email("joao.silva@x.com") == "Joao Silva"
    assert name_from_email("maria_souza123@x.com") == "Maria Souza"
    assert name_from_email("sem-arroba") == ""


def test_row_with_name_from_email():
    mapping = map_columns(["Email", "Vencimento"], [["joao.silva@x.com", "15/03/2026"]])
    processed = normalize_row(["joao.silva@x.com", "15/03/2026"], mapping, TODAY)
    assert processed.client_name == "Joao Silva"
    assert processed.email == "joao.silva@x.com"
