from datetime import date, datetime

import pytest

from app.application.importing.parsers import (
    clean_cpf_cnpj,
    clean_email,
    clean_phone,
    clean_plate,
    format_brl,
    looks_like_date,
    parse_date,
    parse_numeric,
    resolve_two_digit_year,
    serial_to_date,
)

TODAY = date(2026, 6, 1)


class TestParseDate:
    def test_formats_in_order(self):
        assert parse_date("15/03/2026") == date(2026, 3, 15)
        assert parse_date("15-03-2026") == date(2026, 3, 15)
        assert parse_date("2026-03-15") == date(2026, 3, 15)

    def test_day_first_wins_over_month_first(self):
        assert parse_date("03/04/2026") == date(2026, 4, 3)

    def test_month_first_when_day_first_is_impossible(self):
        assert parse_date("12/31/2026") == date(2026, 12, 31)

    def test_two_digit_years(self):
        assert parse_date("01/01/79", TODAY) == date(1979, 1, 1)
        assert parse_date("01/01/26", TODAY) == date(2026, 1, 1)
        assert parse_date("01/01/36", TODAY) == date(2036, 1, 1)
        assert parse_date("01/01/37", TODAY) == date(1937, 1, 1)

    def test_serial_numbers(self):
        assert parse_date(46096) == date(2026, 3, 15)
        assert parse_date(46096.75) == date(2026, 3, 15)
        assert parse_date("46096") == date(2026, 3, 15)

    def test_serial_round_trip(self):
        for day in (date(1990, 1, 1), date(2026, 3, 15), date(2040, 12, 31)):
            serial = (day - date(1899, 12, 30)).days
            assert parse_date(serial) == day

    @pytest.mark.parametrize(
        "fmt, day",
        [
            ("%d/%m/%Y", date(2000, 2, 29)),
            ("%d/%m/%Y", date(2031, 11, 9)),
            ("%d-%m-%Y", date(2026, 3, 15)),
            ("%Y-%m-%d", date(2026, 3, 5)),
            ("%d/%m/%y", date(2030, 5, 17)),
            ("%d/%m/%y", date(1979, 8, 2)),
            ("%m/%d/%Y", date(2026, 3, 25)),
        ],
    )
    def test_string_round_trip(self, fmt, day):
        assert parse_date(day.strftime(fmt), today=TODAY) == day

    def test_date_objects_pass_through(self):
        assert parse_date(datetime(2026, 3, 15, 10, 30)) == date(2026, 3, 15)
        assert parse_date(date(2026, 3, 15)) == date(2026, 3, 15)

    @pytest.mark.parametrize("value", [None, "", "   ", "abc", "today", "#N/A", "-", True, 0, -5])
    def test_garbage_is_none(self, value):
        assert parse_date(value) is None


def test_resolve_two_digit_year():
    assert resolve_two_digit_year(79, date(2026, 1, 1)) == 1979
    assert resolve_two_digit_year(26, date(2026, 1, 1)) == 2026


def test_serial_to_date_bounds():
    assert serial_to_date(1) == date(1899, 12, 31)
    assert serial_to_date(0) is None
    assert serial_to_date(float("nan")) is None


class TestParseNumeric:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("1.234,56", 1234.56),
            ("1234.56", 1234.56),
            ("R$ 1.234,56", 1234.56),
            ("1.234.567", 1234567.0),
            ("0,5", 0.5),
            (1234.56, 1234.56),
            (100, 100.0),
        ],
    )
    def test_accepted_shapes(self, value, expected):
        assert parse_numeric(value) == pytest.approx(expected)

    @pytest.mark.parametrize("value", [None, "", "abc", "0", 0, -10, "-5,00", 1e15, 2e15, True, "#REF!"])
    def test_rejected_values(self, value):
        assert parse_numeric(value) is None


def test_clean_cpf_cnpj():
    assert clean_cpf_cnpj("123.456.789-01") == "12345678901"
    assert clean_cpf_cnpj(1234567890) == "01234567890"
    assert clean_cpf_cnpj("12.345.678/0001-95") == "12345678000195"
    assert clean_cpf_cnpj(12345678901.0) == "12345678901"
    assert clean_cpf_cnpj("123") is None
    assert clean_cpf_cnpj(None) is None


def test_clean_plate():
    assert clean_plate("abc-1d23") == "ABC1D23"
    assert clean_plate(" ") is None


def test_clean_phone():
    assert clean_phone("(11) 98765-4321") == "11987654321"
    assert clean_phone(11987654321) == "11987654321"
    assert clean_phone("VERIFICAR") is None
    assert clean_phone("1234") is None


def test_clean_phone_keeps_the_first_of_several_numbers():
    assert clean_phone("(11) 98765-4321 / (11) 3333-4444") == "11987654321"
    assert clean_phone("11 98765-4321 e 11 3333-4444") == "11987654321"
    assert clean_phone("1234; 11 3333-4444") == "1133334444"
    assert clean_phone("119876543211133334444") is None


def test_clean_email():
    assert clean_email(" Joao@X.com ") == "joao@x.com"
    assert clean_email("sem email") is None


def test_format_brl():
    assert format_brl(1234.5) == "1.234,50"
    assert format_brl(1234567.891) == "1.234.567,89"
    assert format_brl(0.5) == "0,50"


def test_looks_like_date():
    assert looks_like_date("15/03/2026")
    assert looks_like_date(46096)
    assert looks_like_date(date(2026, 3, 15))
    assert not looks_like_date(12)
    assert not looks_like_date("Porto Seguro")
