"""Cell value parsers for Brazilian spreadsheets.

Handles:
- Dates as spreadsheet serials (base 1899-12-30) or dd/mm/yyyy-style strings
- Two-digit years with a sliding century window
- Amounts in Brazilian format (1.234,56), plain dot decimals and raw numbers
- CPF/CNPJ, vehicle plates, phones and emails
"""

import math
import numbers
import re
import warnings
from datetime import date, datetime, timedelta
from typing import Any, Optional

import pandas as pd

from app.application.importing.text import clean_text

SPREADSHEET_EPOCH = date(1899, 12, 30)
MAX_DATE_SERIAL = 2958465  # 9999-12-31

# Spreadsheet date-serial range used to recognise date columns by content (1954 → 2119)
PLAUSIBLE_SERIAL_MIN = 20000
PLAUSIBLE_SERIAL_MAX = 80000

# Tried in order; the first that parses wins
DATE_FORMATS = ("%d/%m/%Y", "%d-%m-%Y", "%Y-%m-%d", "%d/%m/%y", "%m/%d/%Y")

# Two-digit years above (current year % 100 + window) belong to the 1900s
TWO_DIGIT_YEAR_WINDOW = 10

# Amounts at or above this are misread date serials or garbage
MAX_AMOUNT = 1e15

# E.164 bound, also keeps values inside the phone column width
MAX_PHONE_DIGITS = 15

SPREADSHEET_ERRORS = ("#REF!", "#ERROR!", "#DIV/0!", "#N/A", "#VALUE!", "-")

DATE_SHAPE = re.compile(r"^\d{1,4}[/\-.]\d{1,2}[/\-.]\d{1,4}(?:[ T]\d{1,2}:\d{2}(?::\d{2})?)?$")
_FOUR_DIGITS = re.compile(r"\d{4}")
_SERIAL_TEXT = re.compile(r"^\d{1,5}(?:\.\d+)?$")
_NON_DIGITS = re.compile(r"\D")
_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")
_PHONE_SEPARATORS = re.compile(r"\s*(?:[/;,|]|\be\b|\bou\b)\s*", re.IGNORECASE)


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def is_number(value: Any) -> bool:
    """True for real numbers (numpy included), False for bools."""
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def resolve_two_digit_year(two_digit: int, today: Optional[date] = None) -> int:
    """79 → 1979, 26 → 2026 when today is in 2026."""
    today = today or date.today()
    if two_digit > today.year % 100 + TWO_DIGIT_YEAR_WINDOW:
        return 1900 + two_digit
    return 2000 + two_digit


def serial_to_date(serial: float) -> Optional[date]:
    """Convert a spreadsheet date serial (days since 1899-12-30) to a date."""
    if math.isnan(serial) or serial < 1 or serial > MAX_DATE_SERIAL:
        return None
    return SPREADSHEET_EPOCH + timedelta(days=int(serial))


def _with_century(parsed: date, today: Optional[date]) -> Optional[date]:
    year = resolve_two_digit_year(parsed.year % 100, today)
    try:
        return parsed.replace(year=year)
    except ValueError:
        # 29/02 moved into a non-leap century
        return None


def parse_date(value: Any, today: Optional[date] = None) -> Optional[date]:
    """Parse a due date or birthday cell.

    Accepts date/datetime objects, spreadsheet serial numbers and strings in
    one of DATE_FORMATS. Strings no format accepts go through pandas' own
    parser (day first). Returns None when nothing fits.
    """
    if is_blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if is_number(value):
        return serial_to_date(float(value))

    text = clean_text(value)
    if not text or text in SPREADSHEET_ERRORS:
        return None
    if _SERIAL_TEXT.match(text):
        return serial_to_date(float(text))

    for fmt in DATE_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt).date()
        except ValueError:
            continue
        if fmt.endswith("%y"):
            return _with_century(parsed, today)
        return parsed

    return _parse_date_fallback(text, today)


def _parse_date_fallback(text: str, today: Optional[date]) -> Optional[date]:
    # Words such as 'today' or 'now' are not dates in a spreadsheet cell
    if not any(c.isdigit() for c in text):
        return None
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        parsed = pd.to_datetime(text, dayfirst=True, errors="coerce")
    if parsed is None or pd.isna(parsed):
        return None
    parsed = parsed.date()
    if not _FOUR_DIGITS.search(text):
        return _with_century(parsed, today)
    return parsed


def looks_like_date(value: Any) -> bool:
    """Content test used to find a due-date column when no header matches."""
    if isinstance(value, (date, datetime)):
        return True
    if is_number(value):
        return PLAUSIBLE_SERIAL_MIN <= float(value) <= PLAUSIBLE_SERIAL_MAX
    return bool(DATE_SHAPE.match(clean_text(value)))


def parse_numeric(value: Any) -> Optional[float]:
    """Parse amounts: numbers as-is, '1.234,56' (Brazilian) and '1234.56'.

    Only positive values below MAX_AMOUNT are accepted.
    """
    if is_blank(value) or isinstance(value, bool):
        return None

    if is_number(value):
        number = float(value)
    else:
        s = str(value).strip()
        if not s or s in SPREADSHEET_ERRORS:
            return None
        s = re.sub(r"[R$\s\xa0]", "", s)
        if "," in s:
            # Brazilian format: dots are thousands, comma is the decimal mark
            s = s.replace(".", "").replace(",", ".")
        elif s.count(".") > 1:
            s = s.replace(".", "")
        try:
            number = float(s)
        except ValueError:
            return None

    if math.isnan(number) or not 0 < number < MAX_AMOUNT:
        return None
    return number


def _integral_text(value: Any) -> str:
    """Numeric cells lose their '.0' so digits are not polluted."""
    if is_number(value) and float(value).is_integer():
        return str(int(value))
    return str(value)


def clean_cpf_cnpj(value: Any) -> Optional[str]:
    """Digits of a CPF (11) or CNPJ (14), restoring leading zeros lost by Excel."""
    if is_blank(value):
        return None
    digits = _NON_DIGITS.sub("", _integral_text(value))
    if len(digits) in (9, 10):
        digits = digits.zfill(11)
    elif len(digits) in (12, 13):
        digits = digits.zfill(14)
    return digits if len(digits) in (11, 14) else None


def clean_plate(value: Any) -> Optional[str]:
    """'abc-1d23' → 'ABC1D23'."""
    if is_blank(value):
        return None
    plate = _NON_ALNUM.sub("", clean_text(value)).upper()
    return plate if 0 < len(plate) <= 10 else None


def clean_phone(value: Any) -> Optional[str]:
    """Keep only the digits of the first number in the cell.

    Returns None for placeholders and for numbers too short or too long to dial.
    """
    if is_blank(value):
        return None
    s = clean_text(_integral_text(value))
    if not s or s.upper() in ("VERIFICAR", "N/A", "SEM"):
        return None
    # Cells often list more than one number; keep the first usable one
    for part in _PHONE_SEPARATORS.split(s):
        digits = _NON_DIGITS.sub("", part)
        if len(digits) >= 8:
            return digits if len(digits) <= MAX_PHONE_DIGITS else None
    return None


def clean_email(value: Any) -> Optional[str]:
    if is_blank(value):
        return None
    email = clean_text(value).lower()
    if "@" not in email or " " in email:
        return None
    return email


def format_brl(value: float) -> str:
    """1234.5 → '1.234,50'."""
    us = f"{value:,.2f}"
    return us.replace(",", "_").replace(".", ",").replace("_", ".")
