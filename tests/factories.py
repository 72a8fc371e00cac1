from datetime import date
from io import BytesIO

from openpyxl import Workbook

TODAY = date(2026, 3, 1)


def make_workbook(*sheets):
    """Build .xlsx bytes from (sheet name, rows) pairs."""
    wb = Workbook()
    wb.remove(wb.active)
    for name, rows in sheets:
        ws = wb.create_sheet(title=name)
        for row in rows:
            ws.append(list(row))
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
