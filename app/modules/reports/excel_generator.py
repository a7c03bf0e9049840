"""
Excel (.xlsx) export of a report via openpyxl.
Same layout as the PDF: header row, one line per active row, JAMI footer.
"""

import io
from datetime import date
from typing import Sequence

import openpyxl
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from app.core.utils import format_report_date
from .totals import (
    COLUMN_TITLES,
    FIELD_ORDER,
    LABEL_FIELD,
    NUMERIC_FIELDS,
    ReportRow,
    ReportTotals,
    calculate_itog,
)

_THIN = Side(style="thin", color="000000")
_BORDER = Border(left=_THIN, right=_THIN, top=_THIN, bottom=_THIN)
_HEAD_FILL = PatternFill("solid", fgColor="FFFF00")
_FOOT_FILL = PatternFill("solid", fgColor="FCD5B4")
_BODY_FILLS = {
    LABEL_FIELD: PatternFill("solid", fgColor="C3D69B"),
    "tovar": PatternFill("solid", fgColor="FAC0D0"),
    "rasxod": PatternFill("solid", fgColor="92D050"),
    "pul": PatternFill("solid", fgColor="00B0F0"),
}
# "." grouping as in the grid (Excel renders it per locale)
_AMOUNT_FORMAT = "#,##0"


def generate_report_xlsx(
    title: str,
    report_date: date,
    rows: Sequence[ReportRow],
    totals: ReportTotals,
) -> bytes:
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Hisobot"

    ws.append([title or "Achot Hisoboti"])
    ws["A1"].font = Font(bold=True, size=16)
    ws.append([f"Sana: {format_report_date(report_date)}"])
    ws.append([])

    headers = ["N"] + [COLUMN_TITLES[name] for name in FIELD_ORDER] + ["ITOG"]
    ws.append(headers)
    header_row = ws.max_row
    for cell in ws[header_row]:
        cell.font = Font(bold=True)
        cell.fill = _HEAD_FILL
        cell.border = _BORDER
        cell.alignment = Alignment(horizontal="center")

    for index, row in enumerate(rows, start=1):
        values = [index, row.sabablar]
        values += [row.amount(name) for name in NUMERIC_FIELDS]
        values.append(calculate_itog(row))
        ws.append(values)
        for col_index, cell in enumerate(ws[ws.max_row]):
            cell.border = _BORDER
            if col_index >= 2:
                cell.number_format = _AMOUNT_FORMAT
            if 1 <= col_index <= len(FIELD_ORDER):
                fill = _BODY_FILLS.get(FIELD_ORDER[col_index - 1])
                if fill is not None:
                    cell.fill = fill

    footer = [totals.row_count, "JAMI"]
    footer += [totals.column(name) for name in NUMERIC_FIELDS]
    footer.append(totals.itog)
    ws.append(footer)
    for col_index, cell in enumerate(ws[ws.max_row]):
        cell.font = Font(bold=True, color="EF4444" if col_index == 0 else "000000")
        cell.fill = _FOOT_FILL
        cell.border = _BORDER
        if col_index >= 2:
            cell.number_format = _AMOUNT_FORMAT

    ws.column_dimensions["A"].width = 6
    ws.column_dimensions["B"].width = 40
    for letter in "CDEFGHI":
        ws.column_dimensions[letter].width = 14
    ws.freeze_panes = ws.cell(row=header_row + 1, column=1)

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()
