"""PDF and Excel rendering."""
import asyncio
from datetime import date
from io import BytesIO

import openpyxl

from app.modules.reports.excel_generator import generate_report_xlsx
from app.modules.reports.export_service import (
    PDF_MEDIA_TYPE,
    XLSX_MEDIA_TYPE,
    ExportService,
    export_filename,
)
from app.modules.reports.pdf_generator import ReportPDF
from app.modules.reports.totals import ReportRow, compute_totals

ROWS = [
    ReportRow(sabablar="Savdo", tovar="1000000", ok="250000"),
    ReportRow(sabablar="Qaytarish", vazvirat="50000", pul="10000"),
]
REPORT_DATE = date(2026, 2, 5)


def test_export_filename_falls_back_to_default_name():
    assert export_filename("Fevral", REPORT_DATE, "pdf") == "Fevral-2026-02-05.pdf"
    assert export_filename("  ", REPORT_DATE, "xlsx") == "hisobot-2026-02-05.xlsx"
    assert export_filename("a/b", REPORT_DATE, "pdf") == "a_b-2026-02-05.pdf"


def test_pdf_is_rendered():
    content = ReportPDF.generate_report_pdf("Fevral", REPORT_DATE, ROWS, compute_totals(ROWS))
    assert content.startswith(b"%PDF")


def test_pdf_survives_non_latin_text():
    rows = [ReportRow(sabablar="Oʻzbekcha – ёзув", tovar="5")]
    content = ReportPDF.generate_report_pdf("Hisobot ✓", REPORT_DATE, rows, compute_totals(rows))
    assert content.startswith(b"%PDF")


def test_xlsx_has_rows_and_footer():
    totals = compute_totals(ROWS)
    wb = openpyxl.load_workbook(BytesIO(generate_report_xlsx("Fevral", REPORT_DATE, ROWS, totals)))
    ws = wb.active

    assert ws["A1"].value == "Fevral"
    assert ws["A2"].value == "Sana: 05.02.2026"
    assert [c.value for c in ws[4]] == [
        "N", "SABABLAR", "TOVAR", "OK", "RASXOD", "VAZVIRAT", "PUL", "KILIK O'ZI", "ITOG",
    ]
    assert [c.value for c in ws[5]] == [1, "Savdo", 1000000, 250000, 0, 0, 0, 0, 750000]
    assert [c.value for c in ws[7]] == [2, "JAMI", 1000000, 250000, 0, 50000, 10000, 0, 690000]


def test_export_service_runs_renderers_off_loop():
    totals = compute_totals(ROWS)
    pdf = asyncio.run(ExportService.render_pdf("Fevral", REPORT_DATE, ROWS, totals))
    xlsx = asyncio.run(ExportService.render_spreadsheet("Fevral", REPORT_DATE, ROWS, totals))

    assert pdf.media_type == PDF_MEDIA_TYPE
    assert pdf.filename == "Fevral-2026-02-05.pdf"
    assert xlsx.media_type == XLSX_MEDIA_TYPE
    assert xlsx.content[:2] == b"PK"
