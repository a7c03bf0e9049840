from datetime import date
from typing import Sequence

from fpdf import FPDF

from app.core.utils import format_number, format_report_date
from .totals import (
    COLUMN_TITLES,
    FIELD_ORDER,
    LABEL_FIELD,
    NUMERIC_FIELDS,
    ReportRow,
    ReportTotals,
    calculate_itog,
)

# Column widths in mm, A4 landscape leaves 277mm between margins
_NUMBER_WIDTH = 12
_LABEL_WIDTH = 71
_AMOUNT_WIDTH = 27
_ITOG_WIDTH = 32

_HEAD_FILL = (255, 255, 0)
_FOOT_FILL = (252, 213, 180)
_BODY_FILLS = {
    LABEL_FIELD: (195, 214, 155),
    "tovar": (250, 192, 208),
    "rasxod": (146, 208, 80),
    "pul": (0, 176, 240),
}


def _latin1(text: str) -> str:
    # Core fonts only cover Latin-1
    return text.encode("latin-1", "replace").decode("latin-1")


class ReportPDF(FPDF):
    def __init__(self, title: str, report_date: date):
        super().__init__(orientation="L", unit="mm", format="A4")
        self.report_title = title
        self.report_date = report_date

    def header(self):
        self.set_font("Helvetica", "B", 20)
        self.cell(0, 10, _latin1(self.report_title), ln=True)
        self.set_font("Helvetica", "", 11)
        self.set_text_color(100, 100, 100)
        self.cell(0, 6, f"Sana: {format_report_date(self.report_date)}", ln=True)
        self.set_text_color(0, 0, 0)
        self.ln(4)

    def footer(self):
        self.set_y(-12)
        self.set_font("Helvetica", "I", 8)
        self.cell(0, 8, f"{self.page_no()}", align="R")

    def _widths(self):
        return [_NUMBER_WIDTH, _LABEL_WIDTH] + [_AMOUNT_WIDTH] * len(NUMERIC_FIELDS) + [_ITOG_WIDTH]

    def table_header(self):
        self.set_font("Helvetica", "B", 10)
        self.set_fill_color(*_HEAD_FILL)
        titles = ["N"] + [COLUMN_TITLES[name] for name in FIELD_ORDER] + ["ITOG"]
        for width, title in zip(self._widths(), titles):
            self.cell(width, 8, title, border=1, align="C", fill=True)
        self.ln(8)

    @staticmethod
    def generate_report_pdf(
        title: str,
        report_date: date,
        rows: Sequence[ReportRow],
        totals: ReportTotals,
    ) -> bytes:
        """
        Render a report as a single table: one line per active row, a JAMI
        footer with column sums and a boxed grand ITOG below the table.
        Returns PDF bytes.
        """
        pdf = ReportPDF(title or "Achot Hisoboti", report_date)
        pdf.set_auto_page_break(auto=True, margin=15)
        pdf.add_page()
        pdf.table_header()

        # --- Table Rows ---
        pdf.set_font("Helvetica", "", 10)
        for index, row in enumerate(rows, start=1):
            if pdf.will_page_break(8):
                pdf.add_page()
                pdf.table_header()
                pdf.set_font("Helvetica", "", 10)

            pdf.set_fill_color(255, 255, 255)
            pdf.cell(_NUMBER_WIDTH, 8, str(index), border=1, align="C")
            for name in FIELD_ORDER:
                fill = _BODY_FILLS.get(name)
                if fill:
                    pdf.set_fill_color(*fill)
                if name == LABEL_FIELD:
                    pdf.cell(_LABEL_WIDTH, 8, _latin1(row.sabablar), border=1, fill=bool(fill))
                else:
                    text = format_number(getattr(row, name)) or "0"
                    pdf.cell(_AMOUNT_WIDTH, 8, text, border=1, align="C", fill=bool(fill))
            pdf.cell(_ITOG_WIDTH, 8, format_number(calculate_itog(row)), border=1, align="C")
            pdf.ln(8)

        # --- Totals ---
        pdf.set_font("Helvetica", "B", 10)
        pdf.set_fill_color(*_FOOT_FILL)
        pdf.set_text_color(239, 68, 68)
        pdf.cell(_NUMBER_WIDTH, 8, str(totals.row_count), border=1, align="C", fill=True)
        pdf.set_text_color(0, 0, 0)
        pdf.cell(_LABEL_WIDTH, 8, "JAMI", border=1, align="C", fill=True)
        for name in NUMERIC_FIELDS:
            pdf.cell(_AMOUNT_WIDTH, 8, format_number(totals.column(name)), border=1, align="C", fill=True)
        pdf.cell(_ITOG_WIDTH, 8, format_number(totals.itog), border=1, align="C", fill=True)
        pdf.ln(14)

        # --- Grand total box ---
        if pdf.will_page_break(16):
            pdf.add_page()
        pdf.set_font("Helvetica", "B", 20)
        pdf.set_fill_color(*_HEAD_FILL)
        pdf.set_line_width(0.5)
        pdf.cell(40, 15, "ITOG", border=1, fill=True)
        pdf.cell(50, 15, format_number(totals.itog), border=1, align="R", fill=True)

        return bytes(pdf.output())
