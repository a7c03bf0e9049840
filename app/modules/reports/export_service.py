"""
Export Service - renders reports to PDF / XLSX off the event loop.

Both renderers are CPU-bound and synchronous, so they run in a small
thread pool and the API (or the editor session) awaits the result.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date
from typing import Callable, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from .excel_generator import generate_report_xlsx
from .pdf_generator import ReportPDF
from .service import ReportsService, record_to_row
from .totals import ReportRow, ReportTotals, compute_totals, filter_active_rows

logger = logging.getLogger(__name__)

# Thread pool for CPU-bound document rendering (non-blocking)
_executor = ThreadPoolExecutor(max_workers=2)

PDF_MEDIA_TYPE = "application/pdf"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class ExportError(Exception):
    """A document could not be rendered."""


@dataclass(frozen=True)
class ExportedFile:
    filename: str
    content: bytes
    media_type: str


def export_filename(title: str, report_date: date, extension: str) -> str:
    base = (title or "").strip() or "hisobot"
    base = "".join(c if c not in '\\/:*?"<>|' else "_" for c in base)
    return f"{base}-{report_date.isoformat()}.{extension}"


class ExportService:

    @staticmethod
    async def _render(
        renderer: Callable[..., bytes],
        title: str,
        report_date: date,
        rows: Sequence[ReportRow],
        totals: ReportTotals,
    ) -> bytes:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(
                _executor, renderer, title, report_date, list(rows), totals
            )
        except Exception as e:
            logger.exception("Rendering %s failed", getattr(renderer, "__name__", renderer))
            raise ExportError(str(e)) from e

    @staticmethod
    async def render_pdf(
        title: str, report_date: date, rows: Sequence[ReportRow], totals: ReportTotals
    ) -> ExportedFile:
        content = await ExportService._render(
            ReportPDF.generate_report_pdf, title, report_date, rows, totals
        )
        return ExportedFile(export_filename(title, report_date, "pdf"), content, PDF_MEDIA_TYPE)

    @staticmethod
    async def render_spreadsheet(
        title: str, report_date: date, rows: Sequence[ReportRow], totals: ReportTotals
    ) -> ExportedFile:
        content = await ExportService._render(
            generate_report_xlsx, title, report_date, rows, totals
        )
        return ExportedFile(export_filename(title, report_date, "xlsx"), content, XLSX_MEDIA_TYPE)

    @staticmethod
    async def export_group(
        db: AsyncSession, user_id: int, group_id: int, fmt: str
    ) -> ExportedFile:
        """
        Render a stored report group.

        Args:
            db: Database session
            user_id: Owner id
            group_id: Report group id
            fmt: "pdf" or "xlsx"

        Raises:
            NotFoundError: If the group is not found
        """
        group = await ReportsService.get_group(db, user_id, group_id)
        records = await ReportsService.list_rows(db, user_id, group_id)
        rows = filter_active_rows(record_to_row(record) for record in records)
        totals = compute_totals(rows)

        logger.info("Exporting report group %s as %s (%d rows)", group_id, fmt, len(rows))
        if fmt == "pdf":
            return await ExportService.render_pdf(group.name, group.report_date, rows, totals)
        return await ExportService.render_spreadsheet(group.name, group.report_date, rows, totals)
