"""
EditorSession - one user's report editing session.

Wires the grid, the draft tracker, the persistence gateway and the
document exporters together. Every gateway or exporter failure is caught
here, turned into a notification and leaves the in-memory report as it
was; nothing below this layer is allowed to surface as an uncaught error.
"""

import enum
import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Awaitable, Callable, List, Optional

from app.modules.reports.export_service import ExportedFile, ExportError, ExportService
from app.modules.reports.totals import (
    ReportRow,
    ReportTotals,
    compute_totals,
    filter_active_rows,
)
from .drafts import ConfirmChoice, DraftSnapshot, DraftTracker
from .gateway import (
    GatewayError,
    GatewayUnavailableError,
    ReportGateway,
    ReportGroupInfo,
)
from .grid import GridController
from .state import AppState

logger = logging.getLogger(__name__)


class SessionStatus(str, enum.Enum):
    READY = "ready"
    # Backend missing or misconfigured; nothing works until it is fixed
    BLOCKED = "blocked"
    SIGNED_OUT = "signed_out"


class NotificationLevel(str, enum.Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    level: NotificationLevel
    message: str


def filter_groups(groups: List[ReportGroupInfo], query: str) -> List[ReportGroupInfo]:
    """Case-insensitive match on the name, or substring of the ISO date."""
    query = query.strip()
    if not query:
        return list(groups)
    lowered = query.lower()
    return [
        g for g in groups
        if lowered in g.name.lower() or query in g.report_date.isoformat()
    ]


class EditorSession:

    def __init__(
        self,
        gateway: ReportGateway,
        app_state: AppState,
        exporter=ExportService,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.gateway = gateway
        self.app_state = app_state
        self.exporter = exporter
        self._today = today

        self.grid = GridController()
        self.drafts = DraftTracker(app_state.storage)
        self.report_name = ""
        self.report_date = today()
        self.active_group_id: Optional[int] = None
        self.groups: List[ReportGroupInfo] = []

        self.status = SessionStatus.READY
        self.blocking_message: Optional[str] = None
        self.notifications: List[Notification] = []
        self.loading = False
        self._saving = False
        # bumped on every change to rows, name or date
        self._revision = 0

        self.grid.subscribe(self._on_change)

    # -- lifecycle ------------------------------------------------------------

    async def start(self) -> SessionStatus:
        """
        Bring the session up: refuse to run without a backend, restore a
        leftover draft, then fetch the saved report list.
        """
        if not self.gateway.is_configured:
            return self._block("Reports API is not configured. Set API_BASE_URL and restart.")

        try:
            await self.gateway.ping()
        except GatewayUnavailableError as e:
            self.app_state.set_online(False)
            return self._block(f"Cannot reach the reports API: {e.message}")

        snapshot = self.drafts.restore()
        if snapshot is not None:
            self._apply_snapshot(snapshot)

        try:
            self.groups = await self.gateway.list_groups()
        except GatewayError as e:
            self._gateway_failed("Could not load saved reports", e)
        else:
            self.app_state.set_online(True)

        self.status = SessionStatus.READY
        self.blocking_message = None
        return self.status

    def _block(self, message: str) -> SessionStatus:
        logger.error(message)
        self.status = SessionStatus.BLOCKED
        self.blocking_message = message
        return self.status

    def _apply_snapshot(self, snapshot: DraftSnapshot) -> None:
        self.grid.replace_rows(snapshot.report_rows(), notify=False)
        self.report_name = snapshot.reportName
        self.report_date = snapshot.reportDate
        self.active_group_id = snapshot.activeGroupId

    # -- change tracking ------------------------------------------------------

    def snapshot(self) -> DraftSnapshot:
        return DraftSnapshot.capture(
            self.grid.rows, self.report_name, self.report_date, self.active_group_id
        )

    def _on_change(self) -> None:
        self._revision += 1
        self.drafts.mark_changed(self.snapshot())

    def set_report_name(self, name: str) -> None:
        if name != self.report_name:
            self.report_name = name
            self._on_change()

    def set_report_date(self, report_date: date) -> None:
        if report_date != self.report_date:
            self.report_date = report_date
            self._on_change()

    @property
    def has_unsaved_changes(self) -> bool:
        return self.drafts.has_unsaved_changes

    @property
    def totals(self) -> ReportTotals:
        return self.grid.totals

    def should_confirm_unload(self) -> bool:
        return self.drafts.should_confirm_unload()

    def _notify(self, level: NotificationLevel, message: str) -> None:
        if level is NotificationLevel.ERROR:
            logger.warning(message)
        else:
            logger.info(message)
        self.notifications.append(Notification(level, message))

    def _gateway_failed(self, action: str, error: GatewayError) -> None:
        if isinstance(error, GatewayUnavailableError):
            self.app_state.set_online(False)
        self._notify(NotificationLevel.ERROR, f"{action}: {error.message}")

    # -- guarded transitions --------------------------------------------------

    async def new_report(self) -> bool:
        return await self.drafts.guard("new report", self._reset)

    async def load_report(self, group_id: int) -> bool:
        async def _load() -> None:
            await self._load(group_id)
        return await self.drafts.guard(f"open report {group_id}", _load)

    async def sign_out(self) -> bool:
        return await self.drafts.guard("sign out", self._sign_out)

    async def confirm(self, choice: ConfirmChoice) -> bool:
        """Answer the save / discard / cancel prompt of a parked action."""
        return await self.drafts.resolve(choice, self.save)

    @property
    def awaiting_confirmation(self) -> bool:
        return self.drafts.awaiting_confirmation

    async def _reset(self) -> None:
        self.grid.replace_rows([], notify=False)
        self.report_name = ""
        self.report_date = self._today()
        self.active_group_id = None
        self.drafts.discard()

    async def _load(self, group_id: int) -> None:
        group = next((g for g in self.groups if g.id == group_id), None)
        self.loading = True
        try:
            rows = await self.gateway.list_rows(group_id)
            if group is None:
                self.groups = await self.gateway.list_groups()
                group = next((g for g in self.groups if g.id == group_id), None)
        except GatewayError as e:
            self._gateway_failed("Could not open the report", e)
            return
        finally:
            self.loading = False

        if group is None:
            self._notify(NotificationLevel.ERROR, f"Report {group_id} no longer exists")
            return

        self.app_state.set_online(True)
        self.grid.replace_rows(rows, notify=False)
        self.report_name = group.name
        self.report_date = group.report_date
        self.active_group_id = group.id
        self.drafts.mark_saved()

    async def _sign_out(self) -> None:
        await self._reset()
        self.groups = []
        self.status = SessionStatus.SIGNED_OUT
        await self.gateway.aclose()

    # -- persistence ----------------------------------------------------------

    async def refresh_groups(self) -> List[ReportGroupInfo]:
        try:
            self.groups = await self.gateway.list_groups()
        except GatewayError as e:
            self._gateway_failed("Could not load saved reports", e)
        else:
            self.app_state.set_online(True)
        return self.groups

    def search_groups(self, query: str) -> List[ReportGroupInfo]:
        return filter_groups(self.groups, query)

    async def save(self) -> bool:
        """
        Save the report. Returns True on success.

        A second call while a save is in flight is ignored. When any step
        fails the editor keeps its rows, name and active report untouched;
        a group created by the failed attempt is deleted again. An active
        report that no longer exists on the backend is saved as a new one.

        Edits made while the request is in flight are not part of this
        save: the editor keeps them, adopts the stored ids and stays
        unsaved with the draft updated.
        """
        if self._saving:
            logger.info("Save already in progress, ignoring request")
            return False

        name = self.report_name.strip()
        if not name:
            self._notify(NotificationLevel.ERROR, "Please enter a report name")
            return False

        self._saving = True
        self.loading = True
        revision = self._revision
        created_id: Optional[int] = None
        sent = [(i, row) for i, row in enumerate(self.grid.rows) if not row.is_blank()]
        active_rows = [row for _, row in sent]
        report_date = self.report_date
        try:
            group: Optional[ReportGroupInfo] = None
            if self.active_group_id is not None:
                try:
                    group = await self.gateway.update_group(self.active_group_id, name, report_date)
                except GatewayError as e:
                    if e.status_code != 404:
                        raise
                    logger.warning(
                        "Report group %s no longer exists, saving as a new report",
                        self.active_group_id,
                    )
                    self.active_group_id = None
                    active_rows = [replace(row, id=None) for row in active_rows]
            if group is None:
                group = await self.gateway.create_group(name, report_date)
                created_id = group.id

            if active_rows:
                saved_rows = await self.gateway.upsert_rows(group.id, active_rows)
            else:
                await self.gateway.delete_rows(group.id)
                saved_rows = []
        except GatewayError as e:
            if created_id is not None:
                await self._discard_created_group(created_id)
            self._gateway_failed("Save failed", e)
            return False
        finally:
            self._saving = False
            self.loading = False

        self.app_state.set_online(True)
        self.active_group_id = group.id
        if self._revision != revision:
            self.grid.adopt_saved_ids(
                (index, row.id, stored.id)
                for (index, row), stored in zip(sent, saved_rows)
            )
            self.drafts.mark_changed(self.snapshot())
            self._notify(NotificationLevel.INFO, "Saved. Changes made while saving are not saved yet")
        else:
            self.report_name = group.name
            self.grid.replace_rows(saved_rows, notify=False)
            self.drafts.mark_saved()
            self._notify(NotificationLevel.SUCCESS, "Saved")
        await self.refresh_groups()
        return True

    async def _discard_created_group(self, group_id: int) -> None:
        try:
            await self.gateway.delete_group(group_id)
        except GatewayError as e:
            logger.error("Could not roll back report group %s: %s", group_id, e.message)

    async def delete_report(self, group_id: int) -> bool:
        """
        Delete a saved report. If it is the one being edited, the rows stay
        on screen as a new, unsaved report.
        """
        try:
            await self.gateway.delete_group(group_id)
        except GatewayError as e:
            self._gateway_failed("Could not delete the report", e)
            return False

        self.groups = [g for g in self.groups if g.id != group_id]
        if self.active_group_id == group_id:
            self.active_group_id = None
            self.grid.replace_rows(
                [ReportRow(**{**row.to_snapshot(), "id": None}) for row in self.grid.rows]
            )
        self._notify(NotificationLevel.INFO, "Report deleted")
        await self.refresh_groups()
        return True

    # -- export ---------------------------------------------------------------

    async def export_pdf(self) -> Optional[ExportedFile]:
        return await self._export("PDF", self.exporter.render_pdf)

    async def export_spreadsheet(self) -> Optional[ExportedFile]:
        return await self._export("Excel", self.exporter.render_spreadsheet)

    async def _export(
        self, label: str, render: Callable[..., Awaitable[ExportedFile]]
    ) -> Optional[ExportedFile]:
        rows = filter_active_rows(self.grid.rows)
        totals = compute_totals(rows)
        try:
            return await render(self.report_name, self.report_date, rows, totals)
        except ExportError as e:
            self._notify(NotificationLevel.ERROR, f"{label} export failed: {e}")
            return None
