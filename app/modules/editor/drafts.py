"""
Draft & unsaved-changes tracking.

While the report has unsaved edits, every change overwrites one snapshot
in local storage (last write wins). A clean save or an explicit discard
removes it. On start-up a leftover snapshot means the user left mid-edit,
so it is restored and the report is still considered unsaved.

Actions that would throw the current report away go through `guard`: with
unsaved changes they are parked until the user picks save, discard or
cancel.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import date
from typing import Awaitable, Callable, List, Optional

from pydantic import BaseModel, Field, ValidationError

from app.core.storage import LocalStorage
from app.modules.reports.totals import ReportRow

logger = logging.getLogger(__name__)

DRAFT_KEY = "achot_draft"

Action = Callable[[], Awaitable[None]]
Saver = Callable[[], Awaitable[bool]]


class DraftRowData(BaseModel):
    """Row as typed, amounts still digit strings"""
    id: Optional[int] = None
    sabablar: str = ""
    tovar: str = ""
    ok: str = ""
    rasxod: str = ""
    vazvirat: str = ""
    pul: str = ""
    kilik_ozi: str = ""


class DraftSnapshot(BaseModel):
    """Structure of the stored draft"""
    rows: List[DraftRowData] = Field(default_factory=list)
    reportName: str = ""
    reportDate: date
    activeGroupId: Optional[int] = None

    @classmethod
    def capture(
        cls,
        rows: List[ReportRow],
        report_name: str,
        report_date: date,
        active_group_id: Optional[int],
    ) -> "DraftSnapshot":
        return cls(
            rows=[DraftRowData(**row.to_snapshot()) for row in rows],
            reportName=report_name,
            reportDate=report_date,
            activeGroupId=active_group_id,
        )

    def report_rows(self) -> List[ReportRow]:
        return [ReportRow.from_mapping(row.model_dump()) for row in self.rows]


class ConfirmChoice(str, enum.Enum):
    SAVE = "save"
    DISCARD = "discard"
    CANCEL = "cancel"


@dataclass
class PendingAction:
    description: str
    action: Action


class DraftTracker:

    def __init__(self, storage: LocalStorage, key: str = DRAFT_KEY) -> None:
        self.storage = storage
        self.key = key
        self.has_unsaved_changes = False
        self.pending: Optional[PendingAction] = None

    # -- snapshot lifecycle -------------------------------------------------

    def mark_changed(self, snapshot: DraftSnapshot) -> None:
        self.has_unsaved_changes = True
        self.sync(snapshot)

    def sync(self, snapshot: Optional[DraftSnapshot] = None) -> None:
        """Write the snapshot while dirty, drop any stored one while clean."""
        if self.has_unsaved_changes and snapshot is not None:
            self.storage.put(self.key, snapshot.model_dump_json())
        elif not self.has_unsaved_changes:
            self.storage.delete(self.key)

    def mark_saved(self) -> None:
        self.has_unsaved_changes = False
        self.sync()

    def discard(self) -> None:
        self.has_unsaved_changes = False
        self.sync()

    def stored_snapshot(self) -> Optional[DraftSnapshot]:
        raw = self.storage.get(self.key)
        if raw is None:
            return None
        try:
            return DraftSnapshot.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("Dropping unreadable draft snapshot: %s", e)
            self.storage.delete(self.key)
            return None

    def restore(self) -> Optional[DraftSnapshot]:
        snapshot = self.stored_snapshot()
        if snapshot is not None:
            self.has_unsaved_changes = True
            logger.info(
                "Restored draft '%s' with %d rows", snapshot.reportName, len(snapshot.rows)
            )
        return snapshot

    # -- guarded transitions ------------------------------------------------

    @property
    def awaiting_confirmation(self) -> bool:
        return self.pending is not None

    async def guard(self, description: str, action: Action) -> bool:
        """
        Run `action` now if nothing would be lost, otherwise park it.
        Returns True when the action ran.
        """
        if not self.has_unsaved_changes:
            await action()
            return True
        self.pending = PendingAction(description, action)
        return False

    async def resolve(self, choice: ConfirmChoice, saver: Saver) -> bool:
        """
        Answer the confirmation prompt. Returns True when the parked action
        ran. A failed save keeps the current report and drops the action.
        """
        pending, self.pending = self.pending, None
        if pending is None:
            return False

        choice = ConfirmChoice(choice)
        if choice is ConfirmChoice.CANCEL:
            return False
        if choice is ConfirmChoice.SAVE:
            if not await saver():
                return False
        else:
            self.discard()

        await pending.action()
        return True

    def should_confirm_unload(self) -> bool:
        """Ask the host to show its "leave this page?" prompt."""
        return self.has_unsaved_changes
