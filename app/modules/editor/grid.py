"""
Spreadsheet grid state.

GridController is the single owner of the row list, the selected row
indices and the focused cell. Row changes go through the pure reducers at
the top of the module, which return new lists and never touch their input.

Marquee selection is a two-state machine (IDLE -> DRAGGING -> IDLE) fed
with pointer events in viewport coordinates. The rectangle is kept in
grid-body content coordinates (viewport y + scroll_top), so a drag that
auto-scrolls keeps its anchor on the row where it started.
"""

import enum
import logging
from dataclasses import dataclass, replace
from typing import Callable, Iterable, List, Optional, Sequence, Set, Tuple

from app.core.utils import is_digit_string, parse_number
from app.modules.reports.totals import (
    FIELD_ORDER,
    LABEL_FIELD,
    MAX_AMOUNT,
    ReportRow,
    ReportTotals,
    compute_totals,
)

logger = logging.getLogger(__name__)

# Distance from the viewport edge (px) that triggers auto-scroll while dragging
AUTO_SCROLL_EDGE = 40
# Pixels scrolled per auto-scroll tick
AUTO_SCROLL_STEP = 12

PRIMARY_BUTTON = 0

_MAX_AMOUNT_DIGITS = len(str(MAX_AMOUNT))


# ============================================================================
# Reducers
# ============================================================================


def apply_edit(
    rows: Sequence[ReportRow], index: int, field_name: str, raw_value: str
) -> Optional[List[ReportRow]]:
    """
    Return rows with one cell changed, or None when the input is rejected.

    The label is stored verbatim. Amounts lose their grouping separators
    and must then be empty, or ASCII digits no larger than MAX_AMOUNT.
    """
    if field_name not in FIELD_ORDER:
        raise KeyError(f"Unknown field: {field_name}")
    row = rows[index]

    if field_name == LABEL_FIELD:
        value = raw_value
    else:
        value = parse_number(raw_value)
        if value != "" and not is_digit_string(value):
            return None
        if len(value) > _MAX_AMOUNT_DIGITS or (value and int(value) > MAX_AMOUNT):
            return None

    updated = list(rows)
    updated[index] = row.with_value(field_name, value)
    return updated


def append_empty_rows(rows: Sequence[ReportRow], count: int) -> List[ReportRow]:
    return list(rows) + [ReportRow.empty() for _ in range(count)]


def remove_rows(rows: Sequence[ReportRow], indices: Iterable[int]) -> List[ReportRow]:
    """Drop rows by index; never returns an empty list."""
    doomed = set(indices)
    remaining = [row for i, row in enumerate(rows) if i not in doomed]
    return remaining or [ReportRow.empty()]


def toggle_index(selection: Iterable[int], index: int) -> Set[int]:
    result = set(selection)
    if index in result:
        result.discard(index)
    else:
        result.add(index)
    return result


def toggle_all_indices(selection: Iterable[int], total_rows: int) -> Set[int]:
    """Select everything, or clear when everything is already selected."""
    current = set(selection)
    if total_rows > 0 and current >= set(range(total_rows)):
        return set()
    return set(range(total_rows))


# ============================================================================
# Navigation
# ============================================================================


class Direction(str, enum.Enum):
    NEXT_FIELD = "next_field"
    PREV_FIELD = "prev_field"
    DOWN = "down"
    UP = "up"
    COMMIT = "commit"


@dataclass(frozen=True)
class CellRef:
    row: int
    field: str


_KEY_DIRECTIONS = {
    "Enter": Direction.COMMIT,
    "Tab": Direction.COMMIT,
    "ArrowDown": Direction.DOWN,
    "ArrowUp": Direction.UP,
}


# ============================================================================
# Marquee geometry
# ============================================================================


class Target(str, enum.Enum):
    """What the pointer was pressed on."""

    CELL = "cell"
    INPUT = "input"
    BUTTON = "button"


class DragState(str, enum.Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Rect:
    left: float
    top: float
    right: float
    bottom: float

    @classmethod
    def between(cls, a: Point, b: Point) -> "Rect":
        return cls(min(a.x, b.x), min(a.y, b.y), max(a.x, b.x), max(a.y, b.y))

    def intersects(self, other: "Rect") -> bool:
        return (
            self.left <= other.right
            and other.left <= self.right
            and self.top < other.bottom
            and other.top < self.bottom
            or self._touches_degenerate(other)
        )

    def _touches_degenerate(self, other: "Rect") -> bool:
        # A zero-height drag (press without vertical movement) still hits
        # the row under the pointer.
        if self.top != self.bottom:
            return False
        return (
            other.top <= self.top < other.bottom
            and self.left <= other.right
            and other.left <= self.right
        )


@dataclass
class Viewport:
    """Scrollable grid body: row geometry and current scroll offset."""

    row_height: float = 40.0
    height: float = 600.0
    width: float = 1000.0
    scroll_top: float = 0.0

    def row_rect(self, index: int) -> Rect:
        top = index * self.row_height
        return Rect(0.0, top, self.width, top + self.row_height)

    def max_scroll(self, row_count: int) -> float:
        return max(0.0, row_count * self.row_height - self.height)

    def to_content(self, point: Point) -> Point:
        return Point(point.x, point.y + self.scroll_top)


@dataclass
class MarqueeSelection:
    state: DragState = DragState.IDLE
    start: Optional[Point] = None
    pointer: Optional[Point] = None
    initial: frozenset = frozenset()

    @property
    def active(self) -> bool:
        return self.state is DragState.DRAGGING

    def rect(self, viewport: Viewport) -> Optional[Rect]:
        if not self.active or self.start is None or self.pointer is None:
            return None
        return Rect.between(self.start, viewport.to_content(self.pointer))

    def reset(self) -> None:
        self.state = DragState.IDLE
        self.start = None
        self.pointer = None
        self.initial = frozenset()


# ============================================================================
# Controller
# ============================================================================


class GridController:
    """
    Owns the rows of one editing session.

    Listeners registered with `subscribe` are called after every change to
    the row content (not after pure selection or focus moves).
    """

    def __init__(
        self,
        rows: Optional[Sequence[ReportRow]] = None,
        viewport: Optional[Viewport] = None,
    ) -> None:
        self.rows: List[ReportRow] = list(rows) if rows else [ReportRow.empty()]
        self.selection: Set[int] = set()
        self.focus: Optional[CellRef] = None
        self.viewport = viewport or Viewport()
        self.marquee = MarqueeSelection()
        self._listeners: List[Callable[[], None]] = []

    # -- change notification ------------------------------------------------

    def subscribe(self, listener: Callable[[], None]) -> None:
        self._listeners.append(listener)

    def _commit(self, rows: List[ReportRow]) -> None:
        self.rows = rows
        for listener in self._listeners:
            listener()

    # -- derived data -------------------------------------------------------

    @property
    def totals(self) -> ReportTotals:
        return compute_totals(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    # -- content ------------------------------------------------------------

    def edit_cell(self, row_index: int, field_name: str, raw_value: str) -> bool:
        """
        Apply a keystroke-level edit. Returns False (row unchanged) when an
        amount field receives something that is not a number.
        """
        updated = apply_edit(self.rows, row_index, field_name, raw_value)
        if updated is None:
            return False
        if updated[row_index] != self.rows[row_index]:
            self._commit(updated)
        return True

    def append_rows(self, count) -> None:
        if not isinstance(count, int) or isinstance(count, bool) or count <= 0:
            return
        self._commit(append_empty_rows(self.rows, count))

    def delete_row(self, index: int) -> None:
        if not 0 <= index < len(self.rows):
            raise IndexError(f"Row {index} out of range")
        self._commit(remove_rows(self.rows, [index]))
        self.selection = {i - 1 if i > index else i for i in self.selection if i != index}
        if self.focus is not None and self.focus.row >= len(self.rows):
            self.focus = CellRef(len(self.rows) - 1, self.focus.field)

    def delete_selected(self, selection: Optional[Iterable[int]] = None) -> None:
        doomed = set(self.selection if selection is None else selection)
        doomed = {i for i in doomed if 0 <= i < len(self.rows)}
        if doomed:
            logger.debug("Deleting %d selected rows", len(doomed))
            self._commit(remove_rows(self.rows, doomed))
        self.selection = set()
        if self.focus is not None and self.focus.row >= len(self.rows):
            self.focus = None

    def replace_rows(self, rows: Sequence[ReportRow], notify: bool = True) -> None:
        """Swap in a whole new row set (load, restore, refresh after save)."""
        self.selection = set()
        self.focus = None
        self.marquee.reset()
        self.viewport.scroll_top = 0.0
        new_rows = list(rows) or [ReportRow.empty()]
        if notify:
            self._commit(new_rows)
        else:
            self.rows = new_rows

    def adopt_saved_ids(self, saved: Iterable[Tuple[int, Optional[int], int]]) -> None:
        """
        Give rows the ids a save stored them under, without touching focus
        or selection. Entries are (index, id sent, id stored); a row whose
        id no longer matches what was sent is left alone.
        """
        rows = list(self.rows)
        for index, sent_id, stored_id in saved:
            if index < len(rows) and rows[index].id == sent_id:
                rows[index] = replace(rows[index], id=stored_id)
        self.rows = rows

    # -- selection ----------------------------------------------------------

    def toggle_row(self, index: int) -> None:
        if index in self.selection or 0 <= index < len(self.rows):
            self.selection = toggle_index(self.selection, index)

    def toggle_all(self) -> None:
        self.selection = toggle_all_indices(self.selection, len(self.rows))

    @property
    def all_selected(self) -> bool:
        return self.selection >= set(range(len(self.rows)))

    # -- keyboard -----------------------------------------------------------

    def navigate(self, row_index: int, field_name: str, direction: Direction) -> CellRef:
        """
        Move focus from (row_index, field_name). Only COMMIT on the very
        last cell changes the rows: it appends an empty row to type into.
        """
        fields = FIELD_ORDER
        col = fields.index(field_name)
        last_row = len(self.rows) - 1
        last_col = len(fields) - 1

        if direction is Direction.COMMIT:
            if col < last_col:
                target = CellRef(row_index, fields[col + 1])
            elif row_index == last_row:
                self.append_rows(1)
                target = CellRef(row_index + 1, fields[0])
            else:
                target = CellRef(row_index + 1, fields[0])
        elif direction is Direction.NEXT_FIELD:
            if col < last_col:
                target = CellRef(row_index, fields[col + 1])
            elif row_index < last_row:
                target = CellRef(row_index + 1, fields[0])
            else:
                target = CellRef(row_index, field_name)
        elif direction is Direction.PREV_FIELD:
            if col > 0:
                target = CellRef(row_index, fields[col - 1])
            elif row_index > 0:
                target = CellRef(row_index - 1, fields[last_col])
            else:
                target = CellRef(row_index, field_name)
        elif direction is Direction.DOWN:
            target = CellRef(min(row_index + 1, last_row), field_name)
        else:
            target = CellRef(max(row_index - 1, 0), field_name)

        self.focus = target
        return target

    def handle_key(
        self, row_index: int, field_name: str, key: str, shift: bool = False
    ) -> Optional[CellRef]:
        """Key name adapter over navigate; unknown keys return None."""
        if key == "Tab" and shift:
            return self.navigate(row_index, field_name, Direction.PREV_FIELD)
        direction = _KEY_DIRECTIONS.get(key)
        if direction is None:
            return None
        return self.navigate(row_index, field_name, direction)

    # -- marquee ------------------------------------------------------------

    def pointer_down(
        self,
        point: Point,
        target: Target = Target.CELL,
        button: int = PRIMARY_BUTTON,
        modifier: bool = False,
    ) -> bool:
        """
        Start a marquee drag. Presses on inputs or buttons, and non-primary
        buttons, are ignored so editing and row actions keep working.
        """
        if self.marquee.active:
            return False
        if button != PRIMARY_BUTTON or target in (Target.INPUT, Target.BUTTON):
            return False

        initial = frozenset(self.selection) if modifier else frozenset()
        self.marquee.state = DragState.DRAGGING
        self.marquee.start = self.viewport.to_content(point)
        self.marquee.pointer = point
        self.marquee.initial = initial
        self._apply_marquee()
        return True

    def pointer_move(self, point: Point) -> None:
        if not self.marquee.active:
            return
        self.marquee.pointer = point
        self._apply_marquee()

    def pointer_up(self, point: Optional[Point] = None) -> None:
        if not self.marquee.active:
            return
        if point is not None:
            self.marquee.pointer = point
            self._apply_marquee()
        logger.debug("Marquee finished with %d rows selected", len(self.selection))
        self.marquee.reset()

    def tick(self) -> bool:
        """
        Auto-scroll timer callback. Scrolls one step when a drag is active
        and the pointer sits near the top or bottom edge. Returns True if
        the view moved.
        """
        if not self.marquee.active or self.marquee.pointer is None:
            return False

        y = self.marquee.pointer.y
        before = self.viewport.scroll_top
        if y < AUTO_SCROLL_EDGE:
            self.viewport.scroll_top = max(0.0, before - AUTO_SCROLL_STEP)
        elif y > self.viewport.height - AUTO_SCROLL_EDGE:
            limit = self.viewport.max_scroll(len(self.rows))
            self.viewport.scroll_top = min(limit, before + AUTO_SCROLL_STEP)

        if self.viewport.scroll_top == before:
            return False
        self._apply_marquee()
        return True

    def _apply_marquee(self) -> None:
        rect = self.marquee.rect(self.viewport)
        if rect is None:
            return
        hit = {
            i for i in range(len(self.rows))
            if rect.intersects(self.viewport.row_rect(i))
        }
        self.selection = set(self.marquee.initial) | hit
