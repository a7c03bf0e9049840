"""
Report row model and totals.

A row has a free-text label (`sabablar`), one inbound amount (`tovar`) and
five outbound amounts. While a report is being edited every amount is kept
as a digit string without grouping separators, "" meaning "not entered";
amounts become ints only when they are summed or persisted.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional

from app.core.utils import to_int

LABEL_FIELD = "sabablar"
INBOUND_FIELD = "tovar"
OUTBOUND_FIELDS = ("ok", "rasxod", "vazvirat", "pul", "kilik_ozi")
NUMERIC_FIELDS = (INBOUND_FIELD,) + OUTBOUND_FIELDS
# Column order of the grid and of exported documents
FIELD_ORDER = (LABEL_FIELD,) + NUMERIC_FIELDS
# Largest amount a BigInteger column holds
MAX_AMOUNT = 2**63 - 1

COLUMN_TITLES = {
    LABEL_FIELD: "SABABLAR",
    "tovar": "TOVAR",
    "ok": "OK",
    "rasxod": "RASXOD",
    "vazvirat": "VAZVIRAT",
    "pul": "PUL",
    "kilik_ozi": "KILIK O'ZI",
}


@dataclass(frozen=True)
class ReportRow:
    sabablar: str = ""
    tovar: str = ""
    ok: str = ""
    rasxod: str = ""
    vazvirat: str = ""
    pul: str = ""
    kilik_ozi: str = ""
    id: Optional[int] = None

    @classmethod
    def empty(cls) -> "ReportRow":
        return cls()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ReportRow":
        """
        Build a row from stored data (API payload, draft snapshot).

        Stored amounts of 0 or None come back as unset, so a saved blank
        cell does not reappear as "0".
        """
        values: Dict[str, Any] = {LABEL_FIELD: str(data.get(LABEL_FIELD) or "")}
        for name in NUMERIC_FIELDS:
            raw = data.get(name)
            if raw is None or raw == "" or raw == 0:
                values[name] = ""
            else:
                values[name] = str(to_int(raw)) if not isinstance(raw, str) else raw
        row_id = data.get("id")
        values["id"] = int(row_id) if row_id not in (None, "") else None
        return cls(**values)

    def with_value(self, field_name: str, value: str) -> "ReportRow":
        return replace(self, **{field_name: value})

    def amount(self, field_name: str) -> int:
        return to_int(getattr(self, field_name))

    def is_blank(self) -> bool:
        return not self.sabablar.strip() and all(
            getattr(self, name) == "" for name in NUMERIC_FIELDS
        )

    def to_payload(self) -> Dict[str, Any]:
        """Persistence shape: ints for every amount, unset as 0."""
        payload: Dict[str, Any] = {LABEL_FIELD: self.sabablar}
        payload.update({name: self.amount(name) for name in NUMERIC_FIELDS})
        if self.id is not None:
            payload["id"] = self.id
        return payload

    def to_snapshot(self) -> Dict[str, Any]:
        """Editing shape, keeps "" for unset amounts."""
        data: Dict[str, Any] = {name: getattr(self, name) for name in FIELD_ORDER}
        data["id"] = self.id
        return data


@dataclass(frozen=True)
class ReportTotals:
    row_count: int
    columns: Dict[str, int] = field(default_factory=dict)
    itog: int = 0

    def column(self, field_name: str) -> int:
        return self.columns.get(field_name, 0)


def calculate_itog(row: ReportRow) -> int:
    """Net total of a row: inbound minus every outbound amount."""
    return row.amount(INBOUND_FIELD) - sum(row.amount(name) for name in OUTBOUND_FIELDS)


def filter_active_rows(rows: Iterable[ReportRow]) -> List[ReportRow]:
    """
    Rows worth saving or exporting: a non-blank label or at least one
    entered amount.
    """
    return [row for row in rows if not row.is_blank()]


def aggregate_column(rows: Iterable[ReportRow], field_name: str) -> int:
    if field_name not in NUMERIC_FIELDS:
        raise KeyError(f"Not a numeric field: {field_name}")
    return sum(row.amount(field_name) for row in rows)


def compute_totals(rows: Iterable[ReportRow]) -> ReportTotals:
    """Footer row: per-column sums and the grand Itog."""
    rows = list(rows)
    columns = {name: aggregate_column(rows, name) for name in NUMERIC_FIELDS}
    itog = sum(calculate_itog(row) for row in rows)
    return ReportTotals(row_count=len(rows), columns=columns, itog=itog)
