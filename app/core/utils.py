"""Core utility functions for the application"""

import re
from datetime import date
from decimal import Decimal
from typing import Optional, Union

NumericInput = Optional[Union[int, Decimal, str]]

GROUP_SEPARATOR = "."

_INTEGER_RE = re.compile(r"-?[0-9]+")
_DIGITS_RE = re.compile(r"[0-9]+")


def format_number(value: NumericInput, suppress_zero: bool = False) -> str:
    """
    Render a number with "." thousands grouping (1000000 -> "1.000.000").

    Accepts ints, Decimals (integral part) and numeric strings that may
    already contain grouping separators. Unset input (None, "", blanks)
    and anything that is not an integer once separators are removed
    render as "".

    Args:
        value: The value to format
        suppress_zero: Render 0 as "" (used for per-row totals)

    Returns:
        str: Grouped number or ""
    """
    if value is None or isinstance(value, bool):
        return ""

    if isinstance(value, str):
        cleaned = value.replace(GROUP_SEPARATOR, "").strip()
        if not _INTEGER_RE.fullmatch(cleaned):
            return ""
        number = int(cleaned)
    elif isinstance(value, Decimal):
        if not value.is_finite():
            return ""
        number = int(value)
    else:
        number = int(value)

    if suppress_zero and number == 0:
        return ""

    return f"{number:,}".replace(",", GROUP_SEPARATOR)


def parse_number(display: str) -> str:
    """Strip grouping separators from a displayed number ("1.250" -> "1250")."""
    return display.replace(GROUP_SEPARATOR, "")


def is_digit_string(value: str) -> bool:
    """True for a non-empty string of ASCII digits."""
    return bool(_DIGITS_RE.fullmatch(value))


def to_int(value: NumericInput) -> int:
    """
    Coerce a stored numeric field to int, treating unset as 0.

    Digit strings, ints and Decimals convert directly; anything else
    (including "") counts as 0, the same way the grid totals treat it.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, Decimal):
        return int(value) if value.is_finite() else 0
    cleaned = value.strip()
    if not _INTEGER_RE.fullmatch(cleaned):
        return 0
    return int(cleaned)


def format_report_date(date_obj: date) -> str:
    """
    Format a report date for document headers.

    Args:
        date_obj: The date to format

    Returns:
        str: Formatted date (e.g., "05.02.2026")
    """
    return date_obj.strftime("%d.%m.%Y")
