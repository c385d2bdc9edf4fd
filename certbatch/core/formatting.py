from __future__ import annotations

import re
from datetime import date
from typing import Any

import pandas as pd

from certbatch.core.errors import ValidationError

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

_WORD_START = re.compile(r"(^|\s)(\S)")


def ordinal_suffix(day: int) -> str:
    if day in (1, 21, 31):
        return "st"
    if day in (2, 22):
        return "nd"
    if day in (3, 23):
        return "rd"
    return "th"


def format_readable_date(value: date) -> str:
    """Render ``value`` as e.g. ``21st June, 2024``."""

    return f"{value.day}{ordinal_suffix(value.day)} {MONTH_NAMES[value.month - 1]}, {value.year}"


def title_case(text: str) -> str:
    """Uppercase the first letter of every whitespace-delimited word.

    Unlike :meth:`str.title` the remaining letters are left untouched, so
    ``"iOS basics"`` becomes ``"IOS Basics"``.
    """

    return _WORD_START.sub(lambda match: match.group(1) + match.group(2).upper(), text)


def parse_date(value: Any, field: str) -> date:
    if value is None or str(value).strip() == "":
        raise ValidationError(f"{field} is required")
    parsed = pd.to_datetime(str(value).strip(), errors="coerce")
    if pd.isna(parsed):
        raise ValidationError(f"{field} is not a valid date: {value!r}")
    return parsed.date()


def percentage(completed: int, total: int) -> int:
    if total <= 0:
        return 0
    return min(100, int(completed * 100 / total + 0.5))
