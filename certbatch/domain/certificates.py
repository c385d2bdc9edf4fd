"""Domain entities for certificate batches."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Sequence

from certbatch.core.storage import safe_filename


def _cell(cells: Sequence[Any], index: int) -> str:
    if index >= len(cells):
        return ""
    value = cells[index]
    if value is None:
        return ""
    if isinstance(value, float):
        if value != value:  # NaN from pandas
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value).strip()


@dataclass(slots=True, frozen=True)
class RosterRow:
    """One recipient line of the roster."""

    name: str
    email: str
    school: str
    domain: str
    certificate_number: str
    position: int = 0

    @classmethod
    def from_cells(cls, cells: Sequence[Any], position: int = 0) -> "RosterRow":
        return cls(
            name=_cell(cells, 0),
            email=_cell(cells, 1),
            school=_cell(cells, 2),
            domain=_cell(cells, 3),
            certificate_number=_cell(cells, 4).upper(),
            position=position,
        )

    @property
    def is_complete(self) -> bool:
        return bool(self.name and self.school and self.certificate_number)

    @property
    def school_key(self) -> str:
        return self.school.upper()

    @property
    def label(self) -> str:
        return f"{self.name or '?'} - {self.certificate_number or '?'}"


@dataclass(slots=True)
class Roster:
    """Spreadsheet contents split into the header and the data rows."""

    header: list[str] = field(default_factory=list)
    rows: list[RosterRow] = field(default_factory=list)

    @classmethod
    def from_values(cls, values: Sequence[Sequence[Any]] | None) -> "Roster":
        if not values:
            return cls()
        header = [_cell(values[0], index) for index in range(len(values[0]))]
        rows = [RosterRow.from_cells(cells, position=index) for index, cells in enumerate(values[1:], start=2)]
        return cls(header=header, rows=rows)

    def unique_schools(self) -> list[str]:
        seen: dict[str, None] = {}
        for row in self.rows:
            if row.school_key:
                seen.setdefault(row.school_key)
        return list(seen)


@dataclass(slots=True, frozen=True)
class DateRange:
    start: date
    end: date


@dataclass(slots=True, frozen=True)
class RenderedDocument:
    """Exported certificate bytes for a single roster row."""

    name: str
    certificate_number: str
    content: bytes

    @property
    def filename(self) -> str:
        return safe_filename(f"{self.name}_{self.certificate_number}") + ".pdf"
