"""Domain layer definitions."""

from .certificates import DateRange, RenderedDocument, Roster, RosterRow

__all__ = [
    "DateRange",
    "RenderedDocument",
    "Roster",
    "RosterRow",
]
