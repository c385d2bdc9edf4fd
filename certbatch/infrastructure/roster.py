"""Roster sources returning spreadsheet rows as lists of cell values."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol

import pandas as pd

from .google import GoogleWorkspaceClient


class RosterSource(Protocol):
    """Contract for tabular roster reads."""

    def fetch_rows(self, sheet_id: str, sheet_name: str) -> list[list[Any]]:
        """Return the header row followed by the data rows."""


class GoogleSheetsRosterSource:
    """Reads a range of a Google spreadsheet through the values API."""

    def __init__(self, client: GoogleWorkspaceClient) -> None:
        self._client = client

    def fetch_rows(self, sheet_id: str, sheet_name: str) -> list[list[Any]]:
        return self._client.get_values(sheet_id, sheet_name)


class WorkbookRosterSource:
    """Reads a local ``.csv``/``.xlsx`` roster; ``sheet_id`` is the file path.

    Relative paths are resolved against ``root`` and may not escape it.
    """

    def __init__(self, root: Path) -> None:
        self._root = root.resolve()

    def _resolve(self, sheet_id: str) -> Path:
        candidate = (self._root / Path(sheet_id)).resolve()
        if not candidate.is_relative_to(self._root):
            raise FileNotFoundError(f"roster path escapes {self._root}: {sheet_id}")
        if not candidate.is_file():
            raise FileNotFoundError(f"roster file not found: {candidate}")
        return candidate

    def fetch_rows(self, sheet_id: str, sheet_name: str) -> list[list[Any]]:
        path = self._resolve(sheet_id)
        if path.suffix.lower() == ".csv":
            dataframe = pd.read_csv(path, header=None, dtype=str, keep_default_na=False)
        else:
            dataframe = pd.read_excel(path, sheet_name=sheet_name or 0, header=None, dtype=str)
        dataframe = dataframe.dropna(how="all").fillna("")
        return [[str(cell).strip() for cell in row] for row in dataframe.itertuples(index=False)]
