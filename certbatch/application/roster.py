from __future__ import annotations

import logging

from certbatch.core.errors import DataAbsentError
from certbatch.domain import Roster
from certbatch.infrastructure import RosterSource

logger = logging.getLogger(__name__)


def load_roster(source: RosterSource, sheet_id: str, sheet_name: str, *, require_rows: bool = True) -> Roster:
    """Fetch and split the roster.

    Read failures always raise :class:`DataAbsentError`; a roster with only a
    header raises it too unless ``require_rows`` is false.
    """

    try:
        values = source.fetch_rows(sheet_id, sheet_name)
    except Exception as exc:  # noqa: BLE001 - any read failure means "no roster"
        logger.exception("Could not read roster %s!%s", sheet_id, sheet_name)
        raise DataAbsentError(f"Could not read the roster: {exc}") from exc

    roster = Roster.from_values(values)
    if require_rows and not roster.rows:
        raise DataAbsentError("No data found in the sheet.")
    logger.info("Loaded %d roster rows from %s!%s", len(roster.rows), sheet_id, sheet_name)
    return roster
