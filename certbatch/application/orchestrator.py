"""Batch orchestration of certificate rendering and delivery.

One shared row loop drives every delivery strategy: each complete roster row
is rendered once per strategy and handed to the strategy's sink. Rows are
processed strictly one at a time; blocking provider calls run in worker
threads so the event loop keeps answering progress polls in between.

A failing row is logged and skipped. Only a sink that cannot be opened or
saved (``SinkInitError``) or an empty roster (``DataAbsentError``) aborts the
batch. Whatever happens, the progress store ends at 100% / not generating
once :meth:`CertificateOrchestrator.run` returns or raises.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Sequence

from certbatch.core.errors import DataAbsentError
from certbatch.core.schema import JobState
from certbatch.domain import DateRange, RosterRow
from certbatch.infrastructure import ProgressStore

from .delivery import DeliveryFactory, DeliveryStrategy
from .renderer import DocumentRenderer
from .throttle import ThrottlePolicy

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StrategyOutcome:
    mode: str
    attempted: int = 0
    generated: int = 0
    skipped: int = 0
    failed: int = 0


class CertificateOrchestrator:
    def __init__(
        self,
        renderer: DocumentRenderer,
        deliveries: DeliveryFactory,
        progress: ProgressStore,
        *,
        throttle: ThrottlePolicy | None = None,
        unfiltered_modes: Sequence[str] = ("email", "merge"),
    ) -> None:
        self._renderer = renderer
        self._deliveries = deliveries
        self._progress = progress
        self._throttle = throttle or ThrottlePolicy()
        self._unfiltered_modes = tuple(unfiltered_modes)
        self.outcomes: list[StrategyOutcome] = []

    @property
    def progress(self) -> ProgressStore:
        return self._progress

    # ------------------------------------------------------------------
    # planning
    # ------------------------------------------------------------------
    def plan(self, group_filter: str | None) -> list[str]:
        if group_filter:
            return ["archive"]
        return list(self._unfiltered_modes)

    def open_strategies(self, group_filter: str | None) -> list[DeliveryStrategy]:
        """Create and open the sinks for a batch; aborts cleanly if one fails to open."""

        opened: list[DeliveryStrategy] = []
        try:
            for mode in self.plan(group_filter):
                strategy = self._deliveries.create(mode)
                strategy.open()
                opened.append(strategy)
        except Exception:
            for strategy in opened:
                strategy.abort()
            raise
        return opened

    @staticmethod
    def select_rows(rows: Sequence[RosterRow], group_filter: str | None) -> list[RosterRow]:
        if not group_filter:
            return list(rows)
        key = group_filter.strip().upper()
        return [row for row in rows if row.school_key == key]

    # ------------------------------------------------------------------
    # execution
    # ------------------------------------------------------------------
    async def run(
        self,
        rows: Sequence[RosterRow],
        date_range: DateRange,
        group_filter: str | None = None,
        *,
        strategies: list[DeliveryStrategy] | None = None,
    ) -> JobState:
        if not rows:
            if strategies:
                for strategy in strategies:
                    strategy.abort()
            raise DataAbsentError("No data found in the sheet.")

        selected = self.select_rows(rows, group_filter)
        total = len(selected)
        self._progress.write(JobState.started(total))
        self.outcomes = []
        logger.info("Starting certificate batch: %d rows, filter=%r", total, group_filter)

        pending: list[DeliveryStrategy] = []
        try:
            pending = list(strategies) if strategies is not None else self.open_strategies(group_filter)
            for index, strategy in enumerate(list(pending)):
                if index:
                    await self._throttle.settle()
                outcome = await self._drive(strategy, selected, date_range, total)
                await asyncio.to_thread(strategy.finalize)
                pending.remove(strategy)
                self.outcomes.append(outcome)
                logger.info(
                    "%s delivery done: %d generated, %d failed, %d skipped of %d",
                    outcome.mode,
                    outcome.generated,
                    outcome.failed,
                    outcome.skipped,
                    total,
                )
        except Exception:
            logger.exception("Certificate batch aborted")
            for strategy in pending:
                strategy.abort()
            raise
        finally:
            final = JobState.finished(total)
            self._progress.write(final)
        return final

    async def _drive(
        self,
        strategy: DeliveryStrategy,
        rows: Sequence[RosterRow],
        date_range: DateRange,
        total: int,
    ) -> StrategyOutcome:
        outcome = StrategyOutcome(mode=strategy.mode)
        for position, row in enumerate(rows, start=1):
            if not row.is_complete:
                logger.info("Skipping row %d due to missing data.", row.position)
                outcome.skipped += 1
            elif not strategy.admits(row):
                outcome.skipped += 1
            else:
                outcome.attempted += 1
                if await self._process_row(strategy, row, date_range):
                    outcome.generated += 1
                else:
                    outcome.failed += 1
                await self._throttle.after_row(strategy.mode)

            if strategy.progress_basis == "attempted":
                self._progress.write(JobState.running(position, total))
            elif strategy.progress_basis == "generated":
                self._progress.write(JobState.running(outcome.generated, total))
        return outcome

    async def _process_row(self, strategy: DeliveryStrategy, row: RosterRow, date_range: DateRange) -> bool:
        logger.info("Processing certificate for: %s", row.label)
        try:
            async with self._throttle.render_limiter:
                document = await asyncio.to_thread(self._renderer.render, row, date_range)
            await asyncio.to_thread(strategy.accept, document, row)
        except Exception as exc:  # noqa: BLE001 - a row never aborts the batch
            logger.warning("Error processing certificate for %s (%s): %s", row.label, strategy.mode, exc)
            return False
        return True
