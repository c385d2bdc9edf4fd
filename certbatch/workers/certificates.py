from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from certbatch.application import (
    CertificateOrchestrator,
    CertificateRenderer,
    DeliveryFactory,
    DeliveryStrategy,
    ThrottlePolicy,
    load_roster,
)
from certbatch.core.config import Settings, load_settings
from certbatch.core.errors import ValidationError
from certbatch.core.formatting import parse_date
from certbatch.core.schema import JobState
from certbatch.core.storage import ArtifactStore
from certbatch.domain import DateRange, RosterRow
from certbatch.infrastructure import (
    GoogleSheetsRosterSource,
    GoogleWorkspaceClient,
    JsonFileProgressStore,
    ProgressStore,
    RosterSource,
    SMTPMailer,
    WorkbookRosterSource,
)

logger = logging.getLogger(__name__)


def _required(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    return str(value).strip() if value is not None else ""


@dataclass
class CertificateRequest:
    sheet_id: str
    sheet_name: str
    date_from: str
    date_to: str
    school: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "CertificateRequest":
        values = {key: _required(payload, key) for key in ("sheetId", "sheetName", "date", "todate")}
        if not all(values.values()):
            raise ValidationError("One or more parameters are missing.")
        school = _required(payload, "school") or None
        return cls(
            sheet_id=values["sheetId"],
            sheet_name=values["sheetName"],
            date_from=values["date"],
            date_to=values["todate"],
            school=school,
        )

    def date_range(self) -> DateRange:
        return DateRange(start=parse_date(self.date_from, "date"), end=parse_date(self.date_to, "todate"))


@dataclass
class CertificateJob:
    job_id: str
    status: str
    total: int
    school: str | None = None
    error: str | None = None
    task: asyncio.Task | None = field(default=None, repr=False)


class CertificateWorker:
    """Owns the background batch task; request handlers only launch it."""

    def __init__(
        self,
        roster_source: RosterSource,
        orchestrator: CertificateOrchestrator,
        artifacts: ArtifactStore,
        *,
        closers: Sequence[Callable[[], None]] = (),
    ) -> None:
        self._roster_source = roster_source
        self._orchestrator = orchestrator
        self._artifacts = artifacts
        self._closers = tuple(closers)
        self._job_counter = 0
        self._current: CertificateJob | None = None

    @property
    def progress(self) -> ProgressStore:
        return self._orchestrator.progress

    @property
    def artifacts(self) -> ArtifactStore:
        return self._artifacts

    @property
    def current_job(self) -> CertificateJob | None:
        return self._current

    @property
    def is_running(self) -> bool:
        return self._current is not None and self._current.task is not None and not self._current.task.done()

    def close(self) -> None:
        """Release the provider clients owned by this worker."""

        for closer in self._closers:
            closer()

    def next_job_id(self) -> str:
        self._job_counter += 1
        return f"job-{self._job_counter:05d}"

    async def unique_schools(self, sheet_id: str, sheet_name: str) -> list[str]:
        roster = await asyncio.to_thread(
            load_roster, self._roster_source, sheet_id, sheet_name, require_rows=False
        )
        return roster.unique_schools()

    async def launch(self, request: CertificateRequest) -> CertificateJob:
        """Load the roster, open the sinks and start the batch in the background."""

        date_range = request.date_range()
        roster = await asyncio.to_thread(load_roster, self._roster_source, request.sheet_id, request.sheet_name)

        if self.is_running:
            # no mutual exclusion between jobs: the new batch shares the progress slot
            logger.warning("Starting a new batch while %s is still running", self._current.job_id)

        await asyncio.to_thread(self._artifacts.discard)
        strategies = await asyncio.to_thread(self._orchestrator.open_strategies, request.school)

        total = len(self._orchestrator.select_rows(roster.rows, request.school))
        self.progress.write(JobState.started(total))

        job = CertificateJob(job_id=self.next_job_id(), status="running", total=total, school=request.school)
        job.task = asyncio.create_task(self._execute(job, roster.rows, date_range, request.school, strategies))
        self._current = job
        logger.info("Launched %s: %d certificates, school=%r", job.job_id, total, request.school)
        return job

    async def _execute(
        self,
        job: CertificateJob,
        rows: list[RosterRow],
        date_range: DateRange,
        school: str | None,
        strategies: list[DeliveryStrategy],
    ) -> None:
        try:
            await self._orchestrator.run(rows, date_range, school, strategies=strategies)
        except Exception as exc:  # noqa: BLE001 - logged by the orchestrator, kept on the job
            job.status = "failed"
            job.error = str(exc)
        else:
            job.status = "completed"


def build_certificate_worker(settings: Settings) -> CertificateWorker:
    google = GoogleWorkspaceClient(
        settings.google.client_id,
        settings.google.client_secret,
        settings.google.refresh_token,
        timeout=settings.http_timeout,
    )
    if settings.roster_backend == "workbook":
        roster_source: RosterSource = WorkbookRosterSource(settings.roster_dir)
    else:
        roster_source = GoogleSheetsRosterSource(google)

    artifacts = ArtifactStore(settings.output_dir)
    deliveries = DeliveryFactory(
        artifacts=artifacts,
        mailer=SMTPMailer(settings.smtp, timeout=settings.http_timeout),
        email_subject=settings.smtp.subject,
        email_body_template=settings.smtp.body_template,
    )
    orchestrator = CertificateOrchestrator(
        CertificateRenderer(google, settings.google.template_id, settings.google.folder_id),
        deliveries,
        JsonFileProgressStore(settings.progress_path),
        throttle=ThrottlePolicy(
            settle_delay=settings.settle_delay,
            email_delay=settings.email_delay,
            renders_per_minute=settings.render_rate_per_minute,
        ),
        unfiltered_modes=settings.unfiltered_delivery,
    )
    return CertificateWorker(roster_source, orchestrator, artifacts, closers=(google.close,))


_worker: CertificateWorker | None = None


def configure_certificate_worker(worker: CertificateWorker | None) -> None:
    """Install the worker used by the HTTP routes (``None`` rebuilds from settings)."""

    global _worker
    _worker = worker


def get_certificate_worker() -> CertificateWorker:
    global _worker
    if _worker is None:
        _worker = build_certificate_worker(load_settings())
    return _worker
