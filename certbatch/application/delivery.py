"""Delivery strategies: where rendered certificates go."""
from __future__ import annotations

import html
import logging
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar

from pypdf import PdfReader, PdfWriter

from certbatch.core.errors import RowProcessingError, SinkInitError
from certbatch.core.storage import ArtifactStore, spooled_file
from certbatch.domain import RenderedDocument, RosterRow
from certbatch.infrastructure import Mailer

logger = logging.getLogger(__name__)


class DeliveryStrategy:
    """Sink for rendered documents, driven row by row by the orchestrator.

    ``progress_basis`` selects what the tracker reports as completed:
    ``"attempted"`` (row position), ``"generated"`` (successes) or ``None``
    (no per-row progress).
    """

    mode: ClassVar[str] = ""
    progress_basis: ClassVar[str | None] = "generated"

    def open(self) -> None:
        """Prepare the output target; raise :class:`SinkInitError` on failure."""

    def admits(self, row: RosterRow) -> bool:
        return True

    def accept(self, document: RenderedDocument, row: RosterRow) -> None:
        raise NotImplementedError

    def finalize(self) -> Path | None:
        return None

    def abort(self) -> None:
        """Drop whatever was written so far."""


class EmailDelivery(DeliveryStrategy):
    mode = "email"
    progress_basis = None

    def __init__(self, mailer: Mailer, subject: str, body_template: str) -> None:
        self._mailer = mailer
        self._subject = subject
        self._body_template = body_template

    def render_body(self, row: RosterRow) -> str:
        return self._body_template.replace("{name}", html.escape(row.name))

    def admits(self, row: RosterRow) -> bool:
        if not row.email:
            logger.info("Skipping email for %s: no contact address", row.label)
            return False
        return True

    def accept(self, document: RenderedDocument, row: RosterRow) -> None:
        try:
            self._mailer.send(
                row.email,
                self._subject,
                self.render_body(row),
                document.content,
                document.filename,
            )
        except Exception as exc:  # noqa: BLE001
            raise RowProcessingError("email", row.label, exc) from exc
        logger.info("Email sent successfully to %s", row.email)


class MergedPdfDelivery(DeliveryStrategy):
    """Appends every certificate to one PDF, saved as the artifact at the end."""

    mode = "merge"
    progress_basis = "attempted"

    def __init__(self, artifacts: ArtifactStore) -> None:
        self._artifacts = artifacts
        self._writer: PdfWriter | None = None
        self._partial: Path | None = None
        self._pages = 0

    def open(self) -> None:
        try:
            self._partial = self._artifacts.reserve_partial(self._artifacts.merged_path)
        except OSError as exc:
            raise SinkInitError(f"Cannot create merged PDF in {self._artifacts.root}: {exc}") from exc
        self._writer = PdfWriter()
        self._pages = 0

    def accept(self, document: RenderedDocument, row: RosterRow) -> None:
        if self._writer is None:
            raise RowProcessingError("merge", row.label, RuntimeError("merged PDF is not open"))
        try:
            with spooled_file(self._artifacts.root, document.content) as path:
                reader = PdfReader(path)
                self._writer.append(reader)
                self._pages += len(reader.pages)
        except Exception as exc:  # noqa: BLE001
            raise RowProcessingError("merge", row.label, exc) from exc

    def finalize(self) -> Path | None:
        if self._writer is None or self._partial is None:
            return None
        target = self._artifacts.merged_path
        try:
            with self._partial.open("wb") as buffer:
                self._writer.write(buffer)
            self._writer.close()
            self._writer = None
            self._artifacts.publish(self._partial, target)
            self._partial = None
        except OSError as exc:
            raise SinkInitError(f"Cannot save merged PDF {target}: {exc}") from exc
        logger.info("Saved merged PDF with %d pages to %s", self._pages, target)
        return target

    def abort(self) -> None:
        if self._writer is not None:
            self._writer.close()
            self._writer = None
        if self._partial is not None:
            self._partial.unlink(missing_ok=True)
            self._partial = None


class ArchiveDelivery(DeliveryStrategy):
    """Collects every certificate as an entry of one ZIP archive."""

    mode = "archive"
    progress_basis = "generated"

    def __init__(self, artifacts: ArtifactStore) -> None:
        self._artifacts = artifacts
        self._archive: zipfile.ZipFile | None = None
        self._partial: Path | None = None
        self._entries: set[str] = set()

    def open(self) -> None:
        try:
            self._partial = self._artifacts.reserve_partial(self._artifacts.archive_path)
            self._archive = zipfile.ZipFile(self._partial, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9)
        except OSError as exc:
            self.abort()
            raise SinkInitError(f"Cannot create archive in {self._artifacts.root}: {exc}") from exc
        self._entries = set()

    def _entry_name(self, filename: str) -> str:
        stem, dot, suffix = filename.rpartition(".")
        candidate = filename
        counter = 2
        while candidate in self._entries:
            candidate = f"{stem} ({counter}){dot}{suffix}"
            counter += 1
        return candidate

    def accept(self, document: RenderedDocument, row: RosterRow) -> None:
        if self._archive is None:
            raise RowProcessingError("archive", row.label, RuntimeError("archive is not open"))
        entry = self._entry_name(document.filename)
        try:
            with spooled_file(self._artifacts.root, document.content) as path:
                self._archive.write(path, arcname=entry)
        except Exception as exc:  # noqa: BLE001
            raise RowProcessingError("archive", row.label, exc) from exc
        self._entries.add(entry)

    def finalize(self) -> Path | None:
        if self._archive is None or self._partial is None:
            return None
        target = self._artifacts.archive_path
        try:
            self._archive.close()
            self._archive = None
            self._artifacts.publish(self._partial, target)
            self._partial = None
        except OSError as exc:
            raise SinkInitError(f"Cannot finalize archive {target}: {exc}") from exc
        logger.info("Created zip file with %d entries (%d bytes)", len(self._entries), target.stat().st_size)
        return target

    def abort(self) -> None:
        if self._archive is not None:
            self._archive.close()
            self._archive = None
        if self._partial is not None:
            self._partial.unlink(missing_ok=True)
            self._partial = None


@dataclass
class DeliveryFactory:
    """Builds strategies by mode name with their collaborators."""

    artifacts: ArtifactStore
    mailer: Mailer
    email_subject: str
    email_body_template: str

    def create(self, mode: str) -> DeliveryStrategy:
        if mode == "email":
            return EmailDelivery(self.mailer, self.email_subject, self.email_body_template)
        if mode == "merge":
            return MergedPdfDelivery(self.artifacts)
        if mode == "archive":
            return ArchiveDelivery(self.artifacts)
        raise ValueError(f"unknown delivery mode: {mode}")
