"""Per-row certificate rendering against a slide template."""
from __future__ import annotations

import logging
from typing import Mapping, Protocol

from certbatch.core.errors import RowProcessingError
from certbatch.core.formatting import format_readable_date, title_case
from certbatch.domain import DateRange, RenderedDocument, RosterRow

logger = logging.getLogger(__name__)


class TemplateService(Protocol):
    """Template duplication and export contract (Drive + Slides)."""

    def copy_file(self, file_id: str, name: str, folder_id: str | None = None) -> str: ...

    def replace_text(self, presentation_id: str, replacements: Mapping[str, str]) -> None: ...

    def export_pdf(self, file_id: str) -> bytes: ...

    def trash_file(self, file_id: str) -> None: ...


class DocumentRenderer(Protocol):
    def render(self, row: RosterRow, date_range: DateRange) -> RenderedDocument: ...


def build_placeholders(row: RosterRow, date_range: DateRange) -> dict[str, str]:
    return {
        "{{Name}}": row.name,
        "{{SchoolName}}": title_case(row.school),
        "{{WebinarName}}": title_case(row.domain),
        "{{Date}}": format_readable_date(date_range.start),
        "{{Dateto}}": format_readable_date(date_range.end),
        "{{CERT-NUMBER}}": row.certificate_number,
    }


class CertificateRenderer:
    """Duplicates the template, fills it in, exports it as PDF and trashes the copy."""

    def __init__(self, templates: TemplateService, template_id: str, folder_id: str | None = None) -> None:
        self._templates = templates
        self._template_id = template_id
        self._folder_id = folder_id or None

    def render(self, row: RosterRow, date_range: DateRange) -> RenderedDocument:
        try:
            copy_id = self._templates.copy_file(self._template_id, f"{row.name} - Certificate", self._folder_id)
        except Exception as exc:  # noqa: BLE001
            raise RowProcessingError("duplicate", row.label, exc) from exc

        try:
            try:
                self._templates.replace_text(copy_id, build_placeholders(row, date_range))
            except Exception as exc:  # noqa: BLE001
                raise RowProcessingError("substitute", row.label, exc) from exc
            try:
                content = self._templates.export_pdf(copy_id)
            except Exception as exc:  # noqa: BLE001
                raise RowProcessingError("export", row.label, exc) from exc
        finally:
            self._discard(copy_id)

        return RenderedDocument(name=row.name, certificate_number=row.certificate_number, content=content)

    def _discard(self, copy_id: str) -> None:
        try:
            self._templates.trash_file(copy_id)
        except Exception as exc:  # noqa: BLE001 - the copy is left behind, the row still counts
            logger.warning("Failed to trash template copy %s: %s", copy_id, exc)
