import logging
from datetime import date
from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from certbatch.application import CertificateRenderer, build_placeholders
from certbatch.core.errors import RowProcessingError
from certbatch.domain import DateRange, RosterRow

from fakes import FakeTemplateService

ROW = RosterRow.from_cells(["Asha Rao", "asha@example.com", "green valley", "computer science", "gh-001"], 2)
DATES = DateRange(start=date(2024, 6, 1), end=date(2024, 7, 23))


def test_placeholders_cover_every_template_token():
    assert build_placeholders(ROW, DATES) == {
        "{{Name}}": "Asha Rao",
        "{{SchoolName}}": "Green Valley",
        "{{WebinarName}}": "Computer Science",
        "{{Date}}": "1st June, 2024",
        "{{Dateto}}": "23rd July, 2024",
        "{{CERT-NUMBER}}": "GH-001",
    }


def test_render_fills_exports_and_trashes_the_copy():
    templates = FakeTemplateService()
    renderer = CertificateRenderer(templates, "template-1", "folder-1")

    document = renderer.render(ROW, DATES)

    assert document.filename == "Asha Rao_GH-001.pdf"
    assert document.content.startswith(b"%PDF")
    assert templates.copies == {"copy-1": "Asha Rao"}
    assert templates.replacements["copy-1"]["{{Name}}"] == "Asha Rao"
    assert templates.trashed == ["copy-1"]


def test_failed_export_still_trashes_the_copy():
    templates = FakeTemplateService(fail_export_for=["Asha Rao"])
    renderer = CertificateRenderer(templates, "template-1")

    with pytest.raises(RowProcessingError) as excinfo:
        renderer.render(ROW, DATES)

    assert excinfo.value.step == "export"
    assert excinfo.value.subject == "Asha Rao - GH-001"
    assert templates.trashed == ["copy-1"]


def test_failed_copy_reports_duplicate_step():
    templates = FakeTemplateService(fail_copy_for=["Asha Rao"])

    with pytest.raises(RowProcessingError) as excinfo:
        CertificateRenderer(templates, "template-1").render(ROW, DATES)

    assert excinfo.value.step == "duplicate"
    assert templates.trashed == []


def test_trash_failure_is_only_logged(caplog):
    templates = FakeTemplateService(fail_trash=True)

    with caplog.at_level(logging.WARNING):
        document = CertificateRenderer(templates, "template-1").render(ROW, DATES)

    assert document.certificate_number == "GH-001"
    assert "Failed to trash template copy copy-1" in caplog.text
