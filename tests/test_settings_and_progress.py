import json
from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from certbatch.core.config import load_settings
from certbatch.core.schema import JobState
from certbatch.infrastructure import InMemoryProgressStore, JsonFileProgressStore

ENV_NAMES = (
    "GOOGLE_CLIENT_ID",
    "CLIENT_ID",
    "GOOGLE_CLIENT_SECRET",
    "CLIENT_SECRET",
    "GOOGLE_REFRESH_TOKEN",
    "REFRESH_TOKEN",
    "SMTP_USER",
    "EMAIL",
    "SMTP_PASSWORD",
    "PASSWORD",
    "SMTP_PORT",
    "SMTP_FROM",
    "UNFILTERED_DELIVERY",
    "OUTPUT_DIR",
    "API_CORS_ORIGINS",
    "SETTLE_DELAY_SECONDS",
    "ROSTER_BACKEND",
)


@pytest.fixture()
def clean_env(monkeypatch, tmp_path):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


def test_job_state_payload_uses_wire_names():
    assert JobState.idle().to_payload() == {
        "progress": 0,
        "totalCertificates": 0,
        "generatedCount": 0,
        "generating": False,
    }
    assert JobState.running(2, 3).to_payload() == {
        "progress": 67,
        "totalCertificates": 3,
        "generatedCount": 2,
        "generating": True,
    }
    assert JobState.finished(0).progress == 100


def test_json_progress_store_round_trip(tmp_path):
    store = JsonFileProgressStore(tmp_path / "state" / "download.json")

    assert store.read() == JobState.idle()

    store.write(JobState.running(1, 4))
    on_disk = json.loads(store.path.read_text(encoding="utf-8"))
    assert on_disk == {"progress": 25, "totalCertificates": 4, "generatedCount": 1, "generating": True}
    assert store.read() == JobState.running(1, 4)

    store.reset()
    assert store.read() == JobState.idle()


def test_in_memory_progress_store_keeps_latest_state():
    store = InMemoryProgressStore()
    store.write(JobState.started(5))
    store.write(JobState.finished(5))

    assert store.read().generating is False
    store.reset()
    assert store.read() == JobState.idle()


def test_settings_read_legacy_names_and_defaults(clean_env, tmp_path):
    clean_env.setenv("CLIENT_ID", "legacy-id")
    clean_env.setenv("GOOGLE_CLIENT_SECRET", "secret")
    clean_env.setenv("REFRESH_TOKEN", "refresh")
    clean_env.setenv("EMAIL", "certs@example.com")
    clean_env.setenv("OUTPUT_DIR", str(tmp_path / "out"))
    clean_env.setenv("SETTLE_DELAY_SECONDS", "0.5")

    settings = load_settings()

    assert settings.google.client_id == "legacy-id"
    assert settings.google.is_configured
    assert settings.smtp.user == "certs@example.com"
    assert settings.smtp.sender == "certs@example.com"
    assert settings.smtp.port == 587
    assert settings.settle_delay == 0.5
    assert settings.unfiltered_delivery == ("email", "merge")
    assert settings.progress_path == (tmp_path / "out").resolve() / "download.json"
    assert settings.cors_origins == ("*",)


def test_settings_reject_unknown_delivery_mode(clean_env):
    clean_env.setenv("UNFILTERED_DELIVERY", "merge,fax")

    with pytest.raises(ValueError, match="fax"):
        load_settings()


def test_settings_reject_non_numeric_port(clean_env):
    clean_env.setenv("SMTP_PORT", "smtp")

    with pytest.raises(ValueError, match="SMTP_PORT"):
        load_settings()


def test_settings_reject_unknown_roster_backend(clean_env):
    clean_env.setenv("ROSTER_BACKEND", "excel")

    with pytest.raises(ValueError, match="excel"):
        load_settings()


def test_settings_accept_workbook_backend(clean_env):
    clean_env.setenv("ROSTER_BACKEND", "Workbook")

    assert load_settings().roster_backend == "workbook"
