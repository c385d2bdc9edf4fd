"""Runtime settings loaded from the environment (and an optional ``.env``)."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_EMAIL_BODY = (
    "Dear {name},<br><br>"
    "Greetings of the day!<br><br>"
    "Thank you for participating in the programme. We wish you all the best in your "
    "future endeavours. Please find your certificate attached.<br><br>"
    "Warm regards"
)

DELIVERY_MODES = {"email", "merge", "archive"}
ROSTER_BACKENDS = {"google", "workbook"}


def _env(*names: str, default: str = "") -> str:
    for name in names:
        value = os.getenv(name)
        if value:
            return value.strip()
    return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def _split(raw: str) -> tuple[str, ...]:
    return tuple(part.strip().lower() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class GoogleConfig:
    client_id: str
    client_secret: str
    refresh_token: str
    template_id: str
    folder_id: str

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret and self.refresh_token)


@dataclass(frozen=True)
class SMTPConfig:
    host: str
    port: int
    user: str
    password: str
    sender: str
    sender_name: str
    subject: str
    body_template: str


@dataclass(frozen=True)
class Settings:
    google: GoogleConfig
    smtp: SMTPConfig
    roster_backend: str = "google"
    roster_dir: Path = field(default_factory=Path.cwd)
    output_dir: Path = field(default_factory=lambda: Path("output"))
    progress_file: str = "download.json"
    http_timeout: float = 30.0
    settle_delay: float = 4.0
    email_delay: float = 5.0
    render_rate_per_minute: float = 60.0
    unfiltered_delivery: tuple[str, ...] = ("email", "merge")
    cors_origins: tuple[str, ...] = ("*",)
    log_level: str = "INFO"

    @property
    def progress_path(self) -> Path:
        return self.output_dir / self.progress_file


def load_settings() -> Settings:
    """Build :class:`Settings` from environment variables."""

    load_dotenv(override=False)

    smtp_user = _env("SMTP_USER", "EMAIL")
    port_raw = _env("SMTP_PORT", default="587")
    try:
        smtp_port = int(port_raw)
    except ValueError as exc:
        raise ValueError(f"SMTP_PORT must be an integer, got {port_raw!r}") from exc

    unfiltered = _split(_env("UNFILTERED_DELIVERY", default="email,merge"))
    unknown = [mode for mode in unfiltered if mode not in DELIVERY_MODES]
    if unknown:
        raise ValueError(f"UNFILTERED_DELIVERY has unknown modes: {', '.join(unknown)}")

    roster_backend = _env("ROSTER_BACKEND", default="google").lower()
    if roster_backend not in ROSTER_BACKENDS:
        raise ValueError(f"ROSTER_BACKEND must be one of google, workbook; got {roster_backend!r}")

    output_dir = Path(_env("OUTPUT_DIR", default="output")).expanduser().resolve()
    origins = tuple(
        origin.strip() for origin in _env("API_CORS_ORIGINS", default="*").split(",") if origin.strip()
    )

    return Settings(
        google=GoogleConfig(
            client_id=_env("GOOGLE_CLIENT_ID", "CLIENT_ID"),
            client_secret=_env("GOOGLE_CLIENT_SECRET", "CLIENT_SECRET"),
            refresh_token=_env("GOOGLE_REFRESH_TOKEN", "REFRESH_TOKEN"),
            template_id=_env("TEMPLATE_ID"),
            folder_id=_env("FOLDER_ID"),
        ),
        smtp=SMTPConfig(
            host=_env("SMTP_HOST", default="smtp.gmail.com"),
            port=smtp_port,
            user=smtp_user,
            password=_env("SMTP_PASSWORD", "PASSWORD"),
            sender=_env("SMTP_FROM", default=smtp_user),
            sender_name=_env("SMTP_FROM_NAME", default="Certificates"),
            subject=_env("EMAIL_SUBJECT", default="Internship Completion Certificate"),
            body_template=_env("EMAIL_BODY_TEMPLATE", default=DEFAULT_EMAIL_BODY),
        ),
        roster_backend=roster_backend,
        roster_dir=Path(_env("ROSTER_DIR", default=".")).expanduser().resolve(),
        output_dir=output_dir,
        progress_file=_env("PROGRESS_FILE", default="download.json"),
        http_timeout=_env_float("HTTP_TIMEOUT", 30.0),
        settle_delay=_env_float("SETTLE_DELAY_SECONDS", 4.0),
        email_delay=_env_float("EMAIL_DELAY_SECONDS", 5.0),
        render_rate_per_minute=_env_float("RENDER_RATE_PER_MINUTE", 60.0),
        unfiltered_delivery=unfiltered or ("email", "merge"),
        cors_origins=origins or ("*",),
        log_level=_env("LOG_LEVEL", default="INFO").upper(),
    )
