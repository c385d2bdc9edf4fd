from __future__ import annotations


class CertificateError(Exception):
    """Base class for failures surfaced by the certificate service."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(CertificateError):
    """Raised when a request is missing required fields or carries bad values."""

    status_code = 400


class DataAbsentError(CertificateError):
    """Raised when the roster is empty or cannot be read."""


class SinkInitError(CertificateError):
    """Raised when an output archive or merge target cannot be created."""


class ArtifactNotFoundError(CertificateError):
    """Raised when no finished artifact is available for download."""

    status_code = 404


class RowProcessingError(CertificateError):
    """Raised when a single roster row cannot be rendered or delivered."""

    def __init__(self, step: str, subject: str, cause: BaseException | None = None) -> None:
        detail = f"{step} failed for {subject}"
        if cause is not None:
            detail = f"{detail}: {cause}"
        super().__init__(detail)
        self.step = step
        self.subject = subject
