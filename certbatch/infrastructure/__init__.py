"""Infrastructure layer exports."""

from .google import GoogleAPIError, GoogleWorkspaceClient
from .mailer import DeliveryError, Mailer, SMTPMailer
from .progress import InMemoryProgressStore, JsonFileProgressStore, ProgressStore
from .roster import GoogleSheetsRosterSource, RosterSource, WorkbookRosterSource

__all__ = [
    "DeliveryError",
    "GoogleAPIError",
    "GoogleSheetsRosterSource",
    "GoogleWorkspaceClient",
    "InMemoryProgressStore",
    "JsonFileProgressStore",
    "Mailer",
    "ProgressStore",
    "RosterSource",
    "SMTPMailer",
    "WorkbookRosterSource",
]
