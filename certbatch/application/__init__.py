"""Application services."""

from .delivery import ArchiveDelivery, DeliveryFactory, DeliveryStrategy, EmailDelivery, MergedPdfDelivery
from .orchestrator import CertificateOrchestrator, StrategyOutcome
from .renderer import CertificateRenderer, DocumentRenderer, TemplateService, build_placeholders
from .roster import load_roster
from .throttle import ThrottlePolicy

__all__ = [
    "ArchiveDelivery",
    "CertificateOrchestrator",
    "CertificateRenderer",
    "DeliveryFactory",
    "DeliveryStrategy",
    "DocumentRenderer",
    "EmailDelivery",
    "MergedPdfDelivery",
    "StrategyOutcome",
    "TemplateService",
    "ThrottlePolicy",
    "build_placeholders",
    "load_roster",
]
