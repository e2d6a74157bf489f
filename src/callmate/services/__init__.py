"""Business services built on the repositories and collaborators."""

from callmate.services.dashboard import DashboardAggregator, DashboardMetrics, summarize
from callmate.services.documents import InvoiceService, QuoteService
from callmate.services.receptionist import ReceptionistService

__all__ = [
    "DashboardAggregator",
    "DashboardMetrics",
    "summarize",
    "InvoiceService",
    "QuoteService",
    "ReceptionistService",
]
