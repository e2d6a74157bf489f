"""SQLAlchemy ORM models for Call Mate.

Importing this package registers every table with ``Base.metadata``.
"""

from callmate.db.models.billing import (
    InvoiceItemModel,
    InvoiceModel,
    QuoteItemModel,
    QuoteModel,
)
from callmate.db.models.calls import CallDirection, CallLogModel, CallOutcome
from callmate.db.models.crm import CustomerModel, UserModel, UserRole
from callmate.db.models.jobs import ACTIVE_JOB_STATUSES, JobModel, JobStatus
from callmate.db.models.marketing import (
    AiAgentSettingsModel,
    CampaignModel,
    CampaignStatus,
    CampaignType,
)

__all__ = [
    "InvoiceItemModel",
    "InvoiceModel",
    "QuoteItemModel",
    "QuoteModel",
    "CallDirection",
    "CallLogModel",
    "CallOutcome",
    "CustomerModel",
    "UserModel",
    "UserRole",
    "ACTIVE_JOB_STATUSES",
    "JobModel",
    "JobStatus",
    "AiAgentSettingsModel",
    "CampaignModel",
    "CampaignStatus",
    "CampaignType",
]
