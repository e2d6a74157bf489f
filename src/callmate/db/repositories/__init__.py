"""Repository Layer for Call Mate.

Base:
- BaseRepository: Generic CRUD operations

Specialized:
- CustomerRepository, UserRepository: CRM
- JobRepository: Jobs and schedule
- QuoteRepository, InvoiceRepository: Billing documents
- CallLogRepository: Call history
- CampaignRepository: Marketing campaigns
- AiAgentSettingsRepository: Receptionist configuration
"""

from callmate.db.repositories.agent_settings import AiAgentSettingsRepository
from callmate.db.repositories.base import BaseRepository
from callmate.db.repositories.billing import InvoiceRepository, QuoteRepository
from callmate.db.repositories.calls import CallLogRepository
from callmate.db.repositories.campaigns import CampaignRepository
from callmate.db.repositories.crm import CustomerRepository, UserRepository
from callmate.db.repositories.jobs import JobRepository

__all__ = [
    "AiAgentSettingsRepository",
    "BaseRepository",
    "InvoiceRepository",
    "QuoteRepository",
    "CallLogRepository",
    "CampaignRepository",
    "CustomerRepository",
    "UserRepository",
    "JobRepository",
]
