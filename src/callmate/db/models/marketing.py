"""Campaign and AI agent settings ORM models."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from callmate.db.base import Base, TimestampMixin, UUIDMixin


class CampaignType(str, Enum):
    EMAIL = "email"
    SMS = "sms"
    VOICE = "voice"


class CampaignStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


class CampaignModel(Base, UUIDMixin, TimestampMixin):
    """Marketing campaign ORM model.

    Counters are informational; they are updated by whoever runs the
    campaign and never derived here.
    """

    __tablename__ = "campaigns"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(String(10), nullable=False, comment="email, sms, voice")
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        index=True,
        default=CampaignStatus.DRAFT.value,
    )
    target_audience: Mapped[dict[str, Any] | None] = mapped_column(nullable=True)
    message_template: Mapped[str | None] = mapped_column(Text, nullable=True)
    scheduled_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    sent_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    open_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    click_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    response_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class AiAgentSettingsModel(Base, UUIDMixin, TimestampMixin):
    """Configuration of the AI phone receptionist (single row)."""

    __tablename__ = "ai_agent_settings"

    greeting: Mapped[str | None] = mapped_column(Text, nullable=True)
    business_hours: Mapped[dict[str, Any] | None] = mapped_column(nullable=True)
    services: Mapped[list[Any] | None] = mapped_column(nullable=True)
    pricing_info: Mapped[dict[str, Any] | None] = mapped_column(nullable=True)
    booking_rules: Mapped[dict[str, Any] | None] = mapped_column(nullable=True)
    escalation_rules: Mapped[dict[str, Any] | None] = mapped_column(nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
