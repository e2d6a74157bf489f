"""Thin clients for external services (LLM completions, payments)."""

from callmate.integrations.llm import LLMClient
from callmate.integrations.payments import PaymentsClient

__all__ = ["LLMClient", "PaymentsClient"]
