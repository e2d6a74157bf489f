"""Shared helpers for HTTP collaborators."""

from __future__ import annotations

import httpx


def upstream_error_text(response: httpx.Response) -> str:
    """Best-effort error message from an upstream error response.

    Understands ``{"error": {"message": ...}}`` (OpenAI, Stripe) and
    ``{"error": "..."}`` bodies; falls back to the raw body.
    """
    try:
        data = response.json() if response.content else {}
    except (ValueError, TypeError):
        data = {}
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
    return response.text or f"HTTP {response.status_code}"
