"""Payment provider client (Stripe REST API).

Only payment intent creation is used: the browser confirms the payment
with the returned client secret.
"""

from __future__ import annotations

from typing import Any

import httpx

from callmate.billing.totals import to_minor_units
from callmate.config import PaymentSettings, get_settings
from callmate.core.exceptions import PaymentError, ValidationError
from callmate.core.log import get_logger
from callmate.integrations.base import upstream_error_text

log = get_logger(__name__)


class PaymentsClient:
    """Creates payment intents.

    API Documentation: https://docs.stripe.com/api/payment_intents/create
    """

    def __init__(
        self,
        secret_key: str,
        *,
        api_base: str = "https://api.stripe.com/v1",
        currency: str = "usd",
        timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.currency = currency
        self._client = client or httpx.AsyncClient(
            base_url=api_base,
            timeout=timeout,
            headers={"Authorization": f"Bearer {secret_key}"},
        )

    @classmethod
    def from_settings(cls, settings: PaymentSettings | None = None) -> "PaymentsClient":
        settings = settings or get_settings().payments
        return cls(
            settings.secret_key,
            api_base=settings.api_base,
            currency=settings.currency,
            timeout=settings.timeout_seconds,
        )

    async def create_payment_intent(
        self,
        amount: Any,
        *,
        currency: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> str:
        """Create a payment intent and return its client secret.

        Args:
            amount: Amount in major units (dollars); converted to cents half-up
            currency: ISO currency code (defaults to the configured one)
            metadata: Extra key/value pairs stored with the intent

        Returns:
            The intent's ``client_secret``

        Raises:
            ValidationError: If the amount is not positive
            PaymentError: If the provider fails or rejects the request
        """
        minor = to_minor_units(amount)
        if minor <= 0:
            raise ValidationError("Payment amount must be positive")

        form: dict[str, Any] = {
            "amount": minor,
            "currency": currency or self.currency,
        }
        for key, value in (metadata or {}).items():
            form[f"metadata[{key}]"] = value

        try:
            response = await self._client.post("/payment_intents", data=form)
        except httpx.TimeoutException as e:
            log.error("Payment provider timeout", amount=minor)
            raise PaymentError("Request timeout", cause=e)
        except httpx.HTTPError as e:
            log.error("Payment provider HTTP error", error=str(e))
            raise PaymentError(str(e), cause=e)

        if response.status_code >= 400:
            message = upstream_error_text(response)
            log.error("Payment intent rejected", status_code=response.status_code, error=message)
            raise PaymentError(message, status=response.status_code)

        try:
            secret = response.json()["client_secret"]
        except (ValueError, KeyError, TypeError) as e:
            raise PaymentError("Response had no client secret", cause=e)

        log.info("Payment intent created", amount=minor, currency=form["currency"])
        return secret

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
