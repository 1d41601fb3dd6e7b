"""
Payment processor clients.

The checkout service talks to a ``PaymentGateway``; which one is used is
decided once from settings by ``build_payment_gateway``:
  - StripePaymentGateway when STRIPE_SECRET_KEY is configured
  - DemoPaymentGateway otherwise (always succeeds, no network)

Calls are bounded by PAYMENT_TIMEOUT_SECONDS and never retried. Any
transport error, timeout or non-2xx answer becomes PaymentFailedError.
"""
from dataclasses import dataclass
from typing import Optional, Protocol
import logging
import uuid

import httpx

from trade_exchange.core.config import Settings, settings
from trade_exchange.core.exceptions import PaymentFailedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentResult:
    reference: str
    amount: float
    currency: str
    status: str


class PaymentGateway(Protocol):
    def charge(self, amount: float, description: str, metadata: dict) -> PaymentResult:
        ...


class DemoPaymentGateway:
    """Accepts every charge without contacting a processor."""

    def __init__(self, currency: str = "usd") -> None:
        self._currency = currency

    def charge(self, amount: float, description: str, metadata: dict) -> PaymentResult:
        reference = f"demo_{uuid.uuid4().hex[:16]}"
        logger.info("Demo charge accepted ref=%s amount=%.2f", reference, amount)
        return PaymentResult(
            reference=reference, amount=amount, currency=self._currency, status="succeeded"
        )


class StripePaymentGateway:
    """Creates payment intents through the Stripe REST API."""

    def __init__(
        self,
        secret_key: str,
        base_url: str = "https://api.stripe.com",
        currency: str = "usd",
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._secret_key = secret_key
        self._base_url = base_url.rstrip("/")
        self._currency = currency
        self._timeout = timeout
        self._transport = transport

    def charge(self, amount: float, description: str, metadata: dict) -> PaymentResult:
        """
        Create a payment intent for *amount* (in major currency units).

        Raises:
            PaymentFailedError: on timeout, transport failure or a non-2xx reply.
        """
        form = {
            "amount": str(int(round(amount * 100))),
            "currency": self._currency,
            "description": description,
        }
        for key, value in metadata.items():
            form[f"metadata[{key}]"] = str(value)

        try:
            with httpx.Client(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = client.post(
                    "/v1/payment_intents",
                    data=form,
                    headers={"Authorization": f"Bearer {self._secret_key}"},
                )
                response.raise_for_status()
                payload = response.json()
        except httpx.TimeoutException as exc:
            logger.error("Payment gateway timed out after %.1fs", self._timeout)
            raise PaymentFailedError() from exc
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Payment gateway rejected charge status=%s body=%s",
                exc.response.status_code,
                exc.response.text[:500],
            )
            raise PaymentFailedError() from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Payment gateway call failed: %s", exc)
            raise PaymentFailedError() from exc

        reference = payload.get("id")
        if not reference:
            logger.error("Payment gateway reply carried no payment id")
            raise PaymentFailedError()
        logger.info("Payment intent created ref=%s amount=%.2f", reference, amount)
        return PaymentResult(
            reference=reference,
            amount=amount,
            currency=payload.get("currency", self._currency),
            status=payload.get("status", "unknown"),
        )


def build_payment_gateway(config: Settings = settings) -> PaymentGateway:
    if config.STRIPE_SECRET_KEY:
        logger.info("Using Stripe payment gateway")
        return StripePaymentGateway(
            secret_key=config.STRIPE_SECRET_KEY,
            base_url=config.PAYMENT_API_BASE,
            currency=config.PAYMENT_CURRENCY,
            timeout=config.PAYMENT_TIMEOUT_SECONDS,
        )
    logger.warning("STRIPE_SECRET_KEY not set; using the demo payment gateway")
    return DemoPaymentGateway(currency=config.PAYMENT_CURRENCY)
