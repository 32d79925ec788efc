"""
Stripe gateway adapter - Implements PaymentGateway protocol.

A PaymentIntent is created server-side and its client_secret handed to
the browser, which confirms the card payment with Stripe.js. The proof
sent back is just the intent id; the server retrieves the intent and
accepts it only when its status is ``succeeded``.
"""

import logging
from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import stripe

from src.domain.exceptions import GatewayError
from src.domain.models import PaymentIntent, PaymentVerdict

logger = logging.getLogger(__name__)


class StripeGateway:
    """Implements PaymentGateway protocol via the stripe SDK."""

    name = "stripe"
    currency = "usd"

    def __init__(self, secret_key: str | None) -> None:
        self._secret_key = secret_key

    def create_intent(self, amount: Decimal, reference: str) -> PaymentIntent:
        api_key = self._require_key()

        try:
            intent = stripe.PaymentIntent.create(
                api_key=api_key,
                amount=_to_cents(amount),
                currency=self.currency,
                metadata={"userId": reference},
            )
        except stripe.StripeError as e:
            logger.error("Stripe payment intent creation failed for %s: %s", reference, e)
            raise GatewayError("Failed to create Stripe payment intent") from e

        return PaymentIntent(
            order_id=intent.id,
            amount=Decimal(intent.amount) / 100,
            currency=intent.currency,
            client_secret=intent.client_secret,
        )

    def confirm(self, proof: Mapping[str, Any]) -> PaymentVerdict:
        """
        Look up the payment intent named by the proof.

        Proof keys: paymentIntentId. An unknown intent id yields an invalid
        verdict; transport or authentication failures raise GatewayError.
        """
        api_key = self._require_key()

        intent_id = proof.get("paymentIntentId")
        if not isinstance(intent_id, str) or not intent_id:
            return PaymentVerdict(is_valid=False)

        try:
            intent = stripe.PaymentIntent.retrieve(intent_id, api_key=api_key)
        except stripe.InvalidRequestError:
            logger.warning("Unknown Stripe payment intent %s", intent_id)
            return PaymentVerdict(is_valid=False)
        except stripe.StripeError as e:
            logger.error("Stripe payment intent lookup failed for %s: %s", intent_id, e)
            raise GatewayError("Failed to verify Stripe payment") from e

        return PaymentVerdict(
            is_valid=intent.status == "succeeded",
            payment_id=intent.id,
            order_id=intent.id,
        )

    def _require_key(self) -> str:
        if not self._secret_key:
            raise GatewayError("Stripe credentials are not configured (STRIPE_SECRET_KEY)")
        return self._secret_key


def _to_cents(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
