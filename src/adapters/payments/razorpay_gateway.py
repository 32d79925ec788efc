"""
Razorpay gateway adapter - Implements PaymentGateway protocol.

Orders are created and checkout signatures verified through the razorpay
SDK. Razorpay signs ``order_id|payment_id`` with the key secret, so the
signature check needs no API call.
"""

import logging
import secrets
from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import razorpay
from razorpay.errors import SignatureVerificationError

from src.domain.exceptions import GatewayError
from src.domain.models import PaymentIntent, PaymentVerdict

logger = logging.getLogger(__name__)


class RazorpayGateway:
    """
    Implements PaymentGateway protocol via the razorpay SDK.

    The SDK client is created lazily so that a deployment with missing
    credentials still starts; the first payment call then fails with
    GatewayError.
    """

    name = "razorpay"
    currency = "INR"

    def __init__(self, key_id: str | None, key_secret: str | None) -> None:
        self._key_id = key_id
        self._key_secret = key_secret
        self._client: razorpay.Client | None = None

    def create_intent(self, amount: Decimal, reference: str) -> PaymentIntent:
        client = self._get_client()
        options = {
            "amount": _to_paise(amount),
            "currency": self.currency,
            "receipt": f"rcpt_{secrets.token_hex(4)}",
            "notes": {"userId": reference},
        }

        try:
            order = client.order.create(data=options)
        except Exception as e:
            logger.error("Razorpay order creation failed for %s: %s", reference, e)
            raise GatewayError("Failed to create Razorpay order") from e

        return PaymentIntent(
            order_id=order["id"],
            amount=Decimal(order["amount"]) / 100,
            currency=order["currency"],
        )

    def confirm(self, proof: Mapping[str, Any]) -> PaymentVerdict:
        """
        Verify the checkout signature returned to the client.

        Proof keys: razorpay_order_id, razorpay_payment_id, razorpay_signature.
        Any missing or non-string field yields an invalid verdict.
        """
        client = self._get_client()

        order_id = proof.get("razorpay_order_id")
        payment_id = proof.get("razorpay_payment_id")
        signature = proof.get("razorpay_signature")
        if not all(isinstance(value, str) and value for value in (order_id, payment_id, signature)):
            return PaymentVerdict(is_valid=False)
        # The SDK compares with hmac.compare_digest, which rejects non-ASCII str
        if not signature.isascii():
            return PaymentVerdict(is_valid=False)

        try:
            client.utility.verify_payment_signature(
                {
                    "razorpay_order_id": order_id,
                    "razorpay_payment_id": payment_id,
                    "razorpay_signature": signature,
                }
            )
        except SignatureVerificationError:
            logger.warning("Razorpay signature mismatch for order %s", order_id)
            return PaymentVerdict(is_valid=False, payment_id=payment_id, order_id=order_id)

        return PaymentVerdict(is_valid=True, payment_id=payment_id, order_id=order_id)

    def _get_client(self) -> razorpay.Client:
        if self._client is None:
            if not self._key_id or not self._key_secret:
                raise GatewayError(
                    "Razorpay credentials are not configured "
                    "(RAZORPAY_KEY_ID, RAZORPAY_KEY_SECRET)"
                )
            self._client = razorpay.Client(auth=(self._key_id, self._key_secret))
        return self._client


def _to_paise(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
