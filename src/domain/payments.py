"""
Payment service - gateway-agnostic order creation and confirmation.

The active gateway (Razorpay or Stripe) is injected; this module only
knows the PaymentGateway port. Confirmation is idempotent: a PAID
profile short-circuits to success without consulting the gateway.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from .exceptions import (
    NotFoundError,
    PaymentNotAllowed,
    PaymentNotRequired,
    PaymentRejected,
)
from .models import PaymentIntent, PaymentStatus, Profile
from .otp import utcnow
from .ports import PaymentGateway, ProfileRepository
from .states import mark_paid, record_order

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentConfirmation:
    """Result of confirm(): the PAID profile and whether it already was."""

    profile: Profile
    already_paid: bool


@dataclass
class PaymentService:
    """
    Domain service for the registration fee.

    Charges a fixed configured amount; amounts sent by clients are not
    trusted.
    """

    repository: ProfileRepository
    gateway: PaymentGateway
    amount: Decimal
    clock: Callable[[], datetime] = field(default=utcnow)

    def create_intent(self, profile_id: str) -> PaymentIntent:
        """
        Open an order/intent with the active gateway for a profile.

        Raises:
            NotFoundError: Unknown profile id
            PaymentNotRequired: Profile already PAID or holds a free slot
            PaymentNotAllowed: Email not verified yet
            GatewayError: Gateway unreachable or misconfigured
        """
        profile = self.repository.get_by_id(profile_id)
        if profile is None:
            raise NotFoundError("User not found")
        if profile.payment_status == PaymentStatus.PAID:
            raise PaymentNotRequired("User has already made payment")
        if profile.payment_status == PaymentStatus.FREE:
            raise PaymentNotRequired("User holds a free slot; no payment required")
        if not profile.verified:
            raise PaymentNotAllowed("Email must be verified before payment")

        intent = self.gateway.create_intent(self.amount, profile.id)

        def transition(locked: Profile) -> Profile:
            record_order(locked, intent.order_id, self.clock())
            return locked

        if self.repository.modify_by_id(profile.id, transition) is None:
            raise NotFoundError("User not found")

        logger.info(
            "Created %s order %s for user %s (%s %s)",
            self.gateway.name,
            intent.order_id,
            profile.id,
            intent.amount,
            intent.currency,
        )
        return intent

    def confirm(self, profile_id: str, proof: Mapping[str, Any]) -> PaymentConfirmation:
        """
        Verify a gateway proof and mark the profile PAID.

        A proof is only accepted for the order recorded by create_intent,
        so a payment made for one profile cannot be replayed for another.

        Raises:
            NotFoundError: Unknown profile id
            PaymentNotRequired: Profile holds a free slot
            PaymentNotAllowed: Email not verified yet
            PaymentRejected: Proof invalid, no order created, or for a different order
            GatewayError: Gateway unreachable or misconfigured
        """
        profile = self.repository.get_by_id(profile_id)
        if profile is None:
            raise NotFoundError("User not found")
        if profile.payment_status == PaymentStatus.PAID:
            return PaymentConfirmation(profile=profile, already_paid=True)
        if profile.payment_status == PaymentStatus.FREE:
            raise PaymentNotRequired("User holds a free slot; no payment required")
        if not profile.verified:
            raise PaymentNotAllowed("Email must be verified before payment")
        if profile.provider_order_id is None:
            logger.warning("Payment proof for user %s without an order", profile.id)
            raise PaymentRejected("Payment verification failed")

        verdict = self.gateway.confirm(proof)
        if not verdict.is_valid or verdict.payment_id is None:
            logger.warning("Payment verification failed for user %s", profile.id)
            raise PaymentRejected("Payment verification failed")
        if verdict.order_id != profile.provider_order_id:
            logger.warning(
                "Payment proof for order %s does not match user %s order %s",
                verdict.order_id,
                profile.id,
                profile.provider_order_id,
            )
            raise PaymentRejected("Payment verification failed")

        def transition(locked: Profile) -> tuple[Profile, bool]:
            # A newer order may have replaced the one the proof was checked against
            if locked.payment_status != PaymentStatus.PAID and locked.provider_order_id != verdict.order_id:
                raise PaymentRejected("Payment verification failed")
            return locked, mark_paid(locked, verdict.payment_id, self.clock())

        outcome = self.repository.modify_by_id(profile.id, transition)
        if outcome is None:
            raise NotFoundError("User not found")
        updated, changed = outcome

        logger.info("Payment %s confirmed for user %s", updated.payment_id, updated.id)
        return PaymentConfirmation(profile=updated, already_paid=not changed)
