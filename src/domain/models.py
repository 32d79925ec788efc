"""
Domain records - Profile and value objects exchanged through the ports.

Plain dataclasses; adapters translate them to and from storage rows
and provider payloads.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum


class PaymentStatus(str, Enum):
    """
    Payment state stored on every profile.

    PENDING is the default for a registrant beyond the free-slot quota.
    FREE and PAID are both "confirmed": they occupy a slot in the
    gender bucket and block re-registration.
    """

    PENDING = "PENDING"
    FREE = "FREE"
    PAID = "PAID"


CONFIRMED_STATUSES = (PaymentStatus.FREE, PaymentStatus.PAID)


@dataclass(frozen=True)
class ProfileFields:
    """Identity fields submitted on registration. Immutable once stored."""

    email: str
    name: str
    age: int
    gender: str
    interested_in: str
    college: str
    relationship_goal: str
    description: str
    preferences: str
    interests: str


@dataclass
class Profile:
    """
    Stored profile: identity plus verification and payment state.

    Only the verification and payment fields (and updated_at) are
    mutated after creation; repositories persist exactly those.
    """

    id: str
    email: str
    name: str
    age: int
    gender: str
    interested_in: str
    college: str
    relationship_goal: str
    description: str
    preferences: str
    interests: str
    created_at: datetime
    updated_at: datetime
    verified: bool = False
    otp_hash: str | None = None
    otp_expires_at: datetime | None = None
    last_otp_sent_at: datetime | None = None
    otp_attempts: int = 0
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_id: str | None = None
    provider_order_id: str | None = None

    @property
    def is_confirmed(self) -> bool:
        return self.payment_status in CONFIRMED_STATUSES


@dataclass(frozen=True)
class OtpGrant:
    """A freshly issued OTP: bcrypt hash of the code and its timing."""

    code_hash: str
    expires_at: datetime
    sent_at: datetime


@dataclass(frozen=True)
class PaymentIntent:
    """
    Payable transaction opened with a gateway.

    order_id is the Razorpay order id or the Stripe payment intent id.
    client_secret is only set by gateways that confirm client-side.
    """

    order_id: str
    amount: Decimal
    currency: str
    client_secret: str | None = None


@dataclass(frozen=True)
class PaymentVerdict:
    """Gateway verdict on a payment proof."""

    is_valid: bool
    payment_id: str | None = None
    order_id: str | None = None
