"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from collections.abc import Callable, Mapping
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Protocol, TypeVar

from .models import OtpGrant, PaymentIntent, PaymentStatus, PaymentVerdict, Profile, ProfileFields

T = TypeVar("T")


class RegistrationState(str, Enum):
    """
    Registration State Machine states, derived from a profile record.

    State Transitions (forward-only):
    - UNREGISTERED -> PENDING_VERIFICATION (profile created, OTP issued)
    - PENDING_VERIFICATION -> AWAITING_PAYMENT (OTP verified, no free slot)
    - PENDING_VERIFICATION -> FREE (OTP verified, free slot held)
    - AWAITING_PAYMENT -> PAID (gateway proof confirmed)

    Terminal States:
    - FREE: Admitted without payment
    - PAID: Admitted after payment
    """

    UNREGISTERED = "UNREGISTERED"
    PENDING_VERIFICATION = "PENDING_VERIFICATION"
    AWAITING_PAYMENT = "AWAITING_PAYMENT"
    FREE = "FREE"
    PAID = "PAID"


class VerifyResult(Enum):
    """
    Result of an OTP verification attempt.

    Produced by the verification transition; the OTP verifier maps
    every value except SUCCESS onto a domain exception.
    """

    SUCCESS = "success"
    INVALID_CODE = "invalid_code"
    EXPIRED = "expired"
    LOCKED = "locked"
    NOT_FOUND = "not_found"


class ProfileRepository(Protocol):
    """Port interface for profile persistence."""

    def get_by_email(self, email: str) -> Profile | None:
        """Fetch a profile by normalized email."""
        ...

    def get_by_id(self, profile_id: str) -> Profile | None:
        """Fetch a profile by id."""
        ...

    def count_confirmed(self, gender: str) -> int:
        """Count profiles of a gender whose payment status is FREE or PAID."""
        ...

    def create(
        self,
        fields: ProfileFields,
        grant: OtpGrant,
        allocate: Callable[[int], PaymentStatus],
        now: datetime,
    ) -> Profile | None:
        """
        Create a profile with its first OTP and an allocated payment status.

        The confirmed count for the profile's gender, the call to
        ``allocate`` and the insert happen under one per-gender lock, so
        concurrent registrants cannot both consume the last free slot.

        Args:
            fields: Validated profile fields (email normalized)
            grant: First OTP (hash + expiry + send time)
            allocate: Maps the current confirmed count to a payment status
            now: Creation timestamp

        Returns:
            The stored profile, or None if the email already exists
        """
        ...

    def modify_by_email(self, email: str, transition: Callable[[Profile], T]) -> T | None:
        """
        Apply a transition to a locked profile and persist its mutable fields.

        Implementation locks the row (SELECT FOR UPDATE) for the duration of
        the transition, so read-modify-write sequences (cooldown checks,
        attempt counters) are serialized per profile. If the transition
        raises, nothing is persisted.

        Returns:
            The transition's return value, or None if no profile exists
        """
        ...

    def modify_by_id(self, profile_id: str, transition: Callable[[Profile], T]) -> T | None:
        """Same as modify_by_email, keyed by profile id."""
        ...


class EmailSender(Protocol):
    """Port interface for email delivery."""

    def send_verification_code(self, email: str, code: str) -> bool:
        """
        Send verification code to email address.

        Args:
            email: Recipient email address
            code: 6-digit verification code

        Returns:
            True if the provider accepted the message
        """
        ...


class PaymentGateway(Protocol):
    """Port interface for a payment provider."""

    name: str
    currency: str

    def create_intent(self, amount: Decimal, reference: str) -> PaymentIntent:
        """
        Open a payable transaction with the provider.

        Args:
            amount: Amount in major currency units
            reference: Profile id, attached to the transaction as metadata

        Raises:
            GatewayError: Provider unreachable or credentials missing
        """
        ...

    def confirm(self, proof: Mapping[str, Any]) -> PaymentVerdict:
        """
        Turn a provider-specific proof into a verdict.

        Malformed or incomplete proofs yield an invalid verdict rather than
        an exception.

        Raises:
            GatewayError: Provider unreachable or credentials missing
        """
        ...
