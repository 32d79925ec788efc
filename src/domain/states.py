"""
Registration State Machine - explicit states and transition functions.

A profile's registration state is derived from its verification flag and
payment status rather than stored separately:

    UNREGISTERED -> PENDING_VERIFICATION -> AWAITING_PAYMENT -> PAID
                                         -> FREE

Valid Transitions:
    UNREGISTERED -> PENDING_VERIFICATION  (register: profile + first OTP)
    PENDING_VERIFICATION -> PENDING_VERIFICATION  (OTP reissued, attempt failed)
    PENDING_VERIFICATION -> AWAITING_PAYMENT | FREE  (OTP verified)
    AWAITING_PAYMENT -> PAID  (payment confirmed)

Invalid Transitions (never allowed):
    FREE -> any         (FREE is terminal)
    PAID -> any         (PAID is terminal; re-confirmation is a no-op)
    verified -> unverified

Transition functions mutate the profile handed to them by a repository
that holds the row lock; they never perform I/O. Side effects (sending
the OTP, calling a gateway) are the caller's job, as indicated by the
returned action or result.
"""

from datetime import datetime, timedelta
from enum import Enum
from math import ceil

from .exceptions import ConflictError, PaymentNotRequired, RateLimitError
from .models import CONFIRMED_STATUSES, OtpGrant, PaymentStatus, Profile
from .ports import RegistrationState, VerifyResult


class RegisterAction(Enum):
    """Side effect required when a registration form is submitted."""

    CREATE = "create"  # insert profile, send first OTP
    REISSUE_OTP = "reissue_otp"  # existing unverified profile, send new OTP
    RESUME_PAYMENT = "resume_payment"  # verified, payment outstanding


def state_of(profile: Profile | None) -> RegistrationState:
    """Derive the registration state of a profile (None = no record)."""
    if profile is None:
        return RegistrationState.UNREGISTERED
    if not profile.verified:
        return RegistrationState.PENDING_VERIFICATION
    if profile.payment_status == PaymentStatus.PAID:
        return RegistrationState.PAID
    if profile.payment_status == PaymentStatus.FREE:
        return RegistrationState.FREE
    return RegistrationState.AWAITING_PAYMENT


def on_register(profile: Profile | None) -> RegisterAction:
    """
    Decide what a registration submission does for the stored profile.

    A profile holding a free slot or a payment is confirmed even before its
    email is verified; finishing verification goes through resend-otp.

    Raises:
        ConflictError: Registration already confirmed (FREE or PAID)
    """
    if profile is not None and profile.payment_status in CONFIRMED_STATUSES:
        raise ConflictError("User with this email is already registered")

    state = state_of(profile)
    if state == RegistrationState.UNREGISTERED:
        return RegisterAction.CREATE
    if state == RegistrationState.PENDING_VERIFICATION:
        return RegisterAction.REISSUE_OTP
    return RegisterAction.RESUME_PAYMENT


def grant_otp(profile: Profile, grant: OtpGrant, now: datetime, cooldown_seconds: int) -> None:
    """
    Install a new OTP on the profile, invalidating the previous one.

    Raises:
        RateLimitError: Previous OTP sent less than cooldown_seconds ago
    """
    if profile.last_otp_sent_at is not None:
        elapsed = now - profile.last_otp_sent_at
        cooldown = timedelta(seconds=cooldown_seconds)
        if elapsed < cooldown:
            retry_after = max(1, ceil((cooldown - elapsed).total_seconds()))
            raise RateLimitError(
                f"Please wait {retry_after} seconds before requesting a new code",
                retry_after=retry_after,
            )

    profile.otp_hash = grant.code_hash
    profile.otp_expires_at = grant.expires_at
    profile.last_otp_sent_at = grant.sent_at
    profile.otp_attempts = 0
    profile.updated_at = now


def check_otp(profile: Profile, code_matches: bool, now: datetime, max_attempts: int) -> VerifyResult:
    """
    Apply one verification attempt to the profile.

    Order of checks:
    1. Attempt ceiling reached -> LOCKED (no increment)
    2. No OTP outstanding -> INVALID_CODE
    3. OTP expired -> EXPIRED
    4. Code mismatch -> INVALID_CODE
    5. Otherwise SUCCESS: OTP cleared, verified set, attempts reset

    Outcomes 2-4 increment otp_attempts.
    """
    if profile.otp_attempts >= max_attempts:
        return VerifyResult.LOCKED

    if profile.otp_hash is None or profile.otp_expires_at is None:
        result = VerifyResult.INVALID_CODE
    elif profile.otp_expires_at <= now:
        result = VerifyResult.EXPIRED
    elif not code_matches:
        result = VerifyResult.INVALID_CODE
    else:
        profile.otp_hash = None
        profile.otp_expires_at = None
        profile.otp_attempts = 0
        profile.verified = True
        profile.updated_at = now
        return VerifyResult.SUCCESS

    profile.otp_attempts += 1
    profile.updated_at = now
    return result


def record_order(profile: Profile, order_id: str, now: datetime) -> None:
    """Remember the gateway correlation id of the latest order/intent."""
    profile.provider_order_id = order_id
    profile.updated_at = now


def mark_paid(profile: Profile, payment_id: str, now: datetime) -> bool:
    """
    Transition the profile to PAID.

    Idempotent: an already-PAID profile keeps its original payment_id.

    Returns:
        True if the profile changed, False if it was already PAID

    Raises:
        PaymentNotRequired: Profile holds a free slot
    """
    if profile.payment_status == PaymentStatus.PAID:
        return False
    if profile.payment_status == PaymentStatus.FREE:
        raise PaymentNotRequired("User holds a free slot; no payment required")
    profile.payment_status = PaymentStatus.PAID
    profile.payment_id = payment_id
    profile.updated_at = now
    return True
