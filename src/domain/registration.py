"""
Registration domain service - entry point of the signup flow.

This module composes validation, the registration state machine, the
slot allocator and the OTP verifier for each registration submission.

Registration State Machine
==========================

    UNREGISTERED          -> CREATE          (201, profile + first OTP)
    PENDING_VERIFICATION  -> REISSUE_OTP     (200, cooldown applies)
    AWAITING_PAYMENT      -> RESUME_PAYMENT  (200, no mutation)
    FREE / PAID           -> ConflictError   (409, no mutation, verified or not)

Note: Email uniqueness is enforced by the repository (UNIQUE constraint).
Losing a concurrent insert race re-reads the winner's record and applies
the state machine to it, so a double-submitted form never produces two
profiles.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .exceptions import StoreError
from .models import Profile, ProfileFields
from .otp import OtpVerifier, utcnow
from .ports import ProfileRepository
from .slots import SlotAllocator
from .states import RegisterAction, on_register
from .validation import validate_profile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistrationOutcome:
    """
    Result of a registration submission.

    created: a new profile was stored
    otp_sent: an OTP was issued and the email sender accepted it
    """

    profile: Profile
    created: bool
    otp_sent: bool


@dataclass
class RegistrationService:
    """
    Domain service for user registration.

    Orchestrates the registration flow: validation, email normalization,
    free-slot allocation, OTP issuance and profile persistence.
    """

    repository: ProfileRepository
    otp_verifier: OtpVerifier
    slot_allocator: SlotAllocator
    clock: Callable[[], datetime] = field(default=utcnow)

    def register(self, data: Mapping[str, Any]) -> RegistrationOutcome:
        """
        Register a user, or resume an unfinished registration.

        Args:
            data: Profile field values keyed by ProfileFields attribute name

        Returns:
            RegistrationOutcome describing the stored profile

        Raises:
            ValidationError: One or more fields violate their bounds
            ConflictError: Email already FREE or PAID
            RateLimitError: OTP reissue requested within the cooldown
        """
        fields = validate_profile(data)
        existing = self.repository.get_by_email(fields.email)
        action = on_register(existing)

        if action == RegisterAction.CREATE:
            outcome = self._create(fields)
            if outcome is not None:
                return outcome
            # Lost the insert race; apply the state machine to the winner
            existing = self.repository.get_by_email(fields.email)
            if existing is None:
                raise StoreError("Profile vanished after email conflict")
            action = on_register(existing)

        if action == RegisterAction.REISSUE_OTP:
            dispatch = self.otp_verifier.issue(existing)
            return RegistrationOutcome(
                profile=dispatch.profile, created=False, otp_sent=dispatch.delivered
            )

        logger.info("Resuming payment for %s", existing.email)
        return RegistrationOutcome(profile=existing, created=False, otp_sent=False)

    def _create(self, fields: ProfileFields) -> RegistrationOutcome | None:
        now = self.clock()
        code, grant = self.otp_verifier.new_grant(now)

        profile = self.repository.create(fields, grant, self.slot_allocator.decide, now)
        if profile is None:
            return None

        logger.info(
            "Registered %s (gender=%s, status=%s)",
            profile.email,
            profile.gender,
            profile.payment_status.value,
        )
        otp_sent = self.otp_verifier.dispatch(profile.email, code)
        return RegistrationOutcome(profile=profile, created=True, otp_sent=otp_sent)
