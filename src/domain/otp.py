"""
OTP verifier - issue, verify and resend one-time passcodes.

Codes are 6 digits from the secrets module. Only a bcrypt hash of the
current code is stored on the profile; the plaintext exists just long
enough to be handed to the email sender.

Timing Oracle Prevention:
- The bcrypt comparison always runs, against a dummy hash when the
  profile holds no OTP, so response time does not reveal whether a
  code is outstanding.
"""

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import bcrypt

from .exceptions import ExpiredError, InvalidCodeError, NotFoundError, RateLimitError
from .models import OtpGrant, Profile
from .ports import EmailSender, ProfileRepository, VerifyResult
from .states import check_otp, grant_otp
from .validation import normalize_email

logger = logging.getLogger(__name__)

OTP_LENGTH = 6

# Pre-computed bcrypt hash compared against when no OTP is stored.
_DUMMY_OTP_HASH = bcrypt.hashpw(b"no-otp-outstanding", bcrypt.gensalt(10)).decode()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class OtpDispatch:
    """Outcome of issuing an OTP: the updated profile and delivery flag."""

    profile: Profile
    delivered: bool


@dataclass
class OtpVerifier:
    """
    Domain service for email verification codes.

    Cooldown, expiry and the attempt ceiling are enforced by the
    transitions in states.py, applied under the repository's row lock.
    """

    repository: ProfileRepository
    email_sender: EmailSender
    ttl_seconds: int = 600
    cooldown_seconds: int = 60
    max_attempts: int = 5
    bcrypt_cost: int = 10
    clock: Callable[[], datetime] = field(default=utcnow)

    def new_grant(self, now: datetime) -> tuple[str, OtpGrant]:
        """
        Generate a code and the grant that stores it.

        Returns:
            (plaintext code, grant holding its hash and expiry)
        """
        code = self._generate_code()
        grant = OtpGrant(
            code_hash=self._hash_code(code),
            expires_at=now + timedelta(seconds=self.ttl_seconds),
            sent_at=now,
        )
        return code, grant

    def issue(self, profile: Profile) -> OtpDispatch:
        """
        Issue a new OTP for an existing profile and send it.

        Raises:
            RateLimitError: Previous OTP sent within the cooldown window
            NotFoundError: Profile no longer exists
        """
        return self._reissue(profile.email)

    def resend(self, email: str) -> OtpDispatch:
        """
        Issue a new OTP for the profile registered under email.

        Raises:
            NotFoundError: No profile for email
            RateLimitError: Previous OTP sent within the cooldown window
        """
        return self._reissue(normalize_email(email))

    def verify(self, email: str, code: str) -> Profile:
        """
        Check a submitted code against the profile's outstanding OTP.

        Args:
            email: User's email (will be normalized)
            code: Submitted code

        Returns:
            The verified profile

        Raises:
            NotFoundError: No profile for email
            RateLimitError: Attempt ceiling reached; a new OTP is required
            ExpiredError: OTP past its expiry
            InvalidCodeError: Code mismatch or no OTP outstanding
        """
        normalized_email = normalize_email(email)
        now = self.clock()

        def transition(profile: Profile) -> tuple[VerifyResult, Profile]:
            matches = self._code_matches(code, profile.otp_hash)
            return check_otp(profile, matches, now, self.max_attempts), profile

        outcome = self.repository.modify_by_email(normalized_email, transition)
        if outcome is None:
            # Unknown email pays the same bcrypt cost as a known one
            self._code_matches(code, None)
            result, profile = VerifyResult.NOT_FOUND, None
        else:
            result, profile = outcome

        logger.info("OTP verification for %s: %s", normalized_email, result.value)

        if result == VerifyResult.SUCCESS:
            return profile
        if result == VerifyResult.NOT_FOUND:
            raise NotFoundError("User not found")
        if result == VerifyResult.LOCKED:
            raise RateLimitError("Too many failed attempts. Please request a new code")
        if result == VerifyResult.EXPIRED:
            raise ExpiredError("Verification code has expired. Please request a new code")
        raise InvalidCodeError("Invalid verification code")

    def dispatch(self, email: str, code: str) -> bool:
        """
        Hand a code to the email sender.

        Delivery is best-effort: failures are logged and reported as
        False, never raised, and never undo the stored OTP.
        """
        try:
            delivered = bool(self.email_sender.send_verification_code(email, code))
        except Exception:
            logger.exception("OTP delivery to %s raised", email)
            return False
        if not delivered:
            logger.warning("OTP delivery to %s failed", email)
        return delivered

    def _reissue(self, email: str) -> OtpDispatch:
        now = self.clock()
        code, grant = self.new_grant(now)

        def transition(profile: Profile) -> Profile:
            grant_otp(profile, grant, now, self.cooldown_seconds)
            return profile

        profile = self.repository.modify_by_email(email, transition)
        if profile is None:
            raise NotFoundError("User not found")

        logger.info("OTP issued for %s", email)
        return OtpDispatch(profile=profile, delivered=self.dispatch(email, code))

    def _generate_code(self) -> str:
        """
        Generate cryptographically secure 6-digit verification code.

        Returns string to preserve leading zeros.
        """
        return "".join(secrets.choice("0123456789") for _ in range(OTP_LENGTH))

    def _hash_code(self, code: str) -> str:
        return bcrypt.hashpw(code.encode(), bcrypt.gensalt(rounds=self.bcrypt_cost)).decode()

    def _code_matches(self, code: str, code_hash: str | None) -> bool:
        stored = code_hash if code_hash is not None else _DUMMY_OTP_HASH
        # bcrypt rejects inputs over 72 bytes; no such input can be a valid code
        candidate = code if len(code) == OTP_LENGTH else ""
        # bcrypt.checkpw is constant-time; run it even without a stored hash
        matches = bcrypt.checkpw(candidate.encode(), stored.encode())
        return matches and code_hash is not None
