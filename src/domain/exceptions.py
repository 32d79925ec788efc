"""
Domain exceptions - Semantic error types for registration.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
The API layer maps each type to an HTTP status.
"""


class RegistrationError(Exception):
    """Base class for registration domain errors."""

    pass


class ValidationError(RegistrationError):
    """Profile fields or request input violate documented bounds."""

    def __init__(self, errors: dict[str, str]) -> None:
        super().__init__(", ".join(f"{field}: {message}" for field, message in errors.items()))
        self.errors = errors


class ConflictError(RegistrationError):
    """Email already holds a confirmed (FREE or PAID) registration."""

    pass


class NotFoundError(RegistrationError):
    """No profile for the given email or id."""

    pass


class RateLimitError(RegistrationError):
    """OTP resend cooldown active or verification attempt ceiling reached."""

    def __init__(self, message: str, retry_after: int | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class VerificationFailed(RegistrationError):
    """Submitted OTP did not verify."""

    pass


class ExpiredError(VerificationFailed):
    """OTP exists but its expiry has passed."""

    pass


class InvalidCodeError(VerificationFailed):
    """OTP mismatch, or no OTP outstanding."""

    pass


class PaymentNotRequired(RegistrationError):
    """Profile is already PAID or holds a free slot."""

    pass


class PaymentNotAllowed(RegistrationError):
    """Payment attempted before email verification."""

    pass


class PaymentRejected(RegistrationError):
    """Gateway proof did not verify."""

    pass


class GatewayError(RegistrationError):
    """Payment provider unreachable or misconfigured."""

    pass


class StoreError(RegistrationError):
    """Persistence failure."""

    pass
