"""
Domain layer - Pure business logic with zero framework imports.

This package contains the core business logic for the signup flow:
registration, email verification by OTP, free-slot allocation and
payment confirmation. It defines its own port interfaces for
infrastructure abstraction, ensuring true hexagonal architecture
decoupling.
"""

from .exceptions import (
    ConflictError,
    ExpiredError,
    GatewayError,
    InvalidCodeError,
    NotFoundError,
    PaymentNotAllowed,
    PaymentNotRequired,
    PaymentRejected,
    RateLimitError,
    RegistrationError,
    StoreError,
    ValidationError,
    VerificationFailed,
)
from .models import OtpGrant, PaymentIntent, PaymentStatus, PaymentVerdict, Profile, ProfileFields
from .otp import OtpDispatch, OtpVerifier
from .payments import PaymentConfirmation, PaymentService
from .ports import (
    EmailSender,
    PaymentGateway,
    ProfileRepository,
    RegistrationState,
    VerifyResult,
)
from .registration import RegistrationOutcome, RegistrationService
from .slots import SlotAllocator

__all__ = [
    "ConflictError",
    "EmailSender",
    "ExpiredError",
    "GatewayError",
    "InvalidCodeError",
    "NotFoundError",
    "OtpDispatch",
    "OtpGrant",
    "OtpVerifier",
    "PaymentConfirmation",
    "PaymentGateway",
    "PaymentIntent",
    "PaymentNotAllowed",
    "PaymentNotRequired",
    "PaymentRejected",
    "PaymentService",
    "PaymentStatus",
    "PaymentVerdict",
    "Profile",
    "ProfileFields",
    "ProfileRepository",
    "RateLimitError",
    "RegistrationError",
    "RegistrationOutcome",
    "RegistrationService",
    "RegistrationState",
    "SlotAllocator",
    "StoreError",
    "ValidationError",
    "VerificationFailed",
    "VerifyResult",
]
