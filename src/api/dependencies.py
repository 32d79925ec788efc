"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from functools import lru_cache

from fastapi import Depends, Request
from psycopg_pool import ConnectionPool

from src.adapters.payments.razorpay_gateway import RazorpayGateway
from src.adapters.payments.stripe_gateway import StripeGateway
from src.adapters.repository.postgres import PostgresProfileRepository
from src.adapters.smtp.brevo import BrevoEmailSender
from src.adapters.smtp.console import ConsoleEmailSender
from src.config.settings import Settings, get_settings
from src.domain.otp import OtpVerifier
from src.domain.payments import PaymentService
from src.domain.ports import EmailSender, PaymentGateway
from src.domain.registration import RegistrationService
from src.domain.slots import SlotAllocator


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_repository(request: Request) -> PostgresProfileRepository:
    """Create repository with connection pool from app state."""
    pool = get_pool(request)
    return PostgresProfileRepository(pool)


@lru_cache
def get_email_sender() -> EmailSender:
    """
    Get the configured email sender (singleton).

    EMAIL_BACKEND=brevo requires BREVO_API_KEY; without it the console
    sender is used.
    """
    settings = get_settings()
    if settings.email_backend == "brevo" and settings.brevo_api_key:
        return BrevoEmailSender(
            api_key=settings.brevo_api_key,
            sender_email=settings.brevo_sender_email,
            sender_name=settings.brevo_sender_name,
            ttl_minutes=settings.otp_ttl_seconds // 60,
        )
    return ConsoleEmailSender()


@lru_cache
def get_payment_gateway() -> PaymentGateway:
    """Get the gateway selected by PAYMENT_GATEWAY (singleton)."""
    settings = get_settings()
    if settings.payment_gateway == "stripe":
        return StripeGateway(secret_key=settings.stripe_secret_key)
    return RazorpayGateway(
        key_id=settings.razorpay_key_id,
        key_secret=settings.razorpay_key_secret,
    )


def get_otp_verifier(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> OtpVerifier:
    """Create OTP verifier wired to the repository and email sender."""
    return OtpVerifier(
        repository=get_repository(request),
        email_sender=get_email_sender(),
        ttl_seconds=settings.otp_ttl_seconds,
        cooldown_seconds=settings.otp_cooldown_seconds,
        max_attempts=settings.otp_max_attempts,
        bcrypt_cost=settings.bcrypt_cost,
    )


def get_slot_allocator(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> SlotAllocator:
    """Create slot allocator with the configured free-slot quota."""
    return SlotAllocator(
        repository=get_repository(request),
        free_slot_limit=settings.free_slot_limit,
    )


def get_registration_service(
    request: Request,
    otp_verifier: OtpVerifier = Depends(get_otp_verifier),
    slot_allocator: SlotAllocator = Depends(get_slot_allocator),
) -> RegistrationService:
    """
    Create registration service with injected dependencies.

    Wires together the repository, OTP verifier and slot allocator.
    """
    return RegistrationService(
        repository=get_repository(request),
        otp_verifier=otp_verifier,
        slot_allocator=slot_allocator,
    )


def get_payment_service(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> PaymentService:
    """Create payment service for the active gateway."""
    return PaymentService(
        repository=get_repository(request),
        gateway=get_payment_gateway(),
        amount=settings.payment_amount,
    )
