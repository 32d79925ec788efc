"""
API v1 routes.

Defines REST endpoints for the signup flow: registration, email
verification by OTP, payment, and status lookups. Domain exceptions are
mapped to HTTP responses by the handlers in src.api.errors.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from src.adapters.repository.postgres import PostgresProfileRepository
from src.api.dependencies import (
    get_otp_verifier,
    get_payment_service,
    get_registration_service,
    get_repository,
    get_slot_allocator,
)
from src.api.models import (
    CreateOrderRequest,
    CreateOrderResponse,
    ErrorResponse,
    RegisterRequest,
    RegisterResponse,
    ResendOtpRequest,
    ResendOtpResponse,
    SlotAvailabilityResponse,
    UserStatusResponse,
    ValidationErrorResponse,
    VerifyOtpRequest,
    VerifyOtpResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)
from src.domain.exceptions import NotFoundError, ValidationError
from src.domain.models import PaymentStatus
from src.domain.otp import OtpVerifier
from src.domain.payments import PaymentService
from src.domain.registration import RegistrationService
from src.domain.slots import SlotAllocator
from src.domain.validation import GENDERS

router = APIRouter(tags=["v1"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        200: {"model": RegisterResponse, "description": "Existing registration resumed"},
        400: {"model": ValidationErrorResponse, "description": "Validation error"},
        409: {"model": ErrorResponse, "description": "Email already registered"},
        429: {"model": ErrorResponse, "description": "Verification code requested too soon"},
    },
    summary="Register a new user",
    description="Submit a profile to begin registration. A 6-digit verification "
    "code is sent to the provided email. Re-submitting for an unverified email "
    "sends a new code; for a verified email with payment outstanding it resumes payment.",
)
async def register(
    request_data: RegisterRequest,
    response: Response,
    service: RegistrationService = Depends(get_registration_service),
) -> RegisterResponse:
    """
    Register a user, or resume an unfinished registration.

    Returns 201 when a profile is created, 200 when an existing one is resumed.
    """
    outcome = service.register(request_data.model_dump())
    profile = outcome.profile

    if outcome.created:
        if profile.payment_status == PaymentStatus.FREE:
            message = "You are eligible for free matching. Verification code sent"
        else:
            message = "Verification code sent. Proceed to payment after verification"
    elif not profile.verified:
        response.status_code = status.HTTP_200_OK
        message = "Registration pending verification. New verification code sent"
    else:
        response.status_code = status.HTTP_200_OK
        message = "User exists with pending payment. Proceed to payment"

    return RegisterResponse(
        message=message,
        user_id=profile.id,
        email=profile.email,
        payment_status=profile.payment_status,
        verified=profile.verified,
        otp_sent=outcome.otp_sent,
    )


@router.post(
    "/verify-otp",
    response_model=VerifyOtpResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid or expired code"},
        404: {"model": ErrorResponse, "description": "User not found"},
        429: {"model": ErrorResponse, "description": "Too many failed attempts"},
    },
    summary="Verify email with OTP",
    description="Submit the 6-digit code received by email. After 5 failed "
    "attempts a new code must be requested.",
)
async def verify_otp(
    request_data: VerifyOtpRequest,
    verifier: OtpVerifier = Depends(get_otp_verifier),
) -> VerifyOtpResponse:
    profile = verifier.verify(request_data.email, request_data.otp)
    return VerifyOtpResponse(
        message="Email verified",
        user_id=profile.id,
        email=profile.email,
        payment_status=profile.payment_status,
        verified=profile.verified,
    )


@router.post(
    "/resend-otp",
    response_model=ResendOtpResponse,
    responses={
        404: {"model": ErrorResponse, "description": "User not found"},
        429: {"model": ErrorResponse, "description": "Verification code requested too soon"},
    },
    summary="Resend verification code",
    description="Issue a new verification code, invalidating the previous one. "
    "Limited to one code per 60 seconds.",
)
async def resend_otp(
    request_data: ResendOtpRequest,
    verifier: OtpVerifier = Depends(get_otp_verifier),
) -> ResendOtpResponse:
    dispatch = verifier.resend(request_data.email)
    return ResendOtpResponse(
        message="Verification code sent",
        email=dispatch.profile.email,
        otp_sent=dispatch.delivered,
    )


@router.post(
    "/create-order",
    response_model=CreateOrderResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Payment not required or not allowed"},
        404: {"model": ErrorResponse, "description": "User not found"},
        500: {"model": ErrorResponse, "description": "Payment gateway failure"},
    },
    summary="Create payment order",
    description="Open an order (Razorpay) or payment intent (Stripe) for the "
    "registration fee.",
)
async def create_order(
    request_data: CreateOrderRequest,
    service: PaymentService = Depends(get_payment_service),
) -> CreateOrderResponse:
    intent = service.create_intent(str(request_data.user_id))
    return CreateOrderResponse(
        message="Payment order created successfully",
        gateway=service.gateway.name,
        order_id=intent.order_id,
        amount=float(intent.amount),
        currency=intent.currency,
        client_secret=intent.client_secret,
    )


@router.post(
    "/verify-payment",
    response_model=VerifyPaymentResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Payment verification failed"},
        404: {"model": ErrorResponse, "description": "User not found"},
        500: {"model": ErrorResponse, "description": "Payment gateway failure"},
    },
    summary="Verify payment",
    description="Submit the gateway's payment proof. Verifying an already-paid "
    "registration succeeds without contacting the gateway.",
)
async def verify_payment(
    request_data: VerifyPaymentRequest,
    service: PaymentService = Depends(get_payment_service),
) -> VerifyPaymentResponse:
    confirmation = service.confirm(str(request_data.user_id), request_data.model_extra or {})
    profile = confirmation.profile
    return VerifyPaymentResponse(
        message="Payment already verified" if confirmation.already_paid else "Payment verified successfully",
        user_id=profile.id,
        payment_status=profile.payment_status,
        payment_id=profile.payment_id,
    )


@router.get(
    "/users/{user_id}",
    response_model=UserStatusResponse,
    responses={404: {"model": ErrorResponse, "description": "User not found"}},
    summary="Get registration status",
)
async def get_user(
    user_id: UUID,
    repository: PostgresProfileRepository = Depends(get_repository),
) -> UserStatusResponse:
    profile = repository.get_by_id(str(user_id))
    if profile is None:
        raise NotFoundError("User not found")
    return UserStatusResponse(
        user_id=profile.id,
        email=profile.email,
        name=profile.name,
        verified=profile.verified,
        payment_status=profile.payment_status,
    )


@router.get(
    "/slots/{gender}",
    response_model=SlotAvailabilityResponse,
    responses={400: {"model": ValidationErrorResponse, "description": "Unknown gender"}},
    summary="Get free-slot availability",
)
async def get_slots(
    gender: str,
    allocator: SlotAllocator = Depends(get_slot_allocator),
) -> SlotAvailabilityResponse:
    if gender not in GENDERS:
        raise ValidationError({"gender": "Gender must be Male, Female, or Other"})
    return SlotAvailabilityResponse(
        gender=gender,
        free_slot_limit=allocator.free_slot_limit,
        remaining=allocator.remaining(gender),
    )
