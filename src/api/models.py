"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
JSON fields are camelCase on the wire (``userId``, ``paymentStatus``).

Registration fields are only typed here; their bounds are enforced by the
domain's validate_profile so that every violated field is reported in a
single 400 response.
"""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.domain.models import PaymentStatus


class ApiModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterRequest(ApiModel):
    """Request model for registration."""

    name: str = Field(..., description="Full name (2-100 characters)")
    age: int = Field(..., description="Age (18-100)")
    gender: str = Field(..., description="Male, Female, or Other")
    interested_in: str = Field(..., description="Male, Female, or Any")
    college: str = Field(..., description="College name (1-100 characters)")
    email: str = Field(..., description="Email address; receives the verification code")
    relationship_goal: str = Field(..., description="Casual, Serious, or Marriage")
    description: str = Field(..., description="Self description (50-1000 characters)")
    preferences: str = Field(..., description="Partner preferences (50-1000 characters)")
    interests: str = Field(..., description="Yes or No")


class RegisterResponse(ApiModel):
    """Response model for registration (new or resumed)."""

    message: str
    user_id: str
    email: str
    payment_status: PaymentStatus
    verified: bool
    otp_sent: bool


class VerifyOtpRequest(ApiModel):
    """Request model for OTP verification."""

    email: str
    # Malformed codes are checked like any other so they count as attempts
    otp: str = Field(..., description="6-digit verification code")


class VerifyOtpResponse(ApiModel):
    """Response model for successful verification."""

    message: str
    user_id: str
    email: str
    payment_status: PaymentStatus
    verified: bool


class ResendOtpRequest(ApiModel):
    """Request model for OTP resend."""

    email: str


class ResendOtpResponse(ApiModel):
    """Response model for OTP resend."""

    message: str
    email: str
    otp_sent: bool


class CreateOrderRequest(ApiModel):
    """Request model for payment order creation."""

    user_id: UUID
    amount: float | None = Field(
        None,
        description="Informational; the configured registration fee is always charged",
    )


class CreateOrderResponse(ApiModel):
    """Response model for payment order creation."""

    message: str
    gateway: str
    order_id: str
    amount: float
    currency: str
    client_secret: str | None = None


class VerifyPaymentRequest(ApiModel):
    """
    Request model for payment verification.

    Besides userId the body carries the gateway proof:
    - Razorpay: razorpay_order_id, razorpay_payment_id, razorpay_signature
    - Stripe: paymentIntentId
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    user_id: UUID


class VerifyPaymentResponse(ApiModel):
    """Response model for successful payment verification."""

    message: str
    user_id: str
    payment_status: PaymentStatus
    payment_id: str | None


class UserStatusResponse(ApiModel):
    """Response model for registration status lookup."""

    user_id: str
    email: str
    name: str
    verified: bool
    payment_status: PaymentStatus


class SlotAvailabilityResponse(ApiModel):
    """Response model for free-slot availability."""

    gender: str
    free_slot_limit: int
    remaining: int


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str


class ValidationErrorResponse(BaseModel):
    """Error response listing every violated field."""

    detail: str
    errors: dict[str, str]
