"""Payment gateway adapters - Razorpay and Stripe implementations."""

from .razorpay_gateway import RazorpayGateway
from .stripe_gateway import StripeGateway

__all__ = ["RazorpayGateway", "StripeGateway"]
