"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- StripeGateway when STRIPE_API_KEY is configured
- FakeGateway otherwise (development and testing)
"""

import os

from ordering.gateway.fake_adapter import FakeGateway
from ordering.gateway.port import PaymentGateway
from ordering.gateway.stripe_adapter import StripeGateway

_current_gateway: PaymentGateway | None = None


def _gateway_from_env() -> PaymentGateway:
    api_key = os.getenv("STRIPE_API_KEY")
    if api_key:
        return StripeGateway(
            api_key=api_key,
            webhook_secret=os.getenv("STRIPE_WEBHOOK_SECRET", ""),
            currency=os.getenv("CHECKOUT_CURRENCY", "eur"),
        )
    return FakeGateway()


def get_gateway() -> PaymentGateway:
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = _gateway_from_env()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    global _current_gateway
    _current_gateway = None
