"""Payment gateway port (abstract interface).

Checkout hands the gateway a frozen list of line items and gets back a hosted
session to redirect the shopper to; the gateway later calls our webhook with a
signed completion event. Adapters: ``FakeGateway`` (dev/test) and
``StripeGateway`` (production).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ordering.errors import InvalidInput


@dataclass(frozen=True)
class LineItem:
    """One cart line as the payment processor should display and charge it."""

    name: str
    unit_amount: float
    quantity: int
    image: str | None = None
    product_id: str | None = None
    variant_id: str | None = None
    size_id: str | None = None


@dataclass(frozen=True)
class CheckoutSession:
    session_id: str
    redirect_url: str


@dataclass(frozen=True)
class CompletionEvent:
    """A verified "checkout completed" notification, narrowed to what materialization needs."""

    transaction_ref: str
    shopper_id: str
    cart_id: str
    amount: float
    currency: str
    payment_method: str = "Stripe"


def completion_event_from(
    transaction_ref, metadata, amount, currency, payment_method="Stripe"
) -> CompletionEvent:
    """Validate loosely-typed processor data into a ``CompletionEvent``.

    Anything missing or malformed is rejected before any record is touched.
    """
    errors: dict[str, list[str]] = {}
    metadata = metadata if isinstance(metadata, dict) else {}

    if not transaction_ref or not isinstance(transaction_ref, str):
        errors["transaction_ref"] = ["A transaction reference is required"]
    for key in ("shopper_id", "cart_id"):
        if not metadata.get(key) or not isinstance(metadata.get(key), str):
            errors[f"metadata.{key}"] = [f"metadata.{key} is required"]
    if isinstance(amount, bool) or not isinstance(amount, (int, float)) or amount < 0:
        errors["amount"] = ["amount must be a non-negative number"]
    if not currency or not isinstance(currency, str):
        errors["currency"] = ["currency is required"]

    if errors:
        raise InvalidInput(errors)

    return CompletionEvent(
        transaction_ref=transaction_ref,
        shopper_id=metadata["shopper_id"],
        cart_id=metadata["cart_id"],
        amount=float(amount),
        currency=currency.lower(),
        payment_method=payment_method or "Stripe",
    )


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_session(
        self,
        line_items: list[LineItem],
        metadata: dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        """Create a hosted checkout session and return where to redirect the shopper."""
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        """Verify that a webhook payload is authentically from the gateway."""
        ...

    @abstractmethod
    def parse_completion_event(self, payload: str, signature: str) -> CompletionEvent | None:
        """Turn a verified webhook payload into a ``CompletionEvent``.

        Returns ``None`` for event types other than a completed checkout.
        """
        ...
