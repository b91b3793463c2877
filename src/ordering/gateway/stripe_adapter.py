"""Stripe payment gateway adapter.

Creates hosted Checkout Sessions with the stripe-python SDK and verifies
webhook signatures against the endpoint's signing secret. Amounts cross the
boundary in minor units (cents).
"""

import json

import stripe

from ordering.errors import ExternalServiceError, InvalidInput
from ordering.gateway.port import CheckoutSession, CompletionEvent, LineItem, PaymentGateway, completion_event_from
from ordering.shared import pricing
from ordering.utils.logging import get_logger

logger = get_logger(__name__)

COMPLETED_EVENT = "checkout.session.completed"


def to_minor_units(amount: float) -> int:
    return pricing.to_cents(amount)


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter."""

    def __init__(self, api_key: str, webhook_secret: str, currency: str = "eur") -> None:
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.currency = currency

    def create_session(
        self,
        line_items: list[LineItem],
        metadata: dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        stripe_items = [
            {
                "price_data": {
                    "currency": self.currency,
                    "product_data": {
                        "name": item.name,
                        "images": [item.image] if item.image else [],
                    },
                    "unit_amount": to_minor_units(item.unit_amount),
                },
                "quantity": item.quantity,
            }
            for item in line_items
        ]

        try:
            session = stripe.checkout.Session.create(
                api_key=self.api_key,
                payment_method_types=["card"],
                line_items=stripe_items,
                mode="payment",
                success_url=success_url,
                cancel_url=cancel_url,
                metadata=metadata,
            )
        except stripe.StripeError as exc:
            logger.error("Stripe session creation failed", error=str(exc), cart_id=metadata.get("cart_id"))
            raise ExternalServiceError(f"Stripe rejected the checkout session: {exc}") from exc

        return CheckoutSession(session_id=session.id, redirect_url=session.url)

    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        try:
            stripe.WebhookSignature.verify_header(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError:
            return False
        return True

    def parse_completion_event(self, payload: str, signature: str) -> CompletionEvent | None:  # noqa: ARG002
        try:
            event = json.loads(payload)
        except ValueError as exc:
            raise InvalidInput({"payload": ["Webhook payload is not valid JSON"]}) from exc

        if event.get("type") != COMPLETED_EVENT:
            return None

        session = (event.get("data") or {}).get("object") or {}
        amount_total = session.get("amount_total")
        return completion_event_from(
            transaction_ref=session.get("payment_intent") or session.get("id"),
            metadata=session.get("metadata"),
            amount=amount_total / 100 if isinstance(amount_total, int) else amount_total,
            currency=session.get("currency"),
            payment_method="Stripe",
        )
