"""Configurable fake payment gateway for development and testing.

Sessions are recorded instead of created remotely and webhooks are plain JSON
signed with the fixed signature ``test-signature``:

    {"type": "checkout.session.completed",
     "data": {"transaction_ref": "...", "amount": 27.0, "currency": "eur",
              "metadata": {"shopper_id": "...", "cart_id": "..."}}}
"""

import json
from uuid import uuid4

from ordering.errors import ExternalServiceError, InvalidInput
from ordering.gateway.port import CheckoutSession, CompletionEvent, LineItem, PaymentGateway, completion_event_from

TEST_SIGNATURE = "test-signature"
COMPLETED_EVENT = "checkout.session.completed"


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Payment processor unavailable"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Payment processor unavailable") -> None:
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_session(
        self,
        line_items: list[LineItem],
        metadata: dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        self.calls.append(
            {
                "method": "create_session",
                "line_items": list(line_items),
                "metadata": dict(metadata),
                "success_url": success_url,
                "cancel_url": cancel_url,
            }
        )

        if not self.should_succeed:
            raise ExternalServiceError(self.failure_reason)

        session_id = f"fake_cs_{uuid4().hex[:16]}"
        return CheckoutSession(
            session_id=session_id,
            redirect_url=f"https://checkout.fake.test/pay/{session_id}",
        )

    def verify_webhook_signature(self, payload: str, signature: str) -> bool:  # noqa: ARG002
        return signature == TEST_SIGNATURE

    def parse_completion_event(self, payload: str, signature: str) -> CompletionEvent | None:  # noqa: ARG002
        try:
            body = json.loads(payload)
        except ValueError as exc:
            raise InvalidInput({"payload": ["Webhook payload is not valid JSON"]}) from exc

        if not isinstance(body, dict) or body.get("type") != COMPLETED_EVENT:
            return None

        data = body.get("data") or {}
        return completion_event_from(
            transaction_ref=data.get("transaction_ref"),
            metadata=data.get("metadata"),
            amount=data.get("amount"),
            currency=data.get("currency"),
            payment_method=data.get("payment_method", "Stripe"),
        )
