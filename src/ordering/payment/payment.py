"""PaymentRecord aggregate — proof that an order was paid.

The processor's transaction reference is unique, which is what makes order
materialization idempotent: a reference that already has a record has already
produced its order.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Float, Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering


class PaymentRecordStatus(Enum):
    COMPLETED = "Completed"
    REFUNDED = "Refunded"


@ordering.aggregate
class PaymentRecord:
    order_id = Identifier(required=True)
    shopper_id = Identifier(required=True)
    transaction_ref = String(required=True, max_length=255, unique=True)
    payment_method = String(max_length=50, default="Stripe")
    amount = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="eur")
    status = String(choices=PaymentRecordStatus, default=PaymentRecordStatus.COMPLETED.value)
    recorded_at = DateTime()

    @classmethod
    def completed(cls, order, transaction_ref, amount, currency, payment_method="Stripe"):
        return cls(
            order_id=str(order.id),
            shopper_id=str(order.shopper_id),
            transaction_ref=transaction_ref,
            payment_method=payment_method,
            amount=amount,
            currency=currency,
            status=PaymentRecordStatus.COMPLETED.value,
            recorded_at=datetime.now(UTC),
        )


def find_by_transaction(transaction_ref) -> PaymentRecord | None:
    repo = current_domain.repository_for(PaymentRecord)
    results = repo._dao.query.filter(transaction_ref=transaction_ref).all().items
    return results[0] if results else None
