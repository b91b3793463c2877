"""StockRecord aggregate — quantity, list price and discount for one variant size.

The record's identity is the size id, so carts address stock by
``(variant_id, size_id)`` and the materializer decrements it by ``size_id``.
"""

from protean.fields import Boolean, Float, Identifier, Integer, String

from ordering.catalogue.events import StockOversold
from ordering.domain import ordering
from ordering.shared import pricing
from ordering.utils.logging import get_logger

logger = get_logger(__name__)


@ordering.aggregate
class StockRecord:
    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    size = String(required=True, max_length=50)
    quantity = Integer(default=0, min_value=0)
    price = Float(required=True, min_value=0.0)
    discount = Float(default=0.0, min_value=0.0, max_value=100.0)
    needs_reconciliation = Boolean(default=False)
    oversold_quantity = Integer(default=0, min_value=0)

    @property
    def effective_price(self) -> float:
        return pricing.unit_price(self.price, self.discount)

    def decrement(self, amount: int) -> None:
        """Remove sold units unconditionally.

        Availability was checked when the units went into a cart; by now the
        sale has been paid for, so a shortfall clamps the record at zero and
        flags it for reconciliation instead of failing.
        """
        if amount <= self.quantity:
            self.quantity -= amount
            return

        shortfall = amount - self.quantity
        logger.warning(
            "Stock oversold, clamping at zero",
            size_id=str(self.id),
            variant_id=str(self.variant_id),
            requested=amount,
            on_hand=self.quantity,
            shortfall=shortfall,
        )
        self.raise_(
            StockOversold(
                size_id=str(self.id),
                variant_id=str(self.variant_id),
                requested=amount,
                on_hand=self.quantity,
                shortfall=shortfall,
            )
        )
        self.quantity = 0
        self.oversold_quantity += shortfall
        self.needs_reconciliation = True
