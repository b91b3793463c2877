"""Money arithmetic for cart lines, order groups and coupons.

All amounts are computed with ``Decimal`` and rounded half-up to cents, then
handed back as floats because that is how Protean ``Float`` fields store them.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from ordering.errors import InvalidInput

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def _dec(value) -> Decimal:
    return Decimal(str(value or 0))


def round_money(value) -> float:
    return float(_dec(value).quantize(CENT, rounding=ROUND_HALF_UP))


def unit_price(list_price: float, discount: float = 0.0) -> float:
    """Effective unit price after a percentage discount.

    ``unit = list_price × (1 − discount/100)``; a discount outside 0..100 is
    rejected rather than clamped.
    """
    if discount is None:
        discount = 0.0
    if discount < 0 or discount > 100:
        raise InvalidInput({"discount": [f"Discount must be between 0 and 100, got {discount}"]})
    if list_price is None or list_price < 0:
        raise InvalidInput({"price": ["List price must be zero or positive"]})

    price = _dec(list_price)
    return round_money(price - price * _dec(discount) / HUNDRED)


def line_total(price: float, quantity: int) -> float:
    return round_money(_dec(price) * quantity)


def line_shipping_fee(fee_per_item: float, fee_for_additional_item: float, quantity: int) -> float:
    """Shipping for one cart line: the first unit at the full rate, the rest at the additional rate."""
    if quantity < 1:
        return 0.0
    return round_money(_dec(fee_per_item) + _dec(fee_for_additional_item) * (quantity - 1))


def percentage_of(amount: float, percent: float) -> float:
    return round_money(_dec(amount) * _dec(percent) / HUNDRED)


def money_sum(values: Iterable[float]) -> float:
    return round_money(sum((_dec(v) for v in values), Decimal("0")))


def to_cents(value) -> int:
    return int(_dec(value).quantize(CENT, rounding=ROUND_HALF_UP) * HUNDRED)


def from_cents(cents: int) -> float:
    return float(Decimal(cents) / HUNDRED)
