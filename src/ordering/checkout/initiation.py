"""Checkout initiation — freeze the cart into a payment session.

Nothing is reserved or written here: the cart stays editable, and the order is
only created once the processor reports the session as paid.
"""

import os

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart
from ordering.cart.management import require_shopper
from ordering.domain import ordering
from ordering.errors import CartMismatch, EmptyCart
from ordering.gateway import get_gateway
from ordering.gateway.port import LineItem
from ordering.shared import pricing
from ordering.utils.logging import get_logger

logger = get_logger(__name__)


def storefront_url() -> str:
    return os.getenv("STOREFRONT_URL", "http://localhost:3000").rstrip("/")


def success_url() -> str:
    return f"{storefront_url()}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}"


def cancel_url() -> str:
    return f"{storefront_url()}/checkout/cancel"


def _coupon_parts(cart: Cart, store_id: str) -> dict[str, list[tuple[int, int]]]:
    """``(unit cents, quantity)`` parts for each line of the coupon's store.

    Discounting every unit and rounding it can drift from the discount the cart
    takes off the store's sub total. The remainder is spread one cent per unit,
    from the last line backwards, so the parts add up to exactly what the cart
    charges for that store.
    """
    lines = [i for i in cart.items if str(i.store_id) == store_id]
    units = [pricing.to_cents(pricing.unit_price(i.price, cart.coupon.discount)) for i in lines]

    sub_total = pricing.money_sum(i.total_price for i in lines)
    target = pricing.to_cents(sub_total) - pricing.to_cents(cart.store_discount(store_id))
    remainder = target - sum(unit * item.quantity for unit, item in zip(units, lines))

    parts = {str(item.id): [(unit, item.quantity)] for unit, item in zip(units, lines)}
    step = 1 if remainder > 0 else -1
    for unit, item in reversed(list(zip(units, lines))):
        if remainder == 0:
            break
        shifted = min(abs(remainder), item.quantity)
        split = [(unit + step, shifted)]
        if item.quantity > shifted:
            split.insert(0, (unit, item.quantity - shifted))
        parts[str(item.id)] = split
        remainder -= step * shifted
    return parts


def line_items_for(cart: Cart) -> list[LineItem]:
    """Cart lines as the processor should charge them.

    A coupon's percentage is folded into the unit amounts of its store's lines
    and shipping is charged as one extra line; the amounts always add up to
    ``cart.total``.
    """
    parts = _coupon_parts(cart, str(cart.coupon.store_id)) if cart.coupon is not None else {}

    line_items = []
    for item in cart.items:
        for unit_cents, quantity in parts.get(str(item.id), [(pricing.to_cents(item.price), item.quantity)]):
            line_items.append(
                LineItem(
                    name=item.name,
                    unit_amount=pricing.from_cents(unit_cents),
                    quantity=quantity,
                    image=item.image,
                    product_id=str(item.product_id),
                    variant_id=str(item.variant_id),
                    size_id=str(item.size_id),
                )
            )

    if cart.shipping_fees:
        line_items.append(LineItem(name="Shipping", unit_amount=cart.shipping_fees, quantity=1))
    return line_items


@ordering.command(part_of="Cart")
class InitiateCheckout:
    shopper_id = Identifier()
    cart_id = Identifier(required=True)


@ordering.command_handler(part_of=Cart)
class InitiateCheckoutHandler:
    @handle(InitiateCheckout)
    def initiate_checkout(self, command):
        shopper_id = require_shopper(command.shopper_id)

        try:
            cart = current_domain.repository_for(Cart).get(command.cart_id)
        except ObjectNotFoundError as exc:
            raise CartMismatch({"cart_id": [f"Cart {command.cart_id} does not belong to this shopper"]}) from exc

        if str(cart.shopper_id) != shopper_id:
            raise CartMismatch({"cart_id": [f"Cart {command.cart_id} does not belong to this shopper"]})
        if cart.is_empty:
            raise EmptyCart({"cart_id": ["Cannot check out an empty cart"]})

        session = get_gateway().create_session(
            line_items=line_items_for(cart),
            metadata={"shopper_id": shopper_id, "cart_id": str(cart.id)},
            success_url=success_url(),
            cancel_url=cancel_url(),
        )

        logger.info(
            "Checkout session created",
            cart_id=str(cart.id),
            shopper_id=shopper_id,
            session_id=session.session_id,
            total=cart.total,
        )
        return {"session_id": session.session_id, "redirect_url": session.redirect_url}
