"""Order materialization — turn a paid checkout into orders.

Triggered by a verified "checkout completed" event. Everything below runs in
the command handler's unit of work, so the order, its per-store groups, the
stock decrements, sales counters, payment record and cart teardown commit
together or not at all.

The transaction reference is the idempotency key: a reference that already
has a PaymentRecord returns the existing order and writes nothing.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart
from ordering.catalogue.inventory import SoldLine, record_sales
from ordering.catalogue.store import (
    DEFAULT_DELIVERY_MAX_DAYS,
    DEFAULT_DELIVERY_MIN_DAYS,
    DEFAULT_SHIPPING_SERVICE,
    Store,
)
from ordering.domain import ordering
from ordering.errors import MaterializationFailure
from ordering.order.failures import CompletionFailure, find_failure
from ordering.order.order import Order, OrderGroup, ShippingSnapshot
from ordering.payment.payment import PaymentRecord, find_by_transaction
from ordering.shipping.address import default_address_for
from ordering.utils.logging import get_logger

logger = get_logger(__name__)


@ordering.command(part_of="Order")
class MaterializeOrder:
    transaction_ref = String(required=True, max_length=255)
    shopper_id = Identifier(required=True)
    cart_id = Identifier(required=True)
    amount = Float(required=True, min_value=0.0)
    currency = String(required=True, max_length=3)
    payment_method = String(max_length=50, default="Stripe")


def store_snapshot(store_id) -> tuple[str | None, ShippingSnapshot]:
    """Name and shipping promise for a group, falling back to defaults for a vanished store."""
    try:
        store = current_domain.repository_for(Store).get(str(store_id))
    except ObjectNotFoundError:
        logger.warning("Store no longer exists, using default shipping", store_id=str(store_id))
        return None, ShippingSnapshot(
            service=DEFAULT_SHIPPING_SERVICE,
            delivery_min_days=DEFAULT_DELIVERY_MIN_DAYS,
            delivery_max_days=DEFAULT_DELIVERY_MAX_DAYS,
        )

    if not store.is_active:
        logger.warning("Materializing order for a disabled store", store_id=str(store_id))

    return store.name, ShippingSnapshot(
        service=store.default_shipping_service or DEFAULT_SHIPPING_SERVICE,
        delivery_min_days=store.delivery_min_days,
        delivery_max_days=store.delivery_max_days,
    )


def _load_cart(command) -> Cart:
    try:
        cart = current_domain.repository_for(Cart).get(command.cart_id)
    except ObjectNotFoundError as exc:
        raise MaterializationFailure(
            f"Cart {command.cart_id} no longer exists",
            retryable=False,
            transaction_ref=command.transaction_ref,
        ) from exc

    if str(cart.shopper_id) != str(command.shopper_id):
        raise MaterializationFailure(
            f"Cart {command.cart_id} does not belong to shopper {command.shopper_id}",
            retryable=False,
            transaction_ref=command.transaction_ref,
        )
    if cart.is_empty:
        raise MaterializationFailure(
            f"Cart {command.cart_id} is empty; the event is stale or a duplicate",
            retryable=False,
            transaction_ref=command.transaction_ref,
        )
    return cart


@ordering.command_handler(part_of=Order)
class MaterializeOrderHandler:
    @handle(MaterializeOrder)
    def materialize_order(self, command):
        existing = find_by_transaction(command.transaction_ref)
        if existing is not None:
            logger.info(
                "Duplicate completion event ignored",
                transaction_ref=command.transaction_ref,
                order_id=str(existing.order_id),
            )
            return {"order_id": str(existing.order_id), "group_ids": [], "duplicate": True}

        cart = _load_cart(command)

        address = default_address_for(command.shopper_id)
        if address is None:
            raise MaterializationFailure(
                f"Shopper {command.shopper_id} has no default shipping address",
                retryable=True,
                transaction_ref=command.transaction_ref,
            )

        order = Order.place(
            cart,
            address,
            transaction_ref=command.transaction_ref,
            currency=command.currency,
            payment_method=command.payment_method or "Stripe",
        )

        group_repo = current_domain.repository_for(OrderGroup)
        group_ids = []
        for store_id, lines in cart.items_by_store().items():
            coupon_code = cart.coupon.code if cart.coupon and str(cart.coupon.store_id) == store_id else None
            group = OrderGroup.open(
                order,
                store_snapshot(store_id),
                lines,
                discount=cart.store_discount(store_id),
                coupon_code=coupon_code,
            )
            group_repo.add(group)
            group_ids.append(str(group.id))

        record_sales(
            SoldLine(
                product_id=str(item.product_id),
                variant_id=str(item.variant_id),
                size_id=str(item.size_id),
                quantity=item.quantity,
            )
            for item in cart.items
        )

        if abs(command.amount - cart.total) >= 0.01:
            logger.warning(
                "Charged amount differs from cart total",
                transaction_ref=command.transaction_ref,
                charged=command.amount,
                cart_total=cart.total,
            )

        current_domain.repository_for(PaymentRecord).add(
            PaymentRecord.completed(
                order,
                transaction_ref=command.transaction_ref,
                amount=command.amount,
                currency=command.currency,
                payment_method=command.payment_method or "Stripe",
            )
        )
        current_domain.repository_for(Order).add(order)

        cart.clear()
        current_domain.repository_for(Cart).add(cart)

        failure = find_failure(command.transaction_ref)
        if failure is not None and not failure.resolved:
            failure.resolve()
            current_domain.repository_for(CompletionFailure).add(failure)

        logger.info(
            "Order materialized",
            order_id=str(order.id),
            transaction_ref=command.transaction_ref,
            groups=len(group_ids),
            total=order.total,
        )
        return {"order_id": str(order.id), "group_ids": group_ids, "duplicate": False}
