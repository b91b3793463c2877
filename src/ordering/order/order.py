"""Order and OrderGroup aggregates (CQRS) — what a paid checkout turns into.

An Order is the shopper-facing record of one payment. Each store represented
in the cart gets its own OrderGroup carrying that store's items, money and
shipping promise, so sellers fulfil and settle their share independently.

Group statuses follow the seller; the order's status rolls up from its groups:
    all groups agree                → order takes that status
    some groups shipped, some not   → PartiallyShipped
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, ValueObject

from ordering.domain import ordering
from ordering.errors import InvalidInput, NotFound
from ordering.order.events import (
    OrderGroupOpened,
    OrderGroupStatusChanged,
    OrderItemStatusChanged,
    OrderPlaced,
    OrderStatusChanged,
)
from ordering.shared import pricing


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    OUT_FOR_DELIVERY = "OutforDelivery"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"
    FAILED = "Failed"
    REFUNDED = "Refunded"
    RETURNED = "Returned"
    PARTIALLY_SHIPPED = "PartiallyShipped"
    ON_HOLD = "OnHold"


class PaymentStatus(Enum):
    PENDING = "Pending"
    PAID = "Paid"
    FAILED = "Failed"
    DECLINED = "Declined"
    CANCELLED = "Cancelled"
    REFUNDED = "Refunded"
    PARTIALLY_REFUNDED = "PartiallyRefunded"
    CHARGEBACK = "Chargeback"


class ItemStatus(Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    READY_FOR_SHIPMENT = "ReadyForShipment"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELED = "Canceled"
    RETURNED = "Returned"
    REFUNDED = "Refunded"
    FAILED_DELIVERY = "FailedDelivery"
    ON_HOLD = "OnHold"
    BACKORDERED = "Backordered"
    PARTIALLY_SHIPPED = "PartiallyShipped"
    EXCHANGE_REQUESTED = "ExchangeRequested"
    AWAITING_PICKUP = "AwaitingPickup"


_FINAL_STATUSES = {OrderStatus.CANCELLED, OrderStatus.REFUNDED}

_SHIPPED_STATUSES = {
    OrderStatus.SHIPPED,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
    OrderStatus.PARTIALLY_SHIPPED,
}


def parse_status(enum_cls, value):
    try:
        return enum_cls(value)
    except ValueError as exc:
        allowed = ", ".join(s.value for s in enum_cls)
        raise InvalidInput({"status": [f"Unknown status {value!r}; expected one of {allowed}"]}) from exc


def rolled_up_status(group_statuses: list[str]) -> OrderStatus | None:
    """The order status implied by its groups, or None when they imply no change."""
    statuses = {OrderStatus(s) for s in group_statuses}
    if len(statuses) == 1:
        return statuses.pop()
    if statuses & _SHIPPED_STATUSES:
        return OrderStatus.PARTIALLY_SHIPPED
    return None


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class Destination:
    """Where the order ships, copied from the shopper's default address at checkout."""

    recipient = String(required=True, max_length=255)
    phone = String(max_length=30)
    address1 = String(required=True, max_length=255)
    address2 = String(max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    zip_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)


@ordering.value_object(part_of="OrderGroup")
class ShippingSnapshot:
    service = String(required=True, max_length=255)
    delivery_min_days = Integer(default=0)
    delivery_max_days = Integer(default=0)


# ---------------------------------------------------------------------------
# Order
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    shopper_id = Identifier(required=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_method = String(max_length=50, default="Stripe")
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    transaction_ref = String(required=True, max_length=255)
    shipping_address_id = Identifier(required=True)
    destination = ValueObject(Destination)
    sub_total = Float(default=0.0)
    shipping_fees = Float(default=0.0)
    discount_total = Float(default=0.0)
    total = Float(default=0.0)
    currency = String(max_length=3, default="eur")
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def place(cls, cart, address, transaction_ref, currency, payment_method="Stripe"):
        """Create a paid order from the cart's current totals."""
        now = datetime.now(UTC)
        order = cls(
            shopper_id=str(cart.shopper_id),
            status=OrderStatus.PENDING.value,
            payment_method=payment_method,
            payment_status=PaymentStatus.PAID.value,
            transaction_ref=transaction_ref,
            shipping_address_id=str(address.id),
            destination=Destination(
                recipient=f"{address.first_name} {address.last_name}",
                phone=address.phone,
                address1=address.address1,
                address2=address.address2,
                city=address.city,
                state=address.state,
                zip_code=address.zip_code,
                country=address.country,
            ),
            sub_total=cart.sub_total,
            shipping_fees=cart.shipping_fees,
            discount_total=cart.discount_total,
            total=cart.total,
            currency=currency,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                shopper_id=str(cart.shopper_id),
                transaction_ref=transaction_ref,
                total=cart.total,
                currency=currency,
            )
        )
        return order

    def follow_groups(self, group_statuses: list[str]) -> None:
        target = rolled_up_status(group_statuses)
        if target is None or target.value == self.status:
            return

        previous = self.status
        self.status = target.value
        self.updated_at = datetime.now(UTC)
        self.raise_(OrderStatusChanged(order_id=str(self.id), previous_status=previous, new_status=target.value))


# ---------------------------------------------------------------------------
# OrderGroup
# ---------------------------------------------------------------------------
@ordering.entity(part_of="OrderGroup")
class OrderItem:
    """An immutable copy of one cart line; only its status moves afterwards."""

    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    size_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    product_slug = String(max_length=255)
    variant_slug = String(max_length=255)
    sku = String(max_length=50)
    image = String(max_length=1024)
    size = String(max_length=50)
    quantity = Integer(required=True, min_value=1)
    price = Float(required=True, min_value=0.0)
    shipping_fee = Float(default=0.0)
    total_price = Float(required=True, min_value=0.0)
    status = String(choices=ItemStatus, default=ItemStatus.PENDING.value)


@ordering.aggregate
class OrderGroup:
    order_id = Identifier(required=True)
    shopper_id = Identifier(required=True)
    store_id = Identifier(required=True)
    store_name = String(max_length=255)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    shipping = ValueObject(ShippingSnapshot)
    coupon_code = String(max_length=50)
    items = HasMany(OrderItem)
    sub_total = Float(default=0.0)
    shipping_fees = Float(default=0.0)
    discount = Float(default=0.0)
    total = Float(default=0.0)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def open(cls, order, store_snapshot, cart_items, discount=0.0, coupon_code=None):
        """One store's share of ``order``, built from that store's cart lines.

        ``store_snapshot`` is a ``(store_name, ShippingSnapshot)`` pair resolved
        by the caller, so a store that disappeared since the lines were added
        still yields a group.
        """
        store_name, shipping = store_snapshot
        now = datetime.now(UTC)

        sub_total = pricing.money_sum(i.total_price for i in cart_items)
        shipping_fees = pricing.money_sum(i.shipping_fee for i in cart_items)

        group = cls(
            order_id=str(order.id),
            shopper_id=str(order.shopper_id),
            store_id=str(cart_items[0].store_id),
            store_name=store_name,
            status=OrderStatus.PENDING.value,
            shipping=shipping,
            coupon_code=coupon_code,
            sub_total=sub_total,
            shipping_fees=shipping_fees,
            discount=discount,
            total=pricing.round_money(sub_total + shipping_fees - discount),
            created_at=now,
            updated_at=now,
        )
        for line in cart_items:
            group.add_items(
                OrderItem(
                    product_id=str(line.product_id),
                    variant_id=str(line.variant_id),
                    size_id=str(line.size_id),
                    name=line.name,
                    product_slug=line.product_slug,
                    variant_slug=line.variant_slug,
                    sku=line.sku,
                    image=line.image,
                    size=line.size,
                    quantity=line.quantity,
                    price=line.price,
                    shipping_fee=line.shipping_fee,
                    total_price=line.total_price,
                    status=ItemStatus.PENDING.value,
                )
            )

        group.raise_(
            OrderGroupOpened(
                group_id=str(group.id),
                order_id=str(order.id),
                store_id=group.store_id,
                item_count=len(cart_items),
                total=group.total,
            )
        )
        return group

    def update_status(self, status):
        target = parse_status(OrderStatus, status)
        current = OrderStatus(self.status)
        if current in _FINAL_STATUSES and target != current:
            raise InvalidInput({"status": [f"Order group is already {current.value}"]})

        self.status = target.value
        self.updated_at = datetime.now(UTC)
        self.raise_(
            OrderGroupStatusChanged(
                group_id=str(self.id),
                order_id=str(self.order_id),
                store_id=str(self.store_id),
                previous_status=current.value,
                new_status=target.value,
            )
        )

    def update_item_status(self, item_id, status):
        target = parse_status(ItemStatus, status)
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise NotFound({"item_id": [f"Item {item_id} is not part of order group {self.id}"]})

        previous = item.status
        item.status = target.value
        self.updated_at = datetime.now(UTC)
        self.raise_(
            OrderItemStatusChanged(
                group_id=str(self.id),
                item_id=str(item.id),
                previous_status=previous,
                new_status=target.value,
            )
        )
