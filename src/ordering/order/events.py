"""Domain events for Order and OrderGroup."""

from protean.fields import Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A paid checkout was turned into an order."""

    __version__ = 1

    order_id = Identifier(required=True)
    shopper_id = Identifier(required=True)
    transaction_ref = String(required=True)
    total = Float(required=True)
    currency = String(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    """The order's overall status followed its groups."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)


@ordering.event(part_of="OrderGroup")
class OrderGroupOpened:
    """One store's share of an order was created."""

    __version__ = 1

    group_id = Identifier(required=True)
    order_id = Identifier(required=True)
    store_id = Identifier(required=True)
    item_count = Integer(required=True)
    total = Float(required=True)


@ordering.event(part_of="OrderGroup")
class OrderGroupStatusChanged:
    __version__ = 1

    group_id = Identifier(required=True)
    order_id = Identifier(required=True)
    store_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)


@ordering.event(part_of="OrderGroup")
class OrderItemStatusChanged:
    __version__ = 1

    group_id = Identifier(required=True)
    item_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
