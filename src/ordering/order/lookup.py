"""Read-side helpers for showing a shopper their order."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.errors import NotFound
from ordering.order.order import Order, OrderGroup


def order_for_shopper(shopper_id, order_id) -> tuple[Order, list[OrderGroup]]:
    """The order and its groups; another shopper's order is reported as not found."""
    try:
        order = current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError as exc:
        raise NotFound({"order_id": [f"Order {order_id} does not exist"]}) from exc

    if str(order.shopper_id) != str(shopper_id):
        raise NotFound({"order_id": [f"Order {order_id} does not exist"]})

    groups = current_domain.repository_for(OrderGroup)._dao.query.filter(order_id=str(order.id)).all().items
    return order, groups
