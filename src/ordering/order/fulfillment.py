"""Seller-side order fulfillment — status updates on a store's order groups.

A seller may only touch groups of stores they own; anything else is reported
as not found so store ownership does not leak.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.catalogue.store import Store
from ordering.domain import ordering
from ordering.errors import NotFound, Unauthorized
from ordering.order.order import Order, OrderGroup
from ordering.utils.logging import get_logger

logger = get_logger(__name__)


@ordering.command(part_of="OrderGroup")
class UpdateOrderGroupStatus:
    seller_id = Identifier()
    store_id = Identifier(required=True)
    group_id = Identifier(required=True)
    status = String(required=True, max_length=50)


@ordering.command(part_of="OrderGroup")
class UpdateOrderItemStatus:
    seller_id = Identifier()
    store_id = Identifier(required=True)
    group_id = Identifier(required=True)
    item_id = Identifier(required=True)
    status = String(required=True, max_length=50)


def _owned_group(command) -> OrderGroup:
    if not command.seller_id:
        raise Unauthorized("A signed-in seller is required")

    try:
        store = current_domain.repository_for(Store).get(command.store_id)
    except ObjectNotFoundError as exc:
        raise NotFound({"store_id": [f"Store {command.store_id} does not exist"]}) from exc
    if str(store.owner_id) != str(command.seller_id):
        raise NotFound({"store_id": [f"Store {command.store_id} does not exist"]})

    try:
        group = current_domain.repository_for(OrderGroup).get(command.group_id)
    except ObjectNotFoundError as exc:
        raise NotFound({"group_id": [f"Order group {command.group_id} does not exist"]}) from exc
    if str(group.store_id) != str(store.id):
        raise NotFound({"group_id": [f"Order group {command.group_id} does not exist"]})
    return group


@ordering.command_handler(part_of=OrderGroup)
class OrderFulfillmentHandler:
    @handle(UpdateOrderGroupStatus)
    def update_group_status(self, command):
        group = _owned_group(command)
        group.update_status(command.status)
        current_domain.repository_for(OrderGroup).add(group)

        siblings = current_domain.repository_for(OrderGroup)._dao.query.filter(order_id=str(group.order_id)).all().items
        statuses = [group.status if str(g.id) == str(group.id) else g.status for g in siblings]

        order_repo = current_domain.repository_for(Order)
        order = order_repo.get(group.order_id)
        order.follow_groups(statuses)
        order_repo.add(order)

        logger.info(
            "Order group status updated",
            group_id=str(group.id),
            order_id=str(group.order_id),
            status=group.status,
            order_status=order.status,
        )
        return str(group.id)

    @handle(UpdateOrderItemStatus)
    def update_item_status(self, command):
        group = _owned_group(command)
        group.update_item_status(command.item_id, command.status)
        current_domain.repository_for(OrderGroup).add(group)

        logger.info(
            "Order item status updated",
            group_id=str(group.id),
            item_id=str(command.item_id),
            status=command.status,
        )
        return str(group.id)
