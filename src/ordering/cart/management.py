"""Cart management — opening and clearing a shopper's cart."""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart
from ordering.domain import ordering
from ordering.errors import Unauthorized
from ordering.utils.logging import get_logger

logger = get_logger(__name__)


def require_shopper(shopper_id):
    if not shopper_id:
        raise Unauthorized("A signed-in shopper is required")
    return str(shopper_id)


@ordering.command(part_of="Cart")
class OpenCart:
    """Fetch the shopper's cart, creating an empty one the first time."""

    shopper_id = Identifier()


@ordering.command(part_of="Cart")
class ClearCart:
    shopper_id = Identifier()


@ordering.command_handler(part_of=Cart)
class ManageCartHandler:
    @handle(OpenCart)
    def open_cart(self, command):
        shopper_id = require_shopper(command.shopper_id)
        cart = current_domain.repository_for(Cart).get_or_create(shopper_id)
        return str(cart.id)

    @handle(ClearCart)
    def clear_cart(self, command):
        shopper_id = require_shopper(command.shopper_id)
        repo = current_domain.repository_for(Cart)
        cart = repo.for_shopper(shopper_id)
        cart.clear()
        repo.add(cart)

        logger.info("Cart cleared", cart_id=str(cart.id), shopper_id=shopper_id)
        return str(cart.id)
