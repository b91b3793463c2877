"""Cart item management — commands and handler."""

from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart
from ordering.cart.management import require_shopper
from ordering.catalogue.inventory import get_listing, get_stock
from ordering.domain import ordering
from ordering.errors import NotFound
from ordering.utils.logging import get_logger

logger = get_logger(__name__)


@ordering.command(part_of="Cart")
class AddToCart:
    shopper_id = Identifier()
    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    size_id = Identifier(required=True)
    quantity = Integer(default=1)


@ordering.command(part_of="Cart")
class UpdateCartQuantity:
    shopper_id = Identifier()
    item_id = Identifier(required=True)
    quantity = Integer(required=True)


@ordering.command(part_of="Cart")
class RemoveFromCart:
    shopper_id = Identifier()
    item_id = Identifier(required=True)


@ordering.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        shopper_id = require_shopper(command.shopper_id)
        listing = get_listing(command.product_id, command.variant_id, command.size_id)

        repo = current_domain.repository_for(Cart)
        cart = repo.for_shopper(shopper_id)
        item = cart.add_item(listing, quantity=command.quantity)
        repo.add(cart)

        logger.info(
            "Item added to cart",
            cart_id=str(cart.id),
            item_id=str(item.id),
            size_id=listing.size_id,
            quantity=command.quantity,
        )
        return str(cart.id)

    @handle(UpdateCartQuantity)
    def update_cart_quantity(self, command):
        shopper_id = require_shopper(command.shopper_id)
        repo = current_domain.repository_for(Cart)
        cart = repo.find_by_shopper(shopper_id)
        if cart is None:
            raise NotFound({"item_id": [f"Item {command.item_id} is not in this cart"]})

        item = cart.find_item(command.item_id)
        stock = get_stock(item.variant_id, item.size_id)
        cart.update_item_quantity(command.item_id, command.quantity, available=stock.quantity)
        repo.add(cart)

        logger.info(
            "Cart quantity updated",
            cart_id=str(cart.id),
            item_id=str(command.item_id),
            quantity=command.quantity,
        )
        return str(cart.id)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        shopper_id = require_shopper(command.shopper_id)
        repo = current_domain.repository_for(Cart)
        cart = repo.find_by_shopper(shopper_id)
        if cart is None:
            raise NotFound({"item_id": [f"Item {command.item_id} is not in this cart"]})

        cart.remove_item(command.item_id)
        repo.add(cart)

        logger.info("Item removed from cart", cart_id=str(cart.id), item_id=str(command.item_id))
        return str(cart.id)
