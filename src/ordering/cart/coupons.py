"""Cart coupon management — command and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart
from ordering.cart.management import require_shopper
from ordering.catalogue.coupon import find_coupon
from ordering.domain import ordering
from ordering.errors import NotFound
from ordering.utils.logging import get_logger

logger = get_logger(__name__)


@ordering.command(part_of="Cart")
class ApplyCoupon:
    """Apply a store coupon code to the shopper's cart."""

    shopper_id = Identifier()
    code = String(required=True, max_length=50)


@ordering.command_handler(part_of=Cart)
class ApplyCouponHandler:
    @handle(ApplyCoupon)
    def apply_coupon(self, command):
        shopper_id = require_shopper(command.shopper_id)
        coupon = find_coupon(command.code)
        if coupon is None:
            raise NotFound({"code": [f"Coupon {command.code} does not exist"]})

        repo = current_domain.repository_for(Cart)
        cart = repo.for_shopper(shopper_id)
        cart.apply_coupon(coupon)
        repo.add(cart)

        logger.info("Coupon applied", cart_id=str(cart.id), code=coupon.code, discount_total=cart.discount_total)
        return str(cart.id)
