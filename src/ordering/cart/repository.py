"""Repository for the Cart aggregate."""

from ordering.cart.cart import Cart
from ordering.domain import ordering


@ordering.repository(part_of=Cart)
class CartRepository:
    def find_by_shopper(self, shopper_id) -> Cart | None:
        results = self._dao.query.filter(shopper_id=str(shopper_id)).all().items
        return results[0] if results else None

    def for_shopper(self, shopper_id) -> Cart:
        """The shopper's cart, or a new unsaved one; callers persist it after mutating."""
        return self.find_by_shopper(shopper_id) or Cart.create(shopper_id=str(shopper_id))

    def get_or_create(self, shopper_id) -> Cart:
        cart = self.find_by_shopper(shopper_id)
        if cart is None:
            cart = Cart.create(shopper_id=str(shopper_id))
            self.add(cart)
        return cart
