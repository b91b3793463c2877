"""Cart aggregate (CQRS) — one priced cart per shopper.

Every line snapshots its unit price and the store's shipping rates when it is
added, so later catalogue changes never reprice what the shopper already sees.
The aggregate money fields are derived state: ``recompute_totals`` rewrites them
wholesale after every structural change and nothing else assigns them.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, ValueObject

from ordering.cart.events import (
    CartCleared,
    CartCouponApplied,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
)
from ordering.domain import ordering
from ordering.errors import InvalidInput, NotFound, OutOfStock
from ordering.shared import pricing


@ordering.value_object(part_of="Cart")
class AppliedCoupon:
    code = String(required=True, max_length=50)
    store_id = Identifier(required=True)
    discount = Float(required=True)


@ordering.entity(part_of="Cart")
class CartItem:
    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    size_id = Identifier(required=True)
    store_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    product_slug = String(max_length=255)
    variant_slug = String(max_length=255)
    sku = String(max_length=50)
    image = String(max_length=1024)
    size = String(max_length=50)
    quantity = Integer(required=True, min_value=1)
    price = Float(required=True, min_value=0.0)
    shipping_fee_per_item = Float(default=0.0)
    shipping_fee_for_additional_item = Float(default=0.0)
    shipping_fee = Float(default=0.0)
    total_price = Float(default=0.0)
    added_at = DateTime()

    def reprice(self):
        self.total_price = pricing.line_total(self.price, self.quantity)
        self.shipping_fee = pricing.line_shipping_fee(
            self.shipping_fee_per_item,
            self.shipping_fee_for_additional_item,
            self.quantity,
        )


def _ensure_positive(quantity):
    if quantity is None or quantity < 1:
        raise InvalidInput({"quantity": [f"Quantity must be at least 1, got {quantity}"]})


@ordering.aggregate
class Cart:
    shopper_id = Identifier(required=True, unique=True)
    items = HasMany(CartItem)
    coupon = ValueObject(AppliedCoupon)
    sub_total = Float(default=0.0)
    shipping_fees = Float(default=0.0)
    discount_total = Float(default=0.0)
    total = Float(default=0.0)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, shopper_id):
        now = datetime.now(UTC)
        return cls(
            shopper_id=shopper_id,
            sub_total=0.0,
            shipping_fees=0.0,
            discount_total=0.0,
            total=0.0,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def find_item(self, item_id) -> CartItem:
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise NotFound({"item_id": [f"Item {item_id} is not in this cart"]})
        return item

    def find_line(self, product_id, variant_id, size_id) -> CartItem | None:
        return next(
            (
                i
                for i in self.items
                if str(i.product_id) == str(product_id)
                and str(i.variant_id) == str(variant_id)
                and str(i.size_id) == str(size_id)
            ),
            None,
        )

    def items_by_store(self) -> dict[str, list[CartItem]]:
        """Lines grouped by owning store, in the order each store first appears."""
        groups: dict[str, list[CartItem]] = {}
        for item in self.items:
            groups.setdefault(str(item.store_id), []).append(item)
        return groups

    @property
    def is_empty(self) -> bool:
        return not self.items

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, listing, quantity=1):
        """Add ``quantity`` units of a listing, growing an existing line for the same size.

        The combined quantity is checked against the listing's availability and
        the line takes the listing's current unit price.
        """
        _ensure_positive(quantity)

        existing = self.find_line(listing.product_id, listing.variant_id, listing.size_id)
        combined = quantity + (existing.quantity if existing else 0)
        if combined > listing.available:
            raise OutOfStock(
                {"quantity": [f"Only {listing.available} of {listing.name} ({listing.size}) left in stock"]}
            )

        now = datetime.now(UTC)

        if existing:
            existing.quantity = combined
            existing.price = listing.price
            existing.reprice()
            item = existing
        else:
            item = CartItem(
                product_id=listing.product_id,
                variant_id=listing.variant_id,
                size_id=listing.size_id,
                store_id=listing.store_id,
                name=listing.name,
                product_slug=listing.product_slug,
                variant_slug=listing.variant_slug,
                sku=listing.sku,
                image=listing.image,
                size=listing.size,
                quantity=quantity,
                price=listing.price,
                shipping_fee_per_item=listing.shipping_fee_per_item,
                shipping_fee_for_additional_item=listing.shipping_fee_for_additional_item,
                added_at=now,
            )
            item.reprice()
            self.add_items(item)

        self.recompute_totals()
        self.updated_at = now

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=str(item.id),
                product_id=listing.product_id,
                variant_id=listing.variant_id,
                size_id=listing.size_id,
                quantity=quantity,
                price=listing.price,
            )
        )
        return item

    def update_item_quantity(self, item_id, quantity, available):
        """Set a line's quantity, keeping the unit price it was added at."""
        _ensure_positive(quantity)
        item = self.find_item(item_id)

        if quantity > available:
            raise OutOfStock({"quantity": [f"Only {available} of {item.name} ({item.size}) left in stock"]})

        previous_quantity = item.quantity
        item.quantity = quantity
        item.reprice()

        self.recompute_totals()
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                item_id=str(item.id),
                previous_quantity=previous_quantity,
                new_quantity=quantity,
            )
        )

    def remove_item(self, item_id):
        item = self.find_item(item_id)
        self.remove_items(item)

        self.recompute_totals()
        self.updated_at = datetime.now(UTC)

        self.raise_(CartItemRemoved(cart_id=str(self.id), item_id=str(item_id)))

    def clear(self):
        """Drop every line and the coupon; the cart row itself survives."""
        removed = list(self.items)
        for item in removed:
            self.remove_items(item)
        self.coupon = None

        self.recompute_totals()
        self.updated_at = datetime.now(UTC)

        self.raise_(CartCleared(cart_id=str(self.id), items_removed=len(removed)))

    # -------------------------------------------------------------------
    # Coupons
    # -------------------------------------------------------------------
    def apply_coupon(self, coupon):
        coupon.ensure_redeemable()
        if str(coupon.store_id) not in self.items_by_store():
            raise InvalidInput({"code": [f"Coupon {coupon.code} does not apply to any item in the cart"]})

        self.coupon = AppliedCoupon(code=coupon.code, store_id=str(coupon.store_id), discount=coupon.discount)

        self.recompute_totals()
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartCouponApplied(
                cart_id=str(self.id),
                coupon_code=coupon.code,
                store_id=str(coupon.store_id),
                discount=coupon.discount,
            )
        )

    def store_discount(self, store_id) -> float:
        """Coupon discount attributable to one store's lines (0 for every other store)."""
        if self.coupon is None or str(self.coupon.store_id) != str(store_id):
            return 0.0
        eligible = pricing.money_sum(i.total_price for i in self.items if str(i.store_id) == str(store_id))
        return pricing.percentage_of(eligible, self.coupon.discount)

    # -------------------------------------------------------------------
    # Derived totals
    # -------------------------------------------------------------------
    def recompute_totals(self):
        """Rewrite sub_total, shipping_fees, discount_total and total from the current lines."""
        if self.coupon is not None and str(self.coupon.store_id) not in self.items_by_store():
            # The coupon's store has no lines left
            self.coupon = None

        sub_total = pricing.money_sum(i.total_price for i in self.items)
        shipping_fees = pricing.money_sum(i.shipping_fee for i in self.items)
        discount_total = self.store_discount(self.coupon.store_id) if self.coupon else 0.0

        self.sub_total = sub_total
        self.shipping_fees = shipping_fees
        self.discount_total = discount_total
        self.total = pricing.round_money(sub_total + shipping_fees - discount_total)
