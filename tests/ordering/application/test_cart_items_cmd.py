"""Application tests for cart item commands."""

import pytest
from ordering.cart.cart import Cart
from ordering.cart.items import AddToCart, RemoveFromCart, UpdateCartQuantity
from ordering.catalogue.stock import StockRecord
from ordering.errors import InvalidInput, NotFound, OutOfStock, Unauthorized
from protean import current_domain


def _add(shopper_id, listing, quantity=1):
    command = AddToCart(
        shopper_id=shopper_id,
        product_id=listing["product_id"],
        variant_id=listing["variant_id"],
        size_id=listing["size_id"],
        quantity=quantity,
    )
    return current_domain.process(command, asynchronous=False)


def _cart(shopper_id):
    return current_domain.repository_for(Cart).find_by_shopper(shopper_id)


class TestAddToCartCommand:
    def test_first_add_creates_the_cart(self, shopper_id, listing):
        cart_id = _add(shopper_id, listing, quantity=3)

        cart = current_domain.repository_for(Cart).get(cart_id)
        assert cart.shopper_id == shopper_id
        assert len(cart.items) == 1
        assert cart.items[0].price == 9.0
        assert cart.items[0].total_price == 27.0
        assert cart.sub_total == 27.0

    def test_repeated_adds_share_one_line(self, shopper_id, listing):
        _add(shopper_id, listing, quantity=1)
        _add(shopper_id, listing, quantity=2)

        cart = _cart(shopper_id)
        assert len(cart.items) == 1
        assert cart.items[0].quantity == 3

    def test_second_shopper_gets_a_separate_cart(self, listing):
        first = _add("shopper-a", listing)
        second = _add("shopper-b", listing)
        assert first != second

    def test_adding_more_than_stock_fails(self, shopper_id, listing):
        with pytest.raises(OutOfStock):
            _add(shopper_id, listing, quantity=6)

    def test_combined_quantity_over_stock_fails(self, shopper_id, listing):
        _add(shopper_id, listing, quantity=4)
        with pytest.raises(OutOfStock):
            _add(shopper_id, listing, quantity=2)
        assert _cart(shopper_id).items[0].quantity == 4

    def test_zero_quantity_is_invalid(self, shopper_id, listing):
        with pytest.raises(InvalidInput):
            _add(shopper_id, listing, quantity=0)

    def test_unknown_size_is_not_found(self, shopper_id, listing):
        with pytest.raises(NotFound):
            _add(shopper_id, {**listing, "size_id": "size-missing"})

    def test_unknown_product_is_not_found(self, shopper_id, listing):
        with pytest.raises(NotFound):
            _add(shopper_id, {**listing, "product_id": "prod-missing"})

    def test_size_of_another_variant_is_not_found(self, shopper_id, make_listing, listing):
        other = make_listing()
        with pytest.raises(NotFound):
            _add(shopper_id, {**listing, "size_id": other["size_id"]})

    def test_disabled_store_rejects_adds(self, shopper_id, store, listing):
        from ordering.catalogue.store import Store

        store.disable()
        current_domain.repository_for(Store).add(store)
        with pytest.raises(InvalidInput):
            _add(shopper_id, listing)

    def test_missing_shopper_is_unauthorized(self, listing):
        with pytest.raises(Unauthorized):
            _add(None, listing)

    def test_price_is_snapshotted_at_add_time(self, shopper_id, listing):
        _add(shopper_id, listing, quantity=1)

        repo = current_domain.repository_for(StockRecord)
        stock = repo.get(listing["size_id"])
        stock.price = 50.0
        repo.add(stock)

        cart = _cart(shopper_id)
        assert cart.items[0].price == 9.0
        assert cart.sub_total == 9.0

    def test_store_shipping_rates_are_applied(self, shopper_id, make_store, make_listing):
        shipping_store = make_store(name="Bulk Goods", fee_per_item=4.0, fee_for_additional_item=1.5)
        ids = make_listing(price=10.0, quantity=10, for_store=shipping_store)

        _add(shopper_id, ids, quantity=3)

        cart = _cart(shopper_id)
        assert cart.shipping_fees == 7.0
        assert cart.total == 37.0


class TestUpdateCartQuantityCommand:
    def test_update_persists_and_reprices(self, shopper_id, listing):
        _add(shopper_id, listing, quantity=1)
        item_id = str(_cart(shopper_id).items[0].id)

        current_domain.process(
            UpdateCartQuantity(shopper_id=shopper_id, item_id=item_id, quantity=4),
            asynchronous=False,
        )

        cart = _cart(shopper_id)
        assert cart.items[0].quantity == 4
        assert cart.items[0].total_price == 36.0
        assert cart.sub_total == 36.0

    def test_update_above_stock_leaves_cart_unchanged(self, shopper_id, listing):
        _add(shopper_id, listing, quantity=3)
        item_id = str(_cart(shopper_id).items[0].id)

        with pytest.raises(OutOfStock):
            current_domain.process(
                UpdateCartQuantity(shopper_id=shopper_id, item_id=item_id, quantity=6),
                asynchronous=False,
            )

        cart = _cart(shopper_id)
        assert cart.items[0].quantity == 3
        assert cart.sub_total == 27.0

    def test_update_someone_elses_item_is_not_found(self, shopper_id, listing):
        _add("shopper-other", listing, quantity=1)
        foreign_item = str(_cart("shopper-other").items[0].id)
        _add(shopper_id, listing, quantity=1)

        with pytest.raises(NotFound):
            current_domain.process(
                UpdateCartQuantity(shopper_id=shopper_id, item_id=foreign_item, quantity=2),
                asynchronous=False,
            )

    def test_update_without_cart_is_not_found(self, shopper_id):
        with pytest.raises(NotFound):
            current_domain.process(
                UpdateCartQuantity(shopper_id=shopper_id, item_id="item-x", quantity=2),
                asynchronous=False,
            )


class TestRemoveFromCartCommand:
    def test_remove_last_item_keeps_the_cart(self, shopper_id, listing):
        cart_id = _add(shopper_id, listing, quantity=2)
        item_id = str(_cart(shopper_id).items[0].id)

        current_domain.process(RemoveFromCart(shopper_id=shopper_id, item_id=item_id), asynchronous=False)

        cart = current_domain.repository_for(Cart).get(cart_id)
        assert len(cart.items) == 0
        assert cart.total == 0.0

    def test_remove_someone_elses_item_is_not_found(self, shopper_id, listing):
        _add("shopper-other", listing)
        foreign_item = str(_cart("shopper-other").items[0].id)
        _add(shopper_id, listing)

        with pytest.raises(NotFound):
            current_domain.process(RemoveFromCart(shopper_id=shopper_id, item_id=foreign_item), asynchronous=False)
        assert len(_cart("shopper-other").items) == 1
