"""Application tests for opening and clearing carts."""

import pytest
from ordering.cart.cart import Cart
from ordering.cart.items import AddToCart
from ordering.cart.management import ClearCart, OpenCart
from ordering.errors import Unauthorized
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


class TestOpenCart:
    def test_first_open_creates_an_empty_cart(self, shopper_id):
        cart_id = current_domain.process(OpenCart(shopper_id=shopper_id), asynchronous=False)

        cart = current_domain.repository_for(Cart).get(cart_id)
        assert cart.shopper_id == shopper_id
        assert len(cart.items) == 0
        assert cart.sub_total == 0.0
        assert cart.shipping_fees == 0.0
        assert cart.total == 0.0

    def test_open_is_stable_for_a_shopper(self, shopper_id):
        first = current_domain.process(OpenCart(shopper_id=shopper_id), asynchronous=False)
        second = current_domain.process(OpenCart(shopper_id=shopper_id), asynchronous=False)
        assert first == second

    def test_open_returns_the_cart_created_by_an_add(self, shopper_id, listing):
        added_to = _add(shopper_id, listing)
        opened = current_domain.process(OpenCart(shopper_id=shopper_id), asynchronous=False)
        assert opened == added_to

    def test_open_without_shopper_is_unauthorized(self):
        with pytest.raises(Unauthorized):
            current_domain.process(OpenCart(), asynchronous=False)


class TestClearCart:
    def test_clear_empties_a_full_cart(self, shopper_id, listing, make_listing, make_store):
        other_store = make_store(name="Second Shop", fee_per_item=3.0)
        _add(shopper_id, listing, quantity=2)
        _add(shopper_id, make_listing(for_store=other_store), quantity=1)

        cart_id = current_domain.process(ClearCart(shopper_id=shopper_id), asynchronous=False)

        cart = current_domain.repository_for(Cart).get(cart_id)
        assert len(cart.items) == 0
        assert cart.sub_total == 0.0
        assert cart.shipping_fees == 0.0
        assert cart.discount_total == 0.0
        assert cart.total == 0.0

    def test_cleared_cart_is_still_the_shoppers_cart(self, shopper_id, listing):
        cart_id = _add(shopper_id, listing)
        current_domain.process(ClearCart(shopper_id=shopper_id), asynchronous=False)

        opened = current_domain.process(OpenCart(shopper_id=shopper_id), asynchronous=False)
        assert opened == cart_id

    def test_clear_without_a_cart_creates_an_empty_one(self, shopper_id):
        cart_id = current_domain.process(ClearCart(shopper_id=shopper_id), asynchronous=False)
        cart = current_domain.repository_for(Cart).get(cart_id)
        assert len(cart.items) == 0
