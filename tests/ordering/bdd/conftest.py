"""Shared BDD fixtures and step definitions for the Ordering domain."""

import pytest
from ordering.cart.items import AddToCart
from protean import current_domain
from pytest_bdd import given, parsers


# ---------------------------------------------------------------------------
# Scenario state
# ---------------------------------------------------------------------------
@pytest.fixture()
def listings():
    """Seeded listings by their scenario name."""
    return {}


@pytest.fixture()
def stores():
    return {}


@pytest.fixture()
def error():
    """Container for the error a When step was refused with."""
    return {"exc": None}


@pytest.fixture()
def checkout():
    return {}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse(
        'a listing "{name}" from store "{store_name}" with {quantity:d} in stock '
        "at {price:f} with a {discount:d}% discount"
    )
)
def seeded_listing(name, store_name, quantity, price, discount, listings, stores, make_store, make_listing):
    if store_name not in stores:
        stores[store_name] = make_store(name=store_name)
    listings[name] = make_listing(
        price=price,
        discount=float(discount),
        quantity=quantity,
        for_store=stores[store_name],
        name=name,
    )


@given(parsers.cfparse('the shopper has {quantity:d} of "{name}" in the cart'))
def item_in_cart(shopper_id, quantity, name, listings):
    listing = listings[name]
    current_domain.process(
        AddToCart(
            shopper_id=shopper_id,
            product_id=listing["product_id"],
            variant_id=listing["variant_id"],
            size_id=listing["size_id"],
            quantity=quantity,
        ),
        asynchronous=False,
    )


@given("the shopper has a default shipping address")
def shopper_address(default_address):
    return default_address

