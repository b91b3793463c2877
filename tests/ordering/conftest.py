import json
from itertools import count

import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def fake_gateway():
    """Every test talks to a fresh FakeGateway."""
    from ordering.gateway import reset_gateway, set_gateway
    from ordering.gateway.fake_adapter import FakeGateway

    gateway = FakeGateway()
    set_gateway(gateway)
    yield gateway
    reset_gateway()


# ---------------------------------------------------------------------------
# Identities
# ---------------------------------------------------------------------------
@pytest.fixture()
def shopper_id():
    return "shopper-001"


@pytest.fixture()
def seller_id():
    return "seller-001"


# ---------------------------------------------------------------------------
# Catalogue seeding
# ---------------------------------------------------------------------------
_sequence = count(1)


@pytest.fixture()
def make_store(seller_id):
    from ordering.catalogue.store import Store
    from protean import current_domain

    def _make(name="Acme Apparel", owner_id=None, fee_per_item=0.0, fee_for_additional_item=0.0, **overrides):
        store = Store(
            owner_id=owner_id or seller_id,
            name=name,
            default_shipping_service=overrides.pop("default_shipping_service", "Express Courier"),
            delivery_min_days=overrides.pop("delivery_min_days", 2),
            delivery_max_days=overrides.pop("delivery_max_days", 5),
            shipping_fee_per_item=fee_per_item,
            shipping_fee_for_additional_item=fee_for_additional_item,
            **overrides,
        )
        current_domain.repository_for(Store).add(store)
        return store

    return _make


@pytest.fixture()
def store(make_store):
    return make_store()


@pytest.fixture()
def make_listing(store):
    """Seed a product with one variant and one size; returns the ids a cart add needs."""
    from ordering.catalogue.product import Product, ProductVariant
    from ordering.catalogue.stock import StockRecord
    from protean import current_domain

    def _make(price=10.0, discount=0.0, quantity=5, size="M", for_store=None, name=None):
        n = next(_sequence)
        owner = for_store or store
        product = Product(
            store_id=str(owner.id),
            name=name or f"Linen Shirt {n}",
            slug=f"linen-shirt-{n}",
        )
        variant = ProductVariant(name="Sand", slug=f"linen-shirt-{n}-sand", sku=f"LS-{n:04d}", image=f"/img/{n}.jpg")
        product.add_variants(variant)
        current_domain.repository_for(Product).add(product)

        stock = StockRecord(
            id=f"size-{n}-{size.lower()}",
            product_id=str(product.id),
            variant_id=str(variant.id),
            size=size,
            quantity=quantity,
            price=price,
            discount=discount,
        )
        current_domain.repository_for(StockRecord).add(stock)

        return {
            "product_id": str(product.id),
            "variant_id": str(variant.id),
            "size_id": str(stock.id),
            "store_id": str(owner.id),
        }

    return _make


@pytest.fixture()
def listing(make_listing):
    """Scenario A listing: 5 in stock at 10.00 with a 10% discount."""
    return make_listing(price=10.0, discount=10.0, quantity=5)


@pytest.fixture()
def default_address(shopper_id):
    from ordering.shipping.address import AddShippingAddress
    from protean import current_domain

    return current_domain.process(
        AddShippingAddress(
            shopper_id=shopper_id,
            first_name="Ada",
            last_name="Rossi",
            phone="+39 055 000000",
            address1="Via Roma 1",
            city="Firenze",
            zip_code="50123",
            country="IT",
        ),
        asynchronous=False,
    )


# ---------------------------------------------------------------------------
# Checkout helpers
# ---------------------------------------------------------------------------
@pytest.fixture()
def completion_payload():
    """Build a FakeGateway ``checkout.session.completed`` webhook body."""

    def _build(transaction_ref, shopper_id, cart_id, amount, currency="eur", event_type="checkout.session.completed"):
        return json.dumps(
            {
                "type": event_type,
                "data": {
                    "transaction_ref": transaction_ref,
                    "amount": amount,
                    "currency": currency,
                    "metadata": {"shopper_id": shopper_id, "cart_id": cart_id},
                },
            }
        )

    return _build
