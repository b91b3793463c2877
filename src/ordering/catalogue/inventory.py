"""Catalogue lookups and stock writes used by carts and the order materializer.

Reads resolve a product/variant/size triple into a priced ``Listing``; writes
decrement stock and bump sales counters once per record, so a materialization
never loads the same aggregate twice inside its unit of work.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.catalogue.product import Product
from ordering.catalogue.stock import StockRecord
from ordering.catalogue.store import Store
from ordering.errors import InvalidInput, NotFound
from ordering.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Listing:
    """Everything a cart line snapshots at add time."""

    product_id: str
    variant_id: str
    size_id: str
    store_id: str
    name: str
    product_slug: str | None
    variant_slug: str | None
    sku: str | None
    image: str | None
    size: str
    available: int
    price: float
    shipping_fee_per_item: float
    shipping_fee_for_additional_item: float


@dataclass(frozen=True)
class SoldLine:
    product_id: str
    variant_id: str
    size_id: str
    quantity: int


def get_stock(variant_id, size_id) -> StockRecord:
    try:
        stock = current_domain.repository_for(StockRecord).get(str(size_id))
    except ObjectNotFoundError as exc:
        raise NotFound({"size_id": [f"Size {size_id} does not exist"]}) from exc

    if str(stock.variant_id) != str(variant_id):
        raise NotFound({"size_id": [f"Size {size_id} does not belong to variant {variant_id}"]})
    return stock


def get_listing(product_id, variant_id, size_id) -> Listing:
    try:
        product = current_domain.repository_for(Product).get(str(product_id))
    except ObjectNotFoundError as exc:
        raise NotFound({"product_id": [f"Product {product_id} does not exist"]}) from exc

    variant = product.variant(variant_id)
    if variant is None:
        raise NotFound({"variant_id": [f"Variant {variant_id} does not belong to product {product_id}"]})

    stock = get_stock(variant_id, size_id)

    try:
        store = current_domain.repository_for(Store).get(str(product.store_id))
    except ObjectNotFoundError as exc:
        raise NotFound({"store_id": [f"Store {product.store_id} does not exist"]}) from exc
    if not store.is_active:
        raise InvalidInput({"store_id": [f"Store {store.name} is not accepting orders"]})

    return Listing(
        product_id=str(product.id),
        variant_id=str(variant.id),
        size_id=str(stock.id),
        store_id=str(store.id),
        name=product.name,
        product_slug=product.slug,
        variant_slug=variant.slug,
        sku=variant.sku,
        image=variant.image,
        size=stock.size,
        available=stock.quantity,
        price=stock.effective_price,
        shipping_fee_per_item=store.shipping_fee_per_item or 0.0,
        shipping_fee_for_additional_item=store.shipping_fee_for_additional_item or 0.0,
    )


def decrement_stock(size_id, amount: int) -> StockRecord | None:
    repo = current_domain.repository_for(StockRecord)
    try:
        stock = repo.get(str(size_id))
    except ObjectNotFoundError:
        logger.warning("Stock record vanished before decrement, skipping", size_id=str(size_id), amount=amount)
        return None

    stock.decrement(amount)
    repo.add(stock)
    return stock


def increment_sales(product_id, variant_quantities: dict[str, int]) -> Product | None:
    repo = current_domain.repository_for(Product)
    try:
        product = repo.get(str(product_id))
    except ObjectNotFoundError:
        logger.warning("Product vanished before sales update, skipping", product_id=str(product_id))
        return None

    product.record_sale(variant_quantities)
    repo.add(product)
    return product


def record_sales(lines: Iterable[SoldLine]) -> None:
    """Decrement stock and increment sales for every sold line, one write per record."""
    per_size: dict[str, int] = defaultdict(int)
    per_product: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))

    for line in lines:
        per_size[line.size_id] += line.quantity
        per_product[line.product_id][line.variant_id] += line.quantity

    for size_id, quantity in per_size.items():
        decrement_stock(size_id, quantity)

    for product_id, variant_quantities in per_product.items():
        increment_sales(product_id, dict(variant_quantities))
