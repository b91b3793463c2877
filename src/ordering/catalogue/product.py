"""Product aggregate with its variants, as far as ordering cares about them.

Products carry the display data that gets denormalized onto cart lines and the
sales counters the materializer increments.
"""

from protean.fields import HasMany, Identifier, Integer, String

from ordering.domain import ordering


@ordering.entity(part_of="Product")
class ProductVariant:
    name = String(required=True, max_length=255)
    slug = String(max_length=255)
    sku = String(max_length=50)
    image = String(max_length=1024)
    sales = Integer(default=0, min_value=0)


@ordering.aggregate
class Product:
    store_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    slug = String(max_length=255)
    sales = Integer(default=0, min_value=0)
    variants = HasMany(ProductVariant)

    def variant(self, variant_id):
        return next((v for v in self.variants if str(v.id) == str(variant_id)), None)

    def record_sale(self, variant_quantities: dict[str, int]) -> None:
        """Bump the product counter by the total and each listed variant by its own quantity."""
        for variant_id, quantity in variant_quantities.items():
            self.sales += quantity
            variant = self.variant(variant_id)
            if variant is not None:
                variant.sales += quantity
