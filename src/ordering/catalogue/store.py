"""Store aggregate — a seller's storefront and its shipping defaults.

Only the fields carts and orders need are modelled here: who owns the store
and how it charges and promises shipping.
"""

from enum import Enum

from protean.fields import Float, Identifier, Integer, String

from ordering.domain import ordering


class StoreStatus(Enum):
    ACTIVE = "Active"
    DISABLED = "Disabled"


DEFAULT_SHIPPING_SERVICE = "International Delivery"
DEFAULT_DELIVERY_MIN_DAYS = 7
DEFAULT_DELIVERY_MAX_DAYS = 31


@ordering.aggregate
class Store:
    owner_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    status = String(choices=StoreStatus, default=StoreStatus.ACTIVE.value)
    default_shipping_service = String(max_length=255, default=DEFAULT_SHIPPING_SERVICE)
    delivery_min_days = Integer(default=DEFAULT_DELIVERY_MIN_DAYS, min_value=0)
    delivery_max_days = Integer(default=DEFAULT_DELIVERY_MAX_DAYS, min_value=0)
    shipping_fee_per_item = Float(default=0.0, min_value=0.0)
    shipping_fee_for_additional_item = Float(default=0.0, min_value=0.0)

    def disable(self):
        self.status = StoreStatus.DISABLED.value

    @property
    def is_active(self) -> bool:
        return self.status == StoreStatus.ACTIVE.value
