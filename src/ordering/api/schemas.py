"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer), separate from
internal Protean commands. Quantities are not range-checked here;
the cart rejects non-positive quantities with its own error.
"""

from datetime import datetime

from pydantic import BaseModel


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str
    variant_id: str
    size_id: str
    quantity: int = 1

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "prod-001",
                    "variant_id": "var-001",
                    "size_id": "size-m",
                    "quantity": 2,
                }
            ]
        }
    }


class UpdateQuantityRequest(BaseModel):
    quantity: int


class ApplyCouponRequest(BaseModel):
    code: str


# ---------------------------------------------------------------------------
# Cart Response Schemas
# ---------------------------------------------------------------------------
class CartItemResponse(BaseModel):
    id: str
    product_id: str
    variant_id: str
    size_id: str
    store_id: str
    name: str
    image: str | None = None
    sku: str | None = None
    size: str | None = None
    product_slug: str | None = None
    variant_slug: str | None = None
    quantity: int
    price: float
    shipping_fee: float
    total_price: float


class AppliedCouponResponse(BaseModel):
    code: str
    store_id: str
    discount: float


class CartResponse(BaseModel):
    id: str
    shopper_id: str
    items: list[CartItemResponse] = []
    coupon: AppliedCouponResponse | None = None
    sub_total: float
    shipping_fees: float
    discount_total: float
    total: float
    updated_at: datetime | None = None

    @classmethod
    def from_cart(cls, cart) -> "CartResponse":
        return cls(
            id=str(cart.id),
            shopper_id=str(cart.shopper_id),
            items=[
                CartItemResponse(
                    id=str(item.id),
                    product_id=str(item.product_id),
                    variant_id=str(item.variant_id),
                    size_id=str(item.size_id),
                    store_id=str(item.store_id),
                    name=item.name,
                    image=item.image,
                    sku=item.sku,
                    size=item.size,
                    product_slug=item.product_slug,
                    variant_slug=item.variant_slug,
                    quantity=item.quantity,
                    price=item.price,
                    shipping_fee=item.shipping_fee,
                    total_price=item.total_price,
                )
                for item in cart.items
            ],
            coupon=(
                AppliedCouponResponse(
                    code=cart.coupon.code,
                    store_id=str(cart.coupon.store_id),
                    discount=cart.coupon.discount,
                )
                if cart.coupon
                else None
            ),
            sub_total=cart.sub_total,
            shipping_fees=cart.shipping_fees,
            discount_total=cart.discount_total,
            total=cart.total,
            updated_at=cart.updated_at,
        )


# ---------------------------------------------------------------------------
# Checkout Schemas
# ---------------------------------------------------------------------------
class CheckoutRequest(BaseModel):
    cart_id: str


class CheckoutResponse(BaseModel):
    session_id: str
    redirect_url: str


class WebhookResponse(BaseModel):
    status: str
    order_id: str | None = None
    detail: str | None = None


# ---------------------------------------------------------------------------
# Address Schemas
# ---------------------------------------------------------------------------
class AddAddressRequest(BaseModel):
    first_name: str
    last_name: str
    phone: str | None = None
    address1: str
    address2: str | None = None
    city: str
    state: str | None = None
    zip_code: str
    country: str
    is_default: bool = False


class AddressIdResponse(BaseModel):
    address_id: str


# ---------------------------------------------------------------------------
# Order Schemas
# ---------------------------------------------------------------------------
class OrderItemResponse(BaseModel):
    id: str
    product_id: str
    variant_id: str
    size_id: str
    name: str
    sku: str | None = None
    size: str | None = None
    quantity: int
    price: float
    shipping_fee: float
    total_price: float
    status: str


class OrderGroupResponse(BaseModel):
    id: str
    store_id: str
    store_name: str | None = None
    status: str
    shipping_service: str | None = None
    delivery_min_days: int | None = None
    delivery_max_days: int | None = None
    coupon_code: str | None = None
    sub_total: float
    shipping_fees: float
    discount: float
    total: float
    items: list[OrderItemResponse] = []


class OrderResponse(BaseModel):
    id: str
    shopper_id: str
    status: str
    payment_method: str | None = None
    payment_status: str
    sub_total: float
    shipping_fees: float
    discount_total: float
    total: float
    currency: str
    groups: list[OrderGroupResponse] = []
    created_at: datetime | None = None

    @classmethod
    def from_order(cls, order, groups) -> "OrderResponse":
        return cls(
            id=str(order.id),
            shopper_id=str(order.shopper_id),
            status=order.status,
            payment_method=order.payment_method,
            payment_status=order.payment_status,
            sub_total=order.sub_total,
            shipping_fees=order.shipping_fees,
            discount_total=order.discount_total,
            total=order.total,
            currency=order.currency,
            created_at=order.created_at,
            groups=[
                OrderGroupResponse(
                    id=str(group.id),
                    store_id=str(group.store_id),
                    store_name=group.store_name,
                    status=group.status,
                    shipping_service=group.shipping.service if group.shipping else None,
                    delivery_min_days=group.shipping.delivery_min_days if group.shipping else None,
                    delivery_max_days=group.shipping.delivery_max_days if group.shipping else None,
                    coupon_code=group.coupon_code,
                    sub_total=group.sub_total,
                    shipping_fees=group.shipping_fees,
                    discount=group.discount,
                    total=group.total,
                    items=[
                        OrderItemResponse(
                            id=str(item.id),
                            product_id=str(item.product_id),
                            variant_id=str(item.variant_id),
                            size_id=str(item.size_id),
                            name=item.name,
                            sku=item.sku,
                            size=item.size,
                            quantity=item.quantity,
                            price=item.price,
                            shipping_fee=item.shipping_fee,
                            total_price=item.total_price,
                            status=item.status,
                        )
                        for item in group.items
                    ],
                )
                for group in groups
            ],
        )


class StatusUpdateRequest(BaseModel):
    status: str


class StatusResponse(BaseModel):
    status: str = "ok"
