"""FastAPI routes for the Ordering domain — cart, checkout, orders and seller fulfillment."""

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from protean.utils.globals import current_domain

from ordering.api.principal import Principal, current_principal, current_seller
from ordering.api.schemas import (
    AddAddressRequest,
    AddressIdResponse,
    AddToCartRequest,
    ApplyCouponRequest,
    CartResponse,
    CheckoutRequest,
    CheckoutResponse,
    OrderResponse,
    StatusResponse,
    StatusUpdateRequest,
    UpdateQuantityRequest,
    WebhookResponse,
)
from ordering.cart.cart import Cart
from ordering.cart.coupons import ApplyCoupon
from ordering.cart.items import AddToCart, RemoveFromCart, UpdateCartQuantity
from ordering.cart.management import ClearCart, OpenCart
from ordering.checkout.initiation import InitiateCheckout
from ordering.errors import MaterializationFailure
from ordering.gateway import get_gateway
from ordering.order.failures import RecordCompletionFailure
from ordering.order.fulfillment import UpdateOrderGroupStatus, UpdateOrderItemStatus
from ordering.order.lookup import order_for_shopper
from ordering.order.materialization import MaterializeOrder
from ordering.shipping.address import AddShippingAddress
from ordering.utils.logging import add_context, clear_context, get_logger

logger = get_logger(__name__)


def _cart_response(cart_id) -> CartResponse:
    return CartResponse.from_cart(current_domain.repository_for(Cart).get(cart_id))


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def view_cart(principal: Principal = Depends(current_principal)) -> CartResponse:
    cart_id = current_domain.process(OpenCart(shopper_id=principal.id), asynchronous=False)
    return _cart_response(cart_id)


@cart_router.post("", response_model=CartResponse)
async def add_to_cart(body: AddToCartRequest, principal: Principal = Depends(current_principal)) -> CartResponse:
    command = AddToCart(
        shopper_id=principal.id,
        product_id=body.product_id,
        variant_id=body.variant_id,
        size_id=body.size_id,
        quantity=body.quantity,
    )
    cart_id = current_domain.process(command, asynchronous=False)
    return _cart_response(cart_id)


@cart_router.delete("", response_model=CartResponse)
async def clear_cart(principal: Principal = Depends(current_principal)) -> CartResponse:
    cart_id = current_domain.process(ClearCart(shopper_id=principal.id), asynchronous=False)
    return _cart_response(cart_id)


@cart_router.patch("/items/{item_id}", response_model=CartResponse)
async def update_cart_quantity(
    item_id: str,
    body: UpdateQuantityRequest,
    principal: Principal = Depends(current_principal),
) -> CartResponse:
    command = UpdateCartQuantity(shopper_id=principal.id, item_id=item_id, quantity=body.quantity)
    cart_id = current_domain.process(command, asynchronous=False)
    return _cart_response(cart_id)


@cart_router.delete("/items/{item_id}", response_model=CartResponse)
async def remove_from_cart(item_id: str, principal: Principal = Depends(current_principal)) -> CartResponse:
    cart_id = current_domain.process(RemoveFromCart(shopper_id=principal.id, item_id=item_id), asynchronous=False)
    return _cart_response(cart_id)


@cart_router.post("/coupon", response_model=CartResponse)
async def apply_coupon(body: ApplyCouponRequest, principal: Principal = Depends(current_principal)) -> CartResponse:
    cart_id = current_domain.process(ApplyCoupon(shopper_id=principal.id, code=body.code), asynchronous=False)
    return _cart_response(cart_id)


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("", response_model=CheckoutResponse)
async def initiate_checkout(
    body: CheckoutRequest,
    principal: Principal = Depends(current_principal),
) -> CheckoutResponse:
    result = current_domain.process(
        InitiateCheckout(shopper_id=principal.id, cart_id=body.cart_id),
        asynchronous=False,
    )
    return CheckoutResponse(**result)


def _record_failure(event, error: str) -> None:
    current_domain.process(
        RecordCompletionFailure(transaction_ref=event.transaction_ref, cart_id=event.cart_id, error=error),
        asynchronous=False,
    )


@checkout_router.post("/webhook", response_model=WebhookResponse)
async def checkout_webhook(request: Request, stripe_signature: str = Header(default="")) -> WebhookResponse:
    """Processor callback for completed checkouts.

    Answers 2xx only once the order graph has committed (or the event can never
    succeed); anything retryable is answered with 503 so the processor redelivers.
    """
    payload = (await request.body()).decode("utf-8")
    gateway = get_gateway()
    if not gateway.verify_webhook_signature(payload, stripe_signature):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    event = gateway.parse_completion_event(payload, stripe_signature)
    if event is None:
        return WebhookResponse(status="ignored")

    add_context(transaction_ref=event.transaction_ref, shopper_id=event.shopper_id)
    try:
        result = current_domain.process(
            MaterializeOrder(
                transaction_ref=event.transaction_ref,
                shopper_id=event.shopper_id,
                cart_id=event.cart_id,
                amount=event.amount,
                currency=event.currency,
                payment_method=event.payment_method,
            ),
            asynchronous=False,
        )
    except MaterializationFailure as exc:
        if not exc.retryable:
            logger.error("Completion event rejected", cart_id=event.cart_id, error=exc.message)
            return WebhookResponse(status="rejected", detail=exc.message)
        _record_failure(event, exc.message)
        raise
    except Exception as exc:
        logger.exception("Unexpected error while materializing order", cart_id=event.cart_id)
        error = f"{type(exc).__name__}: {exc}"
        _record_failure(event, error)
        raise MaterializationFailure(error, retryable=True, transaction_ref=event.transaction_ref) from exc
    finally:
        clear_context()

    return WebhookResponse(
        status="duplicate" if result["duplicate"] else "processed",
        order_id=result["order_id"],
    )


# ---------------------------------------------------------------------------
# Address Router
# ---------------------------------------------------------------------------
address_router = APIRouter(prefix="/addresses", tags=["addresses"])


@address_router.post("", status_code=201, response_model=AddressIdResponse)
async def add_address(body: AddAddressRequest, principal: Principal = Depends(current_principal)) -> AddressIdResponse:
    command = AddShippingAddress(shopper_id=principal.id, **body.model_dump())
    address_id = current_domain.process(command, asynchronous=False)
    return AddressIdResponse(address_id=address_id)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("/{order_id}", response_model=OrderResponse)
async def view_order(order_id: str, principal: Principal = Depends(current_principal)) -> OrderResponse:
    order, groups = order_for_shopper(principal.id, order_id)
    return OrderResponse.from_order(order, groups)


# ---------------------------------------------------------------------------
# Store Fulfillment Router
# ---------------------------------------------------------------------------
store_router = APIRouter(prefix="/stores", tags=["fulfillment"])


@store_router.patch("/{store_id}/order-groups/{group_id}/status", response_model=StatusResponse)
async def update_group_status(
    store_id: str,
    group_id: str,
    body: StatusUpdateRequest,
    seller: Principal = Depends(current_seller),
) -> StatusResponse:
    command = UpdateOrderGroupStatus(seller_id=seller.id, store_id=store_id, group_id=group_id, status=body.status)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status=body.status)


@store_router.patch(
    "/{store_id}/order-groups/{group_id}/items/{item_id}/status",
    response_model=StatusResponse,
)
async def update_item_status(
    store_id: str,
    group_id: str,
    item_id: str,
    body: StatusUpdateRequest,
    seller: Principal = Depends(current_seller),
) -> StatusResponse:
    command = UpdateOrderItemStatus(
        seller_id=seller.id,
        store_id=store_id,
        group_id=group_id,
        item_id=item_id,
        status=body.status,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status=body.status)


routers = [cart_router, checkout_router, address_router, order_router, store_router]
