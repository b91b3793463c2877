"""Error taxonomy for carts, checkout and order materialization.

Validation-type errors extend Protean's exceptions so aggregates and handlers
raise them the same way they raise ``ValidationError``; the API layer maps each
class onto its HTTP status in ``ordering.api.errors``.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError


class Unauthorized(Exception):
    """No shopper or seller identity is attached to the request."""


class InvalidInput(ValidationError):
    """Malformed quantity, identifier or status."""


class OutOfStock(ValidationError):
    """Requested quantity exceeds what the stock record has available."""


class EmptyCart(ValidationError):
    """Checkout was attempted on a cart without items."""


class CartMismatch(ValidationError):
    """The cart does not exist or belongs to another shopper."""


class NotFound(ObjectNotFoundError):
    """Cart item, order, group or store is absent or not owned by the caller."""


class ExternalServiceError(Exception):
    """The payment processor could not be reached or rejected the request."""


class MaterializationFailure(Exception):
    """A completion event could not be turned into an order.

    ``retryable`` tells the webhook whether redelivery can succeed later (a
    missing shipping address may be added) or never will (the cart is gone).
    """

    def __init__(self, message: str, retryable: bool = True, transaction_ref: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.retryable = retryable
        self.transaction_ref = transaction_ref
