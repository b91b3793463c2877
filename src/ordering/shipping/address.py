"""Shipping addresses — where a shopper's orders are delivered.

A shopper may keep several addresses; exactly one of them is the default, and
that is the one an order ships to.
"""

from datetime import UTC, datetime

from protean import handle
from protean.fields import Boolean, DateTime, Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.errors import Unauthorized
from ordering.utils.logging import get_logger

logger = get_logger(__name__)


@ordering.aggregate
class ShippingAddress:
    shopper_id = Identifier(required=True)
    first_name = String(required=True, max_length=100)
    last_name = String(required=True, max_length=100)
    phone = String(max_length=30)
    address1 = String(required=True, max_length=255)
    address2 = String(max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    zip_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)
    is_default = Boolean(default=False)
    created_at = DateTime()


@ordering.command(part_of="ShippingAddress")
class AddShippingAddress:
    shopper_id = Identifier()
    first_name = String(required=True, max_length=100)
    last_name = String(required=True, max_length=100)
    phone = String(max_length=30)
    address1 = String(required=True, max_length=255)
    address2 = String(max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    zip_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)
    is_default = Boolean(default=False)


def addresses_of(shopper_id) -> list[ShippingAddress]:
    repo = current_domain.repository_for(ShippingAddress)
    return repo._dao.query.filter(shopper_id=str(shopper_id)).all().items


def default_address_for(shopper_id) -> ShippingAddress | None:
    return next((a for a in addresses_of(shopper_id) if a.is_default), None)


@ordering.command_handler(part_of=ShippingAddress)
class ShippingAddressHandler:
    @handle(AddShippingAddress)
    def add_address(self, command):
        if not command.shopper_id:
            raise Unauthorized("A signed-in shopper is required to add an address")

        repo = current_domain.repository_for(ShippingAddress)
        existing = addresses_of(command.shopper_id)
        make_default = command.is_default or not existing

        if make_default:
            for other in existing:
                if other.is_default:
                    other.is_default = False
                    repo.add(other)

        address = ShippingAddress(
            shopper_id=command.shopper_id,
            first_name=command.first_name,
            last_name=command.last_name,
            phone=command.phone,
            address1=command.address1,
            address2=command.address2,
            city=command.city,
            state=command.state,
            zip_code=command.zip_code,
            country=command.country,
            is_default=make_default,
            created_at=datetime.now(UTC),
        )
        repo.add(address)

        logger.info(
            "Shipping address added",
            address_id=str(address.id),
            shopper_id=command.shopper_id,
            is_default=make_default,
        )
        return str(address.id)
