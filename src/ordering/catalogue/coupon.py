"""Coupon aggregate — a store-scoped percentage discount."""

from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, Float, Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.errors import InvalidInput


@ordering.aggregate
class Coupon:
    code = String(required=True, max_length=50, unique=True)
    store_id = Identifier(required=True)
    discount = Float(required=True, min_value=1.0, max_value=99.0)
    is_active = Boolean(default=True)
    starts_at = DateTime()
    ends_at = DateTime()

    def ensure_redeemable(self, now: datetime | None = None) -> None:
        now = now or datetime.now(UTC)
        if not self.is_active:
            raise InvalidInput({"code": [f"Coupon {self.code} is no longer active"]})
        if self.starts_at and now < self.starts_at:
            raise InvalidInput({"code": [f"Coupon {self.code} is not valid yet"]})
        if self.ends_at and now > self.ends_at:
            raise InvalidInput({"code": [f"Coupon {self.code} has expired"]})


def find_coupon(code: str) -> Coupon | None:
    results = current_domain.repository_for(Coupon)._dao.query.filter(code=code).all().items
    return results[0] if results else None
