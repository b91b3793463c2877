"""Ordering bounded context — Carts, Checkout and Order Materialization.

Carts, the catalogue records they price against, orders and payment records
all live in one domain so that a completed checkout commits in a single
unit of work.
"""

from protean.domain import Domain

from ordering.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

ordering = Domain(name="ordering")
