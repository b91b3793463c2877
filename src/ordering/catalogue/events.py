"""Domain events raised by catalogue records during order materialization."""

from protean.fields import Identifier, Integer

from ordering.domain import ordering


@ordering.event(part_of="StockRecord")
class StockOversold:
    """A decrement asked for more units than were on hand; the record was clamped at zero."""

    __version__ = 1

    size_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    requested = Integer(required=True)
    on_hand = Integer(required=True)
    shortfall = Integer(required=True)
