"""Completion failure tracking — alerting on webhooks that keep failing.

Every failed materialization attempt is counted per transaction reference.
The third failure raises an alert; a later success resolves the record.
"""

from datetime import UTC, datetime

from protean import handle
from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.utils.logging import get_logger

logger = get_logger(__name__)

ALERT_THRESHOLD = 3


@ordering.event(part_of="CompletionFailure")
class CompletionFailureAlerted:
    __version__ = 1

    failure_id = Identifier(required=True)
    transaction_ref = String(required=True)
    attempts = Integer(required=True)
    last_error = Text()


@ordering.aggregate
class CompletionFailure:
    transaction_ref = String(required=True, max_length=255, unique=True)
    cart_id = Identifier()
    attempts = Integer(default=0, min_value=0)
    last_error = Text()
    first_failed_at = DateTime()
    last_failed_at = DateTime()
    alerted = Boolean(default=False)
    resolved = Boolean(default=False)

    @classmethod
    def start(cls, transaction_ref, cart_id=None):
        return cls(transaction_ref=transaction_ref, cart_id=cart_id, attempts=0, first_failed_at=datetime.now(UTC))

    def record_attempt(self, error):
        self.attempts += 1
        self.last_error = error
        self.last_failed_at = datetime.now(UTC)
        self.resolved = False

        if self.attempts >= ALERT_THRESHOLD and not self.alerted:
            self.alerted = True
            logger.error(
                "Order materialization keeps failing",
                transaction_ref=self.transaction_ref,
                attempts=self.attempts,
                last_error=error,
                alert=True,
            )
            self.raise_(
                CompletionFailureAlerted(
                    failure_id=str(self.id),
                    transaction_ref=self.transaction_ref,
                    attempts=self.attempts,
                    last_error=error,
                )
            )

    def resolve(self):
        self.resolved = True


def find_failure(transaction_ref) -> CompletionFailure | None:
    repo = current_domain.repository_for(CompletionFailure)
    results = repo._dao.query.filter(transaction_ref=transaction_ref).all().items
    return results[0] if results else None


@ordering.command(part_of="CompletionFailure")
class RecordCompletionFailure:
    transaction_ref = String(required=True, max_length=255)
    cart_id = Identifier()
    error = Text(required=True)


@ordering.command_handler(part_of=CompletionFailure)
class CompletionFailureHandler:
    @handle(RecordCompletionFailure)
    def record_failure(self, command):
        failure = find_failure(command.transaction_ref) or CompletionFailure.start(
            command.transaction_ref, cart_id=command.cart_id
        )
        failure.record_attempt(command.error)
        current_domain.repository_for(CompletionFailure).add(failure)

        logger.warning(
            "Order materialization attempt failed",
            transaction_ref=command.transaction_ref,
            attempts=failure.attempts,
            error=command.error,
        )
        return failure.attempts
