"""Transaction tracker - assembles network transactions from lifecycle signals.

A transaction is built from up to three partial updates (initiation,
header send, completion or error). Only a terminal update releases it,
and it is released exactly once.
"""

from typing import Callable, Optional

import structlog

from .errors import UnknownTransaction
from .models import (
    Completed,
    Errored,
    Header,
    TrackedTransaction,
    TransactionInitiation,
    TransactionOutcome,
    TransactionState,
)

logger = structlog.get_logger()

ScopePredicate = Callable[[TransactionInitiation], bool]


class TransactionTracker:
    """In-flight network transactions keyed by transaction id.

    Example:
        tracker = TransactionTracker(scope=lambda init: init.tab_id == 7)
        tracker.begin("42", initiation)
        tracker.attach_headers("42", headers)
        transaction = tracker.finish("42", Completed(status=200, end_timestamp=t))
    """

    def __init__(
        self,
        scope: Optional[ScopePredicate] = None,
        stripped_header_prefixes: Optional[list[str]] = None,
    ):
        """Initialize the tracker.

        Args:
            scope: Predicate deciding whether an initiation belongs to the
                active session. Nothing is tracked when it returns False.
            stripped_header_prefixes: Header name prefixes dropped on attach
        """
        self.scope = scope or (lambda initiation: True)
        self.stripped_header_prefixes = [
            p.lower() for p in (stripped_header_prefixes if stripped_header_prefixes is not None else ["sec-ch-ua"])
        ]
        self.log = logger.bind(component="transaction_tracker")
        self._pending: dict[str, TrackedTransaction] = {}

    def __contains__(self, transaction_id: str) -> bool:
        return transaction_id in self._pending

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def begin(self, transaction_id: str, initiation: TransactionInitiation) -> bool:
        """Start tracking a transaction.

        Returns:
            True if the transaction is now tracked, False if the signal was
            a duplicate or out of scope
        """
        if transaction_id in self._pending:
            self.log.debug("Duplicate start ignored", transaction_id=transaction_id)
            return False
        if not self.scope(initiation):
            return False

        self._pending[transaction_id] = TrackedTransaction.from_initiation(initiation)
        return True

    def attach_headers(self, transaction_id: str, headers: list[Header]) -> bool:
        """Record the request headers of a tracked transaction.

        Returns:
            False if the transaction is unknown
        """
        transaction = self._pending.get(transaction_id)
        if transaction is None:
            return False

        retained = [h for h in headers if not self._is_stripped(h.name)]
        if retained or not transaction.request_headers:
            transaction.request_headers = retained
        transaction.state = TransactionState.HEADERS_ATTACHED
        return True

    def finish(self, transaction_id: str, outcome: TransactionOutcome) -> TrackedTransaction:
        """Apply a terminal outcome and release the transaction.

        Raises:
            UnknownTransaction: If the id is not tracked
        """
        transaction = self._pending.pop(transaction_id, None)
        if transaction is None:
            raise UnknownTransaction(transaction_id)

        transaction.end_timestamp = outcome.end_timestamp
        if isinstance(outcome, Completed):
            transaction.state = TransactionState.COMPLETED
            transaction.response_status = outcome.status
            if outcome.headers:
                transaction.response_headers = list(outcome.headers)
        elif isinstance(outcome, Errored):
            transaction.state = TransactionState.ERRORED
            transaction.error = outcome.error

        return transaction

    def clear(self) -> int:
        """Drop every in-flight transaction. Returns how many were dropped."""
        dropped = len(self._pending)
        self._pending.clear()
        return dropped

    def _is_stripped(self, name: str) -> bool:
        lowered = name.lower()
        return any(lowered.startswith(prefix) for prefix in self.stripped_header_prefixes)
