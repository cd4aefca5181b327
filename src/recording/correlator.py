"""Interaction-to-network correlation.

A finished transaction that started shortly after the most recent
interaction is treated as caused by it and nested under it. Everything
else lands in the timeline as a standalone entry.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from .errors import IndexOutOfRange
from .models import TransactionEntry
from .timeline import TimelineStore

logger = structlog.get_logger()

DEFAULT_CORRELATION_WINDOW_MS = 2000


@dataclass
class CorrelationResult:
    """Where a transaction ended up."""

    index: int
    attached: bool


class Correlator:
    """Time-window correlator between interactions and transactions."""

    def __init__(self, window_ms: Optional[int] = None):
        """Initialize correlator.

        Args:
            window_ms: Max gap between interaction and transaction start
        """
        self.window_ms = window_ms if window_ms is not None else DEFAULT_CORRELATION_WINDOW_MS
        self.log = logger.bind(component="correlator")

    def correlate(self, transaction: TransactionEntry, timeline: TimelineStore) -> CorrelationResult:
        cursor = timeline.last_interaction_cursor()

        if cursor is not None and transaction.start_timestamp - cursor.timestamp < self.window_ms:
            try:
                timeline.attach_transaction(cursor.index, transaction)
                self.log.debug(
                    "Transaction attached to interaction",
                    transaction_id=transaction.transaction_id,
                    index=cursor.index,
                )
                return CorrelationResult(index=cursor.index, attached=True)
            except IndexOutOfRange:
                self.log.warning(
                    "Attach target missing, appending standalone",
                    transaction_id=transaction.transaction_id,
                    index=cursor.index,
                )

        index = timeline.append(transaction)
        self.log.debug(
            "Transaction logged standalone",
            transaction_id=transaction.transaction_id,
            index=index,
        )
        return CorrelationResult(index=index, attached=False)
