"""Append-only timeline of a capture session."""

from dataclasses import replace
from typing import Optional

from .errors import IndexOutOfRange
from .models import Interaction, LastInteractionCursor, TimelineEntry, TransactionEntry


class TimelineStore:
    """Ordered entries of one session.

    Entries are never reordered or removed; an index stays valid for the
    life of the store. The store also tracks the most recently appended
    interaction for the correlator.
    """

    def __init__(self):
        self._entries: list[TimelineEntry] = []
        self._cursor: Optional[LastInteractionCursor] = None

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, entry: TimelineEntry) -> int:
        """Append an entry and return its index."""
        self._entries.append(entry)
        index = len(self._entries) - 1
        if isinstance(entry, Interaction):
            self._cursor = LastInteractionCursor(index=index, timestamp=entry.timestamp)
        return index

    def last_interaction_cursor(self) -> Optional[LastInteractionCursor]:
        return self._cursor

    def attach_transaction(self, index: int, transaction: TransactionEntry) -> None:
        """Attach a transaction to the interaction at ``index``.

        Raises:
            IndexOutOfRange: If ``index`` is not an interaction entry
        """
        if not 0 <= index < len(self._entries):
            raise IndexOutOfRange(index)
        entry = self._entries[index]
        if not isinstance(entry, Interaction):
            raise IndexOutOfRange(index)
        entry.associated_transactions.append(transaction)

    def snapshot(self) -> tuple[TimelineEntry, ...]:
        """Point-in-time copy of the entries.

        Interactions are copied so later attachments do not change the snapshot.
        """
        return tuple(
            replace(entry, associated_transactions=list(entry.associated_transactions))
            if isinstance(entry, Interaction)
            else entry
            for entry in self._entries
        )

    def to_dicts(self) -> list[dict]:
        """Render the timeline for export."""
        return [entry.to_dict() for entry in self._entries]
