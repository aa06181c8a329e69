"""Fixed-capacity ring buffer holding recent context under a token budget."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .models import LogEntry

logger = logging.getLogger(__name__)


def estimate_tokens(text: str) -> int:
    """Rough token estimate (about four characters per token)."""
    return len(text) // 4


def trim_to_budget(entries: Sequence[LogEntry], token_budget: int) -> list[LogEntry]:
    """Keep the newest suffix of `entries` whose token cost fits the budget.

    The newest entry is always kept, even when it alone exceeds the budget.
    """
    tokens = 0
    start = len(entries)
    for i in range(len(entries) - 1, -1, -1):
        cost = estimate_tokens(entries[i].text)
        if start < len(entries) and tokens + cost > token_budget:
            logger.debug("Skipping oldest lines including line %d", entries[i].line_no)
            break
        tokens += cost
        start = i
    return list(entries[start:])


class RingBuffer:
    """Circular store of classified entries.

    `filled` counts writes since the last clear and may grow past `capacity`;
    only its comparison with `capacity` matters to `dump`.
    """

    def __init__(self, capacity: int, token_budget: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        logger.debug("Initializing ring buffer of size %d and token budget %d", capacity, token_budget)
        self._capacity = capacity
        self._token_budget = token_budget
        self._slots: list[LogEntry | None] = [None] * capacity
        self._cursor = 0
        self._filled = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def token_budget(self) -> int:
        return self._token_budget

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def filled(self) -> int:
        return self._filled

    @property
    def slots(self) -> list[LogEntry | None]:
        """Copy of the raw slot array (write order, not chronological)."""
        return list(self._slots)

    def append(self, entry: LogEntry) -> None:
        self._slots[self._cursor] = entry
        self._cursor = (self._cursor + 1) % self._capacity
        self._filled += 1

    def dump(self) -> list[LogEntry]:
        """Return resident entries oldest-first, trimmed to the token budget."""
        if self._filled > self._capacity:
            seq = self._slots[self._cursor :] + self._slots[: self._cursor]
        elif self._cursor == 0 and self._filled > 0:
            seq = self._slots[: self._capacity]
        else:
            seq = self._slots[: self._cursor]
        entries = [e for e in seq if e is not None]
        return trim_to_budget(entries, self._token_budget)

    def clear(self) -> None:
        self._cursor = 0
        self._filled = 0
        self._slots = [None] * self._capacity

    def __len__(self) -> int:
        return min(self._filled, self._capacity)

    def __repr__(self) -> str:
        return f"RingBuffer(capacity={self._capacity}, filled={self._filled}, cursor={self._cursor})"
