# -*- encoding: utf-8 -*-
"""
pgpwot Cost - Path cost and the priority queue used by backward propagation.
"""

import heapq
import itertools
from dataclasses import dataclass
from functools import total_ordering
from typing import Generic, Hashable, Optional, TypeVar


@total_ordering
@dataclass(frozen=True)
class Cost:
    """
    Cost of reaching the target from a node.

    Shorter paths are cheaper. For equal lengths, a higher trust amount is
    cheaper.

    Attributes:
        length: number of hops to the target
        amount: bottleneck trust amount along the path
    """
    length: int
    amount: int

    def _key(self) -> tuple[int, int]:
        return (self.length, -self.amount)

    def __lt__(self, other: "Cost") -> bool:
        if not isinstance(other, Cost):
            return NotImplemented
        return self._key() < other._key()

    def extend_by(self, amount: int) -> "Cost":
        """Cost after prepending one more hop with trust `amount`."""
        return Cost(self.length + 1, min(amount, self.amount))

    def __str__(self) -> str:
        return f"length {self.length}, amount {self.amount}"


K = TypeVar("K", bound=Hashable)


class PairPriorityQueue(Generic[K]):
    """
    De-duplicating min-priority queue of (key, Cost) pairs.

    Inserting a key that is already queued keeps the cheaper entry. Among
    entries of equal cost the one inserted first pops first.
    """

    def __init__(self):
        self._heap: list = []
        self._entries: dict = {}
        self._counter = itertools.count()

    def insert_or_update(self, key: K, value: Cost) -> None:
        current = self._entries.get(key)
        if current is not None and not value < current[0]:
            return
        entry = [value, next(self._counter), key, True]
        if current is not None:
            current[3] = False
        self._entries[key] = entry
        heapq.heappush(self._heap, entry)

    def pop(self) -> Optional[tuple[K, Cost]]:
        while self._heap:
            value, _, key, live = heapq.heappop(self._heap)
            if live:
                del self._entries[key]
                return key, value
        return None

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)
