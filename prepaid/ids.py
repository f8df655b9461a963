"""Identifier generation for owners, cards, merchants and authorization requests."""

import itertools
import threading
from typing import Protocol


class IdGenerator(Protocol):
    def next_owner_id(self) -> int: ...

    def next_card_id(self) -> int: ...

    def next_merchant_id(self) -> int: ...

    def next_authorization_request_id(self) -> int: ...


class SequentialIdGenerator:
    """Monotonic integer ids starting at 1, one counter per entity kind.

    Ids are never reused for the lifetime of the generator.
    """

    def __init__(self, start: int = 1):
        self._lock = threading.Lock()
        self._owners = itertools.count(start)
        self._cards = itertools.count(start)
        self._merchants = itertools.count(start)
        self._authorization_requests = itertools.count(start)

    def _next(self, counter: "itertools.count[int]") -> int:
        with self._lock:
            return next(counter)

    def next_owner_id(self) -> int:
        return self._next(self._owners)

    def next_card_id(self) -> int:
        return self._next(self._cards)

    def next_merchant_id(self) -> int:
        return self._next(self._merchants)

    def next_authorization_request_id(self) -> int:
        return self._next(self._authorization_requests)
