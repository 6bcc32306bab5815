"""Push-based notification streams published by the match coordinator."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
Handler = Callable[[T], None]


@dataclass(frozen=True)
class Subscription:
    """Handle returned by ``subscribe``; pass it back to ``unsubscribe``."""

    id: int


class Stream(Generic[T]):
    """Synchronous in-process pub/sub; late subscribers see nothing earlier."""

    def __init__(self, name: str = "stream") -> None:
        self.name = name
        self._next_id = 1
        self._handlers: dict[int, Handler] = {}

    def subscribe(self, handler: Handler) -> Subscription:
        sub_id = self._next_id
        self._next_id += 1
        self._handlers[sub_id] = handler
        return Subscription(sub_id)

    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove a subscription if present."""
        self._handlers.pop(subscription.id, None)

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)

    def publish(self, value: T) -> int:
        """Deliver ``value`` to every handler in subscription order; return how many succeeded.

        A handler that raises is logged and skipped; the rest still receive the value.
        """
        invoked = 0
        for handler in tuple(self._handlers.values()):
            try:
                handler(value)
            except Exception:
                logger.exception("subscriber_failed", extra={"stream": self.name})
                continue
            invoked += 1
        return invoked


class ValueStream(Stream[T]):
    """A stream that remembers its latest value and replays it on subscribe."""

    def __init__(self, initial: T, name: str = "value_stream") -> None:
        super().__init__(name)
        self._value = initial

    @property
    def value(self) -> T:
        return self._value

    def subscribe(self, handler: Handler) -> Subscription:
        subscription = super().subscribe(handler)
        handler(self._value)
        return subscription

    def publish(self, value: T) -> int:
        self._value = value
        return super().publish(value)
