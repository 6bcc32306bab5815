"""Identity allocation for ships and participants."""

from __future__ import annotations


class IdentityAllocator:
    """Issues strictly increasing identities starting at ``start``.

    Each match owns its own allocator so identities never leak between
    sessions or tests.
    """

    def __init__(self, start: int = 1) -> None:
        if start < 1:
            raise ValueError("Identities must start at 1 or above.")
        self._next = start

    def next_id(self) -> int:
        """Return a new identity."""
        identity = self._next
        self._next += 1
        return identity

    @property
    def peek(self) -> int:
        """The identity the next call to :meth:`next_id` will return."""
        return self._next
