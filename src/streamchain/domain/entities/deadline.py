"""Overall resolution deadline shared by all stages of one call."""

from __future__ import annotations

import time


class Deadline:
    """Monotonic wall-clock budget.

    Stage timeouts are clamped to :meth:`remaining`, so the sum of all
    stage timeouts can never exceed the budget the deadline started with.
    """

    __slots__ = ("_expires_at",)

    def __init__(self, seconds: float) -> None:
        self._expires_at = time.monotonic() + seconds

    def remaining(self) -> float:
        return max(0.0, self._expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0.0

    def clamp(self, timeout: float) -> float:
        """Return ``timeout`` shortened to the remaining budget."""
        return min(timeout, self.remaining())
