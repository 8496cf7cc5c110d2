"""Per-request deadline threaded through both phases and into the adapters."""
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, TypeVar

from citesearch.exceptions import DeadlineExceededError

T = TypeVar("T")

# httpx rejects a zero timeout, so never hand out less than this
_MIN_TIMEOUT = 0.001


@dataclass(frozen=True)
class Deadline:
    expires_at: float  # time.monotonic() value

    @classmethod
    def after(cls, seconds: float | None) -> Deadline | None:
        """Deadline `seconds` from now, or None when seconds is unset or non-positive."""
        if not seconds or seconds <= 0:
            return None
        return cls(expires_at=time.monotonic() + seconds)

    def remaining(self) -> float:
        return self.expires_at - time.monotonic()

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0

    def check(self, what: str) -> None:
        if self.expired:
            raise DeadlineExceededError(f"Deadline exceeded before {what}")

    def timeout(self, default: float) -> float:
        """Clamp a per-call timeout to the time left on the deadline."""
        return max(min(default, self.remaining()), _MIN_TIMEOUT)


def clamp_timeout(deadline: Deadline | None, default: float) -> float:
    if deadline is None:
        return default
    return deadline.timeout(default)


async def run_with_deadline(awaitable: Awaitable[T], deadline: Deadline | None, what: str) -> T:
    """Await `awaitable`, cancelling it if the deadline passes first."""
    if deadline is None:
        return await awaitable
    if deadline.expired:
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        raise DeadlineExceededError(f"Deadline exceeded before {what}")
    try:
        return await asyncio.wait_for(awaitable, timeout=deadline.timeout(deadline.remaining()))
    except asyncio.TimeoutError as exc:
        raise DeadlineExceededError(f"Deadline exceeded during {what}") from exc
