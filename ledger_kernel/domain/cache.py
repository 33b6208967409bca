"""
ExpiringCache -- per-instance lookup cache with explicit expiry.

Each entry stores the timestamp after which it is stale.  A miss or an
expired entry returns ``MISSING`` so the caller goes back to the port.
Owned by a single validator instance; never shared across instances.
"""

from collections.abc import Callable, Hashable
from typing import Any, Final

from ledger_kernel.domain.clock import Clock


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Final = _Missing()


class ExpiringCache:

    def __init__(self, ttl_seconds: float, clock: Clock):
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be non-negative")
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, tuple[float, Any]] = {}

    def get(self, key: Hashable) -> Any:
        hit = self._entries.get(key)
        if hit is None:
            return MISSING
        expires_at, value = hit
        if self._clock.timestamp() >= expires_at:
            del self._entries[key]
            return MISSING
        return value

    def put(self, key: Hashable, value: Any) -> None:
        self._entries[key] = (self._clock.timestamp() + self._ttl, value)

    def get_or_load(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        value = self.get(key)
        if value is MISSING:
            value = loader()
            self.put(key, value)
        return value

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
