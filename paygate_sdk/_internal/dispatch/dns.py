"""Process-wide DNS cache TTL and the per-call override around it.

The TTL is consulted by the direct transport: pooled connections never
outlive it, so a provider failover is picked up on the next call. Each
dispatch disables caching for its duration and restores the prior value
afterwards.

Concurrent dispatches share this one setting. A call that finishes first
restores the value while another call is still inside its override window.
That race is accepted; the override is never held beyond a single call.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager

DNS_CACHE_TTL_DISABLED = 0
# Restored when nothing was set before the call.
DNS_CACHE_TTL_FOREVER = -1


class DnsCacheSetting:
    """A single mutable DNS cache TTL in seconds (None when unset)."""

    def __init__(self, ttl: int | None = None) -> None:
        self._ttl = ttl
        self._lock = threading.Lock()

    def get(self) -> int | None:
        with self._lock:
            return self._ttl

    def set(self, ttl: int | None) -> None:
        with self._lock:
            self._ttl = ttl

    def keepalive_expiry(self) -> float | None:
        """How long an idle pooled connection may live, or None for no limit."""
        ttl = self.get()
        if ttl is None or ttl < 0:
            return None
        return float(ttl)


dns_cache_ttl = DnsCacheSetting()


@contextmanager
def dns_cache_disabled(setting: DnsCacheSetting = dns_cache_ttl) -> Iterator[None]:
    """Disable DNS caching for the enclosed block.

    On exit, including on error, the saved value is restored, or
    `DNS_CACHE_TTL_FOREVER` if nothing was set before.
    """
    original = setting.get()
    setting.set(DNS_CACHE_TTL_DISABLED)
    try:
        yield
    finally:
        setting.set(original if original is not None else DNS_CACHE_TTL_FOREVER)
