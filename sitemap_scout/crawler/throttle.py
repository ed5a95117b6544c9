# sitemap_scout/crawler/throttle.py
"""
Per-host throttle gate: keeps requests to one host at least ``min_interval`` apart.

Advisory congestion control only. Each caller reserves the next free slot for
its host under a lock and then sleeps outside of it, so one caller waits at
most once and concurrent callers to the same host are spaced out.
"""
from __future__ import annotations

import asyncio
import threading
import time
from collections import OrderedDict
from typing import Callable, Optional
from urllib.parse import urlsplit


class HostThrottleRegistry:
    """Process-wide map ``host -> last reserved request time`` with LRU eviction."""

    def __init__(
        self,
        min_interval: float = 0.25,
        max_hosts: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")
        if max_hosts < 1:
            raise ValueError("max_hosts must be >= 1")
        self.min_interval = min_interval
        self.max_hosts = max_hosts
        self._clock = clock
        self._slots: OrderedDict[str, float] = OrderedDict()
        # threading lock: registry may be shared by crawls running in different loops
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._slots)

    def __contains__(self, host: object) -> bool:
        return host in self._slots

    def reserve(self, host: str) -> float:
        """Record the next request slot for *host* and return how long to wait for it."""
        key = host.lower()
        with self._lock:
            now = self._clock()
            last = self._slots.pop(key, None)
            slot = now if last is None else max(now, last + self.min_interval)
            self._slots[key] = slot
            while len(self._slots) > self.max_hosts:
                self._slots.popitem(last=False)
        return slot - now

    async def wait(self, host: str) -> float:
        delay = self.reserve(host)
        if delay > 0:
            await asyncio.sleep(delay)
        return delay

    async def wait_for_url(self, url: str) -> float:
        host = urlsplit(url).hostname or ""
        return await self.wait(host)


_registry: Optional[HostThrottleRegistry] = None
_registry_lock = threading.Lock()


def get_registry(min_interval: float = 0.25, max_hosts: int = 1024) -> HostThrottleRegistry:
    """Return the process-wide registry, creating it on first use.

    Parameters only apply to that first call.
    """
    global _registry
    with _registry_lock:
        if _registry is None:
            _registry = HostThrottleRegistry(min_interval=min_interval, max_hosts=max_hosts)
        return _registry


__all__ = ["HostThrottleRegistry", "get_registry"]
