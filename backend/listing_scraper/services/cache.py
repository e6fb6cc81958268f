"""TTL- and capacity-bounded result cache with single-flight population."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import OrderedDict
from collections.abc import Awaitable, Callable, Sequence
from typing import NamedTuple

from listing_scraper.schemas.listing import Listing

logger = logging.getLogger(__name__)

Fetch = Callable[[], Awaitable[Sequence[Listing]]]


class _Entry(NamedTuple):
    value: tuple[Listing, ...]
    expires_at: float


class ResultCache:
    """Maps a canonical query key to the listings returned for it.

    Least-recently-used entries are evicted once ``max_entries`` is
    exceeded, and entries expire ``ttl_seconds`` after being stored.
    ``clock`` is injectable so expiry can be tested without sleeping.
    """

    def __init__(
        self,
        max_entries: int = 100,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self._max_entries = max_entries
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        # Keys currently being fetched; followers await the leader's future
        self._inflight: dict[str, asyncio.Future[tuple[Listing, ...]]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> list[Listing] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return list(entry.value)

    def set(self, key: str, value: Sequence[Listing]) -> None:
        self._entries[key] = _Entry(tuple(value), self._clock() + self._ttl)
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Cache evicted %s", evicted)

    def clear(self) -> None:
        self._entries.clear()

    async def get_or_fetch(self, key: str, fetch: Fetch) -> tuple[list[Listing], bool]:
        """
        Return ``(listings, cached)`` for ``key``, fetching on a miss.

        Lookup and fetch registration happen without yielding to the event
        loop, so concurrent misses on one key run ``fetch`` once; the other
        callers wait for that result and see ``cached=True``. A failed fetch
        stores nothing and its exception reaches every waiter.
        """
        hit = self.get(key)
        if hit is not None:
            return hit, True

        pending = self._inflight.get(key)
        if pending is not None:
            logger.info("Joining in-flight fetch for %s", key)
            return list(await asyncio.shield(pending)), True

        future: asyncio.Future[tuple[Listing, ...]] = asyncio.get_running_loop().create_future()
        self._inflight[key] = future
        try:
            value = tuple(await fetch())
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # Mark retrieved so an unobserved failure is not logged by asyncio
            future.exception()
            raise
        else:
            self.set(key, value)
            future.set_result(value)
            return list(value), False
        finally:
            self._inflight.pop(key, None)
