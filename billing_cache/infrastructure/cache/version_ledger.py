"""
Version Ledgers

The VersionRegistry keeps the ordered list of live namespace names in a
ledger. Two implementations:

- InMemoryVersionLedger: process-local; sequence numbers from a counter.
- RedisVersionLedger: a sorted set (member = namespace name, score =
  sequence) plus an INCR counter, so every service instance sharing the
  backend sees the same versions in the same order. This is how a new
  deployment's namespace pushes out the namespace of a deployment two
  releases back.

Ledger keys contain ``#``, which namespace names cannot, so flushing a
namespace never touches the ledger.
"""

import itertools
from typing import Protocol, runtime_checkable

from billing_cache.infrastructure.cache.redis_client import RedisClient

LEDGER_MEMBERS_KEY = "#versions"
LEDGER_SEQUENCE_KEY = "#versions-seq"


@runtime_checkable
class VersionLedger(Protocol):
    """Ordered record of live namespace names."""

    async def add(self, name: str) -> int:
        """Record ``name`` if new; return its creation sequence number either way."""
        ...

    async def versions(self) -> list[tuple[str, int]]:
        """Live names with their sequence numbers, oldest first."""
        ...

    async def remove(self, name: str) -> None:
        ...

    async def contains(self, name: str) -> bool:
        """Whether ``name`` is still recorded (false once any process evicted it)."""
        ...


class InMemoryVersionLedger:
    """Process-local ledger."""

    def __init__(self):
        self._versions: dict[str, int] = {}
        self._counter = itertools.count()

    async def add(self, name: str) -> int:
        if name not in self._versions:
            self._versions[name] = next(self._counter)
        return self._versions[name]

    async def versions(self) -> list[tuple[str, int]]:
        return sorted(self._versions.items(), key=lambda item: item[1])

    async def remove(self, name: str) -> None:
        self._versions.pop(name, None)

    async def contains(self, name: str) -> bool:
        return name in self._versions


class RedisVersionLedger:
    """Ledger shared by every process connected to the same Redis."""

    def __init__(self, client: RedisClient):
        self._client = client

    async def add(self, name: str) -> int:
        sequence = await self._client.incr(LEDGER_SEQUENCE_KEY)
        if await self._client.zadd_nx(LEDGER_MEMBERS_KEY, name, sequence):
            return sequence

        # Already recorded by an earlier call; keep its original position.
        existing = await self._client.zscore(LEDGER_MEMBERS_KEY, name)
        if existing is None:
            # Evicted between the two calls: record it again as the newest.
            await self._client.zadd_nx(LEDGER_MEMBERS_KEY, name, sequence)
            return sequence
        return int(existing)

    async def versions(self) -> list[tuple[str, int]]:
        members = await self._client.zrange_with_scores(LEDGER_MEMBERS_KEY)
        return [(name, int(score)) for name, score in members]

    async def remove(self, name: str) -> None:
        await self._client.zrem(LEDGER_MEMBERS_KEY, name)

    async def contains(self, name: str) -> bool:
        return await self._client.zscore(LEDGER_MEMBERS_KEY, name) is not None
