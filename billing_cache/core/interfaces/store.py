"""
Durable Store Protocol

The source of truth behind every cached entity. The cache layer only ever
calls the six methods below, through loaders and mutators built by the
repositories.

Identifiers (``_id``, ``merchant_id``) travel as lowercase 24-hex strings,
the same form used in cache keys, and ``sort`` is always passed by keyword.
A Motor collection therefore needs a thin adapter that converts those
fields to and from ObjectId before it can be plugged in.

Author: Billing Platform Team
Date: 2025-12-08
"""

from collections.abc import AsyncIterator, Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

Document = dict[str, Any]
Filter = Mapping[str, Any]


@runtime_checkable
class DurableStore(Protocol):
    """One collection of the durable store."""

    name: str

    async def find_one(self, filter: Filter) -> Document | None:
        ...

    def find(self, filter: Filter, *, sort: Sequence[tuple[str, int]] | None = None) -> AsyncIterator[Document]:
        ...

    async def insert_one(self, document: Document) -> Any:
        ...

    async def insert_many(self, documents: Sequence[Document]) -> Any:
        ...

    async def replace_one(self, filter: Filter, document: Document) -> Any:
        ...

    async def count_documents(self, filter: Filter) -> int:
        ...
