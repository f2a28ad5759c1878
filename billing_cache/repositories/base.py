#!/usr/bin/env python3
"""
Cached Repository Base

Shared plumbing for repositories that serve durable store entities through
the cache-aside adapter:

    repository method
        ├── builds CacheKey(s) from its KeyTemplates
        ├── passes a loader / mutator closure over the durable store
        └── lets CacheAsideAdapter decide hit, miss, populate and invalidate

Durable store failures are logged with the collection, operation and query
and re-raised as RepositoryError; a lookup matching nothing raises
EntityNotFoundError. Neither is ever cached.

Author: Billing Platform Team
Date: 2025-12-13
"""

from collections.abc import Sequence
from typing import Any

from billing_cache.core.config.constants import (
    LOG_FIELD_COLLECTION,
    LOG_FIELD_OPERATION,
    LOG_FIELD_QUERY,
    Stage,
)
from billing_cache.core.exceptions import EntityNotFoundError, RepositoryError
from billing_cache.core.interfaces.store import Document, DurableStore, Filter
from billing_cache.core.logging.logger import get_logger
from billing_cache.infrastructure.cache.cache_aside import CacheAsideAdapter

logger = get_logger(__name__)

OPERATION_FIND = "find"
OPERATION_INSERT = "insert"
OPERATION_UPDATE = "update"


class CachedRepository:
    """
    Base class for repositories backed by one durable store collection.

    Subclasses set ``entity_name`` and declare their KeyTemplates as class
    attributes.
    """

    entity_name = "entity"

    def __init__(self, store: DurableStore, cache: CacheAsideAdapter):
        self.store = store
        self.cache = cache

    @property
    def collection(self) -> str:
        return self.store.name

    def _failed(self, operation: str, query: Any, error: Exception) -> RepositoryError:
        logger.error(
            "Durable store query failed",
            stage=Stage.STORE.value,
            error=str(error),
            **{
                LOG_FIELD_COLLECTION: self.collection,
                LOG_FIELD_OPERATION: operation,
                LOG_FIELD_QUERY: repr(query),
            },
        )
        return RepositoryError.from_exception(
            error,
            message=f"{self.collection} {operation} failed",
            collection=self.collection,
            operation=operation,
        )

    async def _find_optional(self, query: Filter) -> Document | None:
        try:
            return await self.store.find_one(query)
        except Exception as e:
            raise self._failed(OPERATION_FIND, query, e) from e

    async def _find_one(self, query: Filter) -> Document:
        document = await self._find_optional(query)
        if document is None:
            raise EntityNotFoundError(
                f"{self.entity_name} not found",
                details={LOG_FIELD_COLLECTION: self.collection, LOG_FIELD_QUERY: repr(query)},
            )
        return document

    async def _find_all(self, query: Filter, sort: Sequence[tuple[str, int]] | None = None) -> list[Document]:
        try:
            return [document async for document in self.store.find(query, sort=sort)]
        except Exception as e:
            raise self._failed(OPERATION_FIND, query, e) from e

    async def _insert_one(self, document: Document) -> None:
        try:
            await self.store.insert_one(document)
        except Exception as e:
            raise self._failed(OPERATION_INSERT, document, e) from e

    async def _insert_many(self, documents: Sequence[Document]) -> None:
        try:
            await self.store.insert_many(documents)
        except Exception as e:
            raise self._failed(OPERATION_INSERT, documents, e) from e

    async def _replace_one(self, query: Filter, document: Document) -> None:
        try:
            await self.store.replace_one(query, document)
        except Exception as e:
            raise self._failed(OPERATION_UPDATE, query, e) from e
