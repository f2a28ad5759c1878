"""
Price Group Repository

Cache keys:
    price_group:id:<id>          canonical, repopulated after writes
    price_group:region:<region>  lookup by region, deleted on writes
    price_group:all              every active group, deleted on writes

Author: Billing Platform Team
Date: 2025-12-13
"""

from collections.abc import Sequence

from billing_cache.core.validators import parse_object_id
from billing_cache.infrastructure.cache.keys import InvalidationGroup, KeyTemplate
from billing_cache.repositories.base import CachedRepository
from billing_cache.repositories.models import PriceGroup, utc_now

PRICE_GROUP_BY_ID = KeyTemplate("price_group", "id")
PRICE_GROUP_BY_REGION = KeyTemplate("price_group", "region")
PRICE_GROUP_ALL = "price_group:all"


class PriceGroupRepository(CachedRepository):
    entity_name = "Price group"

    async def get_by_id(self, id: str) -> PriceGroup:
        oid = parse_object_id(id)

        async def load() -> PriceGroup:
            document = await self._find_one({"_id": oid, "is_active": True})
            return PriceGroup.model_validate(document)

        return await self.cache.get_or_load(PRICE_GROUP_BY_ID.key(id=oid), load, model=PriceGroup)

    async def get_by_region(self, region: str) -> PriceGroup:
        async def load() -> PriceGroup:
            document = await self._find_one({"region": region, "is_active": True})
            return PriceGroup.model_validate(document)

        return await self.cache.get_or_load(PRICE_GROUP_BY_REGION.key(region=region), load, model=PriceGroup)

    async def get_all(self) -> list[PriceGroup]:
        async def load() -> list[PriceGroup]:
            documents = await self._find_all({"is_active": True})
            return [PriceGroup.model_validate(document) for document in documents]

        return await self.cache.get_or_load(PRICE_GROUP_ALL, load, model=list[PriceGroup])

    async def insert(self, group: PriceGroup) -> PriceGroup:
        async def write() -> PriceGroup:
            await self._insert_one(group.to_document())
            return group

        return await self.cache.write_and_invalidate(
            write,
            self._invalidation_group(group),
            PRICE_GROUP_BY_ID.key(id=group.id),
            is_active=lambda stored: stored.is_active,
        )

    async def multiple_insert(self, groups: Sequence[PriceGroup]) -> list[PriceGroup]:
        async def write() -> list[PriceGroup]:
            await self._insert_many([group.to_document() for group in groups])
            return list(groups)

        keys = InvalidationGroup.of()
        for group in groups:
            keys = keys | self._invalidation_group(group)

        return await self.cache.update_fragment(write, *keys.all_keys())

    async def update(self, group: PriceGroup) -> PriceGroup:
        oid = parse_object_id(group.id)
        group.id = oid
        group.updated_at = utc_now()

        keys = self._invalidation_group(group)
        previous = await self._find_optional({"_id": oid})
        if previous is not None:
            # A changed region leaves the old region key behind otherwise.
            keys = keys | self._invalidation_group(PriceGroup.model_validate(previous))

        async def write() -> PriceGroup:
            await self._replace_one({"_id": oid}, group.to_document())
            return group

        return await self.cache.write_and_invalidate(
            write,
            keys,
            PRICE_GROUP_BY_ID.key(id=oid),
            is_active=lambda stored: stored.is_active,
        )

    @staticmethod
    def _invalidation_group(group: PriceGroup) -> InvalidationGroup:
        return InvalidationGroup.of(
            PRICE_GROUP_BY_REGION.key(region=group.region),
            aggregates=[PRICE_GROUP_ALL],
        )
