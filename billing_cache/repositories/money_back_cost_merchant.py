"""
Merchant Money-Back Cost Repository

Cost records are looked up by the full tuple (merchant, name, payout
currency, undo reason, region, country, payment stage, MCC code). A record
without a country applies to the whole region, so ``find`` returns the set
for the requested country followed by the region-wide set. Each set is
cached under its own lookup key (the requested country, and the
``country=""`` variant).

Cache keys:
    pucm:id:<id>                                       canonical
    pucm:merchant_id:<m>:name:<n>:...:mcc_code:<c>     lookup, one per country
    pucm:all:<merchant_id>                             aggregate per merchant

Every write deletes the lookup variants and the merchant aggregate; the
canonical key is repopulated unless the record was deactivated.

Author: Billing Platform Team
Date: 2025-12-13
"""

from collections.abc import Sequence

from billing_cache.core.interfaces.store import Filter
from billing_cache.core.validators import parse_object_id
from billing_cache.infrastructure.cache.keys import CacheKey, InvalidationGroup, KeyTemplate
from billing_cache.repositories.base import CachedRepository
from billing_cache.repositories.models import (
    MoneyBackCostMerchant,
    MoneyBackCostMerchantList,
    MoneyBackCostMerchantSet,
    utc_now,
)

COST_BY_ID = KeyTemplate("pucm", "id")
COST_LOOKUP = KeyTemplate(
    "pucm",
    "merchant_id",
    "name",
    "payout_currency",
    "undo_reason",
    "region",
    "country",
    "payment_stage",
    "mcc_code",
)
COSTS_FOR_MERCHANT = KeyTemplate("pucm", "all")

LIST_SORT = [("name", 1), ("payout_currency", 1), ("region", 1), ("country", 1), ("mcc_code", 1)]


class MoneyBackCostMerchantRepository(CachedRepository):
    entity_name = "Money back cost"

    async def get_by_id(self, id: str) -> MoneyBackCostMerchant:
        oid = parse_object_id(id)

        async def load() -> MoneyBackCostMerchant:
            document = await self._find_one({"_id": oid, "is_active": True})
            return MoneyBackCostMerchant.model_validate(document)

        return await self.cache.get_or_load(COST_BY_ID.key(id=oid), load, model=MoneyBackCostMerchant)

    async def get_all_for_merchant(self, merchant_id: str) -> MoneyBackCostMerchantList:
        merchant_oid = parse_object_id(merchant_id, field="merchant_id")

        async def load() -> MoneyBackCostMerchantList:
            documents = await self._find_all({"merchant_id": merchant_oid, "is_active": True}, LIST_SORT)
            return MoneyBackCostMerchantList(
                items=[MoneyBackCostMerchant.model_validate(document) for document in documents]
            )

        return await self.cache.get_or_load(
            COSTS_FOR_MERCHANT.key(all=merchant_oid),
            load,
            model=MoneyBackCostMerchantList,
        )

    async def find(
        self,
        merchant_id: str,
        name: str,
        payout_currency: str,
        undo_reason: str,
        region: str,
        country: str,
        mcc_code: str,
        payment_stage: int,
    ) -> list[MoneyBackCostMerchantSet]:
        """
        Matching records grouped by country: the set for ``country`` first,
        then the region-wide (``""``) set. Names match case-insensitively.

        Each set is cached under its own lookup key, so a write to a record
        only ever invalidates the keys of its own country.
        """
        merchant_oid = parse_object_id(merchant_id, field="merchant_id")
        lookup = COST_LOOKUP.key(
            merchant_id=merchant_oid,
            name=name.casefold(),
            payout_currency=payout_currency,
            undo_reason=undo_reason,
            region=region,
            country=country,
            payment_stage=payment_stage,
            mcc_code=mcc_code,
        )

        result = []
        query = {
            "merchant_id": merchant_oid,
            "payout_currency": payout_currency,
            "undo_reason": undo_reason,
            "region": region,
            "payment_stage": payment_stage,
            "mcc_code": mcc_code,
            "is_active": True,
        }
        for set_country in dict.fromkeys((country, "")):
            costs = await self._find_set(lookup.replace(country=set_country), query, name, set_country)
            if costs:
                result.append(MoneyBackCostMerchantSet(country=set_country, set=costs))
        return result

    async def _find_set(
        self, key: CacheKey, query: Filter, name: str, country: str
    ) -> list[MoneyBackCostMerchant]:
        async def load() -> list[MoneyBackCostMerchant]:
            documents = await self._find_all(query)
            return [
                cost
                for cost in map(MoneyBackCostMerchant.model_validate, documents)
                if cost.name.casefold() == name.casefold() and cost.country == country
            ]

        return await self.cache.get_or_load(key, load, model=list[MoneyBackCostMerchant])

    async def insert(self, cost: MoneyBackCostMerchant) -> MoneyBackCostMerchant:
        cost.merchant_id = parse_object_id(cost.merchant_id, field="merchant_id")
        cost.is_active = True

        async def write() -> MoneyBackCostMerchant:
            await self._insert_one(cost.to_document())
            return cost

        return await self._write(write, cost, self._invalidation_group(cost))

    async def multiple_insert(self, costs: Sequence[MoneyBackCostMerchant]) -> list[MoneyBackCostMerchant]:
        keys = InvalidationGroup.of()
        for cost in costs:
            cost.merchant_id = parse_object_id(cost.merchant_id, field="merchant_id")
            cost.is_active = True
            keys = keys | self._invalidation_group(cost)

        async def write() -> list[MoneyBackCostMerchant]:
            await self._insert_many([cost.to_document() for cost in costs])
            return list(costs)

        return await self.cache.update_fragment(write, *keys.all_keys())

    async def update(self, cost: MoneyBackCostMerchant) -> MoneyBackCostMerchant:
        cost.is_active = True
        return await self._replace(cost)

    async def delete(self, cost: MoneyBackCostMerchant) -> MoneyBackCostMerchant:
        """Soft delete: the record stays in the durable store, inactive."""
        cost.is_active = False
        return await self._replace(cost)

    async def _replace(self, cost: MoneyBackCostMerchant) -> MoneyBackCostMerchant:
        oid = parse_object_id(cost.id)
        cost.id = oid
        cost.merchant_id = parse_object_id(cost.merchant_id, field="merchant_id")
        cost.updated_at = utc_now()

        keys = self._invalidation_group(cost)
        previous = await self._find_optional({"_id": oid})
        if previous is not None:
            keys = keys | self._invalidation_group(MoneyBackCostMerchant.model_validate(previous))

        async def write() -> MoneyBackCostMerchant:
            await self._replace_one({"_id": oid}, cost.to_document())
            return cost

        return await self._write(write, cost, keys)

    async def _write(self, write, cost: MoneyBackCostMerchant, keys: InvalidationGroup) -> MoneyBackCostMerchant:
        return await self.cache.write_and_invalidate(
            write,
            keys,
            COST_BY_ID.key(id=cost.id),
            is_active=lambda stored: stored.is_active,
        )

    @staticmethod
    def _invalidation_group(cost: MoneyBackCostMerchant) -> InvalidationGroup:
        lookup = COST_LOOKUP.key(
            merchant_id=cost.merchant_id,
            name=cost.name.casefold(),
            payout_currency=cost.payout_currency,
            undo_reason=cost.undo_reason,
            region=cost.region,
            country=cost.country,
            payment_stage=cost.payment_stage,
            mcc_code=cost.mcc_code,
        )
        return InvalidationGroup.of(
            lookup,
            lookup.replace(country=""),
            aggregates=[COSTS_FOR_MERCHANT.key(all=cost.merchant_id)],
        )
