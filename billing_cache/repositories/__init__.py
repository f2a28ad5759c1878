"""
Repositories Module

Cached access to billing reference entities in the durable store.
"""

from .base import CachedRepository
from .models import (
    MoneyBackCostMerchant,
    MoneyBackCostMerchantList,
    MoneyBackCostMerchantSet,
    PriceGroup,
)
from .money_back_cost_merchant import MoneyBackCostMerchantRepository
from .price_group import PriceGroupRepository

__all__ = [
    "CachedRepository",
    "PriceGroup",
    "MoneyBackCostMerchant",
    "MoneyBackCostMerchantList",
    "MoneyBackCostMerchantSet",
    "PriceGroupRepository",
    "MoneyBackCostMerchantRepository",
]
