"""
Billing Reference Entities

Pydantic models for the entities served through the cache. Durable store
documents carry the id as ``_id``; the cached JSON carries it as ``id``.
Both validate into the same model.

Author: Billing Platform Team
Date: 2025-12-13
"""

import secrets
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def new_object_id() -> str:
    """Random 24-hex-character id in the durable store's id format."""
    return secrets.token_hex(12)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Entity(BaseModel):
    """Common fields of every stored entity."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_object_id, alias="_id")
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def to_document(self) -> dict[str, Any]:
        """Durable store representation (``_id`` key)."""
        return self.model_dump(by_alias=True)


class PriceGroup(Entity):
    """Regional price group used for currency and price conversion."""

    currency: str
    region: str
    inflation_rate: float = 0.0
    fraction: float = 0.0
    is_simple: bool = False


class MoneyBackCostMerchant(Entity):
    """Cost charged to a merchant for a refund or chargeback."""

    merchant_id: str
    name: str
    payout_currency: str
    undo_reason: str
    region: str
    country: str = ""
    days_from: int = 0
    payment_stage: int = 1
    percent: float = 0.0
    fix_amount: float = 0.0
    fix_amount_currency: str = ""
    is_paid_by_merchant: bool = False
    mcc_code: str = ""

    @field_validator("fix_amount")
    @classmethod
    def round_fix_amount(cls, v: float) -> float:
        return round(v, 2)

    @field_validator("percent")
    @classmethod
    def round_percent(cls, v: float) -> float:
        return round(v, 4)


class MoneyBackCostMerchantSet(BaseModel):
    """Matching cost records of one country (``""`` is the region-wide fallback)."""

    country: str
    set: list[MoneyBackCostMerchant]


class MoneyBackCostMerchantList(BaseModel):
    items: list[MoneyBackCostMerchant] = Field(default_factory=list)
