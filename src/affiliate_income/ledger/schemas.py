"""Pydantic models for ledger records arriving at the system boundary.

Every payload is parsed into these models before it reaches the aggregation
code. Fields accept both snake_case and the camelCase names the dashboard
API has always used (``amountCents``, ``parentAffiliateId``).
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .models import (
    Affiliate,
    AffiliateStatus,
    Attribution,
    AttributionSource,
    AttributionType,
    Commission,
    CommissionEventType,
    CommissionStatus,
    CommissionTier,
    Payout,
    PayoutStatus,
    as_utc,
)

# Event names written by the billing webhooks
EVENT_TYPE_ALIASES = {
    "INVOICE_PAID": "SUBSCRIPTION",
    "ORDER_PAID": "TRANSACTION",
}


class LedgerModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def _upper(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().upper()
    return value


class AffiliateRecord(LedgerModel):
    id: str = Field(..., min_length=1)
    status: AffiliateStatus = AffiliateStatus.ACTIVE
    parent_affiliate_id: Optional[str] = None
    user_id: str = ""
    name: str = ""
    email: str = ""
    username: str = ""
    referral_code: str = ""
    payout_account_id: str = ""
    payout_onboarding_completed: bool = False
    created_at: Optional[datetime] = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value):
        return _upper(value)

    @field_validator("parent_affiliate_id", mode="before")
    @classmethod
    def blank_parent_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("name", "email", "username", "referral_code", "payout_account_id", "user_id", mode="before")
    @classmethod
    def none_is_blank(cls, value):
        return "" if value is None else value

    def to_record(self) -> Affiliate:
        return Affiliate(**self.model_dump())


class CommissionRecord(LedgerModel):
    id: str = Field(..., min_length=1)
    affiliate_id: str = Field(..., min_length=1)
    amount_cents: StrictInt
    status: CommissionStatus
    event_type: CommissionEventType
    created_at: datetime
    tier: CommissionTier = CommissionTier.DIRECT
    event_id: str = ""
    available_at: Optional[datetime] = None
    source_affiliate_id: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def tier_from_meta(cls, data: Any) -> Any:
        """Older rows keep the tier and sub-affiliate id inside ``meta``."""
        if not isinstance(data, dict):
            return data
        meta = data.get("meta")
        if not isinstance(meta, dict):
            return data
        data = dict(data)
        if data.get("tier") is None and meta.get("tier"):
            data["tier"] = meta["tier"]
        has_source = data.get("source_affiliate_id") or data.get("sourceAffiliateId")
        if not has_source and meta.get("subAffiliateId"):
            data["source_affiliate_id"] = meta["subAffiliateId"]
        return data

    @field_validator("event_type", mode="before")
    @classmethod
    def normalize_event_type(cls, value):
        value = _upper(value)
        return EVENT_TYPE_ALIASES.get(value, value)

    @field_validator("tier", mode="before")
    @classmethod
    def default_tier(cls, value):
        if value is None or value == "":
            return CommissionTier.DIRECT
        return _upper(value)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value):
        return _upper(value)

    @field_validator("event_id", mode="before")
    @classmethod
    def none_is_blank(cls, value):
        return "" if value is None else value

    def to_record(self) -> Commission:
        return Commission(**self.model_dump())


class PayoutRecord(LedgerModel):
    id: str = Field(..., min_length=1)
    affiliate_id: str = Field(..., min_length=1)
    amount_cents: StrictInt
    status: PayoutStatus
    period_start: datetime
    period_end: datetime
    external_transfer_ref: str = ""
    created_at: Optional[datetime] = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value):
        return _upper(value)

    @model_validator(mode="before")
    @classmethod
    def transfer_ref_alias(cls, data: Any) -> Any:
        """Payout rows from the payment provider carry ``stripeTransferId``."""
        if isinstance(data, dict) and not data.get("externalTransferRef") and data.get("stripeTransferId"):
            data = dict(data)
            data["external_transfer_ref"] = data["stripeTransferId"]
        return data

    @field_validator("external_transfer_ref", mode="before")
    @classmethod
    def none_is_blank(cls, value):
        return "" if value is None else value

    @model_validator(mode="after")
    def period_in_order(self):
        if as_utc(self.period_end) < as_utc(self.period_start):
            raise ValueError("period_end is before period_start")
        return self

    def to_record(self) -> Payout:
        return Payout(**self.model_dump())


class AttributionRecord(LedgerModel):
    id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    affiliate_id: str = Field(..., min_length=1)
    type: AttributionType
    source: AttributionSource
    created_at: datetime
    ends_at: datetime

    @field_validator("type", "source", mode="before")
    @classmethod
    def normalize_enums(cls, value):
        return _upper(value)

    def to_record(self) -> Attribution:
        return Attribution(**self.model_dump())


class LedgerPayload(LedgerModel):
    """Aggregation input: the full ledger for one report."""
    affiliates: List[Dict[str, Any]] = Field(default_factory=list)
    commissions: List[Dict[str, Any]] = Field(default_factory=list)
    payouts: List[Dict[str, Any]] = Field(default_factory=list)
    attributions: List[Dict[str, Any]] = Field(default_factory=list)
