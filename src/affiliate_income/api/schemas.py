"""Pydantic models for API requests and responses."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from ..ledger.schemas import LedgerPayload


class IncomeReportRequest(LedgerPayload):
    """Full ledger snapshot to aggregate."""


class ReferralCodeRequest(BaseModel):
    code: str = Field(..., description="Referral code as typed by the admin")


class ReferralCodeResponse(BaseModel):
    valid: bool
    code: str
    message: Optional[str] = None
    referral_link: Optional[str] = None


class SubscriptionCommissionResponse(BaseModel):
    affiliate_commission_cents: int
    discount_cents: int
    final_price_cents: int
    platform_share_cents: int
    final_affiliate_commission_cents: int
    parent_commission_cents: int


class TransactionCommissionResponse(BaseModel):
    commission_cents: int
    parent_commission_cents: int


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    detail: Any = None
    errors: List[Dict[str, Any]] = Field(default_factory=list)
