"""Affiliate income routes for the admin dashboard."""

import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, HTTPException, Query

from ...core.exceptions import InvalidReferralCodeError, LedgerValidationError
from ...reporting.filters import DashboardFilter
from ...referrals.codes import normalize_referral_code, referral_link
from ..schemas import (
    ErrorResponse,
    IncomeReportRequest,
    ReferralCodeRequest,
    ReferralCodeResponse,
    SubscriptionCommissionResponse,
    TransactionCommissionResponse,
)
from ..config import settings
from ..services import AffiliateIncomeService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/affiliates", tags=["affiliates"])


def _ledger_error(e: LedgerValidationError) -> HTTPException:
    logger.warning(f"Rejected ledger input: {e}")
    return HTTPException(
        status_code=422,
        detail={"success": False, "error": "ledger_validation_error", "detail": str(e), "errors": e.errors},
    )


@router.post("/income", responses={422: {"model": ErrorResponse}})
async def income_report(payload: IncomeReportRequest):
    """Aggregate a posted ledger snapshot into the income report."""
    service = AffiliateIncomeService()
    try:
        return service.report_from_payload(payload.model_dump())
    except LedgerValidationError as e:
        raise _ledger_error(e)


@router.get("/income", responses={422: {"model": ErrorResponse}})
async def stored_income_report(
    search: str = "",
    status: str = "all",
    affiliate_type: str = Query(default="all", alias="type"),
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
):
    """Income report over the stored ledger, with dashboard filters.

    ``date_from`` and ``date_to`` restrict the commissions that are aggregated.
    """
    if status != "all":
        status = status.upper()
    try:
        criteria = DashboardFilter(
            search=search,
            status=status,
            affiliate_type=affiliate_type,
            date_from=date_from,
            date_to=date_to,
        )
    except ValueError as e:
        raise HTTPException(400, str(e))

    service = AffiliateIncomeService()
    try:
        return service.report_from_storage(criteria)
    except LedgerValidationError as e:
        raise _ledger_error(e)


@router.post("/referral-code/validate", response_model=ReferralCodeResponse)
async def validate_code(payload: ReferralCodeRequest):
    """Check a referral code before it is saved."""
    try:
        code = normalize_referral_code(payload.code)
    except InvalidReferralCodeError as e:
        return ReferralCodeResponse(valid=False, code=e.code, message=e.message)
    return ReferralCodeResponse(valid=True, code=code, referral_link=referral_link(settings.public_origin, code))


@router.post("/payouts/preview", responses={422: {"model": ErrorResponse}})
async def payout_preview(payload: Optional[IncomeReportRequest] = None):
    """Preview the next payout batch. Without a body the stored ledger is used."""
    service = AffiliateIncomeService()
    try:
        return service.payout_preview(payload.model_dump() if payload is not None else None)
    except LedgerValidationError as e:
        raise _ledger_error(e)


@router.get("/commissions/subscription", response_model=SubscriptionCommissionResponse)
async def subscription_commission(
    fee_cents: int = Query(..., ge=0),
    discount_pct: int = Query(default=0, ge=0, le=100),
    sub_affiliate: bool = False,
):
    """Commission breakdown for a business subscription payment."""
    calculator = AffiliateIncomeService().calculator()
    breakdown = calculator.business_subscription_commission(fee_cents, discount_pct, sub_affiliate)
    parent_cents = calculator.parent_business_commission(fee_cents) if sub_affiliate else 0
    return SubscriptionCommissionResponse(
        affiliate_commission_cents=breakdown.affiliate_commission_cents,
        discount_cents=breakdown.discount_cents,
        final_price_cents=breakdown.final_price_cents,
        platform_share_cents=breakdown.platform_share_cents,
        final_affiliate_commission_cents=breakdown.final_affiliate_commission_cents,
        parent_commission_cents=parent_cents,
    )


@router.get("/commissions/transaction", response_model=TransactionCommissionResponse)
async def transaction_commission(
    fee_cents: int = Query(..., ge=0),
    buyer: bool = False,
    seller: bool = False,
    sub_affiliate: bool = False,
):
    """Commission for a marketplace order with a referred buyer and/or seller."""
    calculator = AffiliateIncomeService().calculator()
    commission = calculator.user_transaction_commission(fee_cents, buyer, seller, sub_affiliate)
    parent_cents = calculator.parent_user_transaction_commission(fee_cents, buyer, seller) if sub_affiliate else 0
    return TransactionCommissionResponse(commission_cents=commission, parent_commission_cents=parent_cents)
