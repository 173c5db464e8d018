"""Preview of the next affiliate payout batch.

The payout job itself runs elsewhere; this only answers "who would be paid,
how much, and who is held back and why" from the current ledger.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional

from ..core.config import ProgramConfig
from ..ledger.models import (
    Affiliate,
    AffiliateStatus,
    Commission,
    CommissionStatus,
    Payout,
    PayoutStatus,
    as_utc,
    utc_now,
)

logger = logging.getLogger(__name__)


class SkipReason(Enum):
    """Why an affiliate's available balance is held back."""
    UNKNOWN_AFFILIATE = "unknown_affiliate"
    SUSPENDED = "suspended"
    BELOW_MINIMUM = "below_minimum"
    NO_PAYOUT_ACCOUNT = "no_payout_account"
    ONBOARDING_INCOMPLETE = "onboarding_incomplete"


@dataclass
class PayoutCandidate:
    """A payout the next batch would send."""
    affiliate_id: str
    amount_cents: int
    commission_ids: List[str]
    period_start: datetime
    period_end: datetime

    def to_dict(self) -> Dict:
        return {
            'affiliate_id': self.affiliate_id,
            'amount_cents': self.amount_cents,
            'commission_ids': list(self.commission_ids),
            'commission_count': len(self.commission_ids),
            'period_start': self.period_start.isoformat(),
            'period_end': self.period_end.isoformat(),
        }


@dataclass
class SkippedPayout:
    """An available balance that will not be paid in the next batch."""
    affiliate_id: str
    amount_cents: int
    reason: SkipReason

    def to_dict(self) -> Dict:
        return {
            'affiliate_id': self.affiliate_id,
            'amount_cents': self.amount_cents,
            'reason': self.reason.value,
        }


@dataclass
class PayoutPlan:
    """Result of planning one payout batch."""
    generated_at: datetime
    candidates: List[PayoutCandidate] = field(default_factory=list)
    skipped: List[SkippedPayout] = field(default_factory=list)

    @property
    def total_cents(self) -> int:
        return sum(c.amount_cents for c in self.candidates)

    def to_dict(self) -> Dict:
        return {
            'generated_at': self.generated_at.isoformat(),
            'total_cents': self.total_cents,
            'candidates': [c.to_dict() for c in self.candidates],
            'skipped': [s.to_dict() for s in self.skipped],
        }


class PayoutPlanner:
    """Group payable commissions into per-affiliate payouts."""

    def __init__(self, config: Optional[ProgramConfig] = None):
        self.config = config or ProgramConfig()

    def available_from(self, commission: Commission) -> datetime:
        """When a commission may be paid out.

        Rows without ``available_at`` are held for ``ledger_pending_days``
        after they were created.
        """
        if commission.available_at is not None:
            return as_utc(commission.available_at)
        return as_utc(commission.created_at) + timedelta(days=self.config.ledger_pending_days)

    def is_payable(self, commission: Commission, now: datetime) -> bool:
        """AVAILABLE, positive, and past its availability date."""
        if commission.status != CommissionStatus.AVAILABLE or commission.amount_cents <= 0:
            return False
        return self.available_from(commission) <= now

    def _period_start(self, affiliate_id: str, payouts: List[Payout], now: datetime) -> datetime:
        sent = [
            as_utc(p.period_end) for p in payouts
            if p.affiliate_id == affiliate_id and p.status == PayoutStatus.SENT
        ]
        if sent:
            return max(sent) + timedelta(milliseconds=1)
        return now - timedelta(days=self.config.default_payout_period_days)

    def _skip_reason(self, affiliate: Optional[Affiliate], amount_cents: int) -> Optional[SkipReason]:
        if affiliate is None:
            return SkipReason.UNKNOWN_AFFILIATE
        if affiliate.status == AffiliateStatus.SUSPENDED:
            return SkipReason.SUSPENDED
        if amount_cents < self.config.min_payout_amount_cents:
            return SkipReason.BELOW_MINIMUM
        if not affiliate.payout_account_id:
            return SkipReason.NO_PAYOUT_ACCOUNT
        if not affiliate.payout_onboarding_completed:
            return SkipReason.ONBOARDING_INCOMPLETE
        return None

    def plan(
        self,
        commissions: Iterable[Commission],
        affiliates: Iterable[Affiliate],
        payouts: Iterable[Payout] = (),
        now: Optional[datetime] = None
    ) -> PayoutPlan:
        """Plan the next batch. Affiliates are listed in id order."""
        now = as_utc(now or utc_now())
        affiliates_by_id = {a.id: a for a in affiliates}
        payouts = list(payouts)

        groups: Dict[str, List[Commission]] = {}
        for commission in commissions:
            if self.is_payable(commission, now):
                groups.setdefault(commission.affiliate_id, []).append(commission)

        plan = PayoutPlan(generated_at=now)
        for affiliate_id in sorted(groups):
            group = groups[affiliate_id]
            amount_cents = sum(c.amount_cents for c in group)

            reason = self._skip_reason(affiliates_by_id.get(affiliate_id), amount_cents)
            if reason:
                plan.skipped.append(SkippedPayout(affiliate_id, amount_cents, reason))
                continue

            plan.candidates.append(PayoutCandidate(
                affiliate_id=affiliate_id,
                amount_cents=amount_cents,
                commission_ids=[c.id for c in group],
                period_start=self._period_start(affiliate_id, payouts, now),
                period_end=now,
            ))

        logger.info(
            f"Planned {len(plan.candidates)} payout(s) totalling {plan.total_cents} cents, "
            f"{len(plan.skipped)} skipped"
        )
        return plan
