"""Per-affiliate income aggregation over the commission and payout ledgers.

Everything here is a pure fold over integer cents: the same ledger snapshot
always produces the same figures, and no amount is ever divided or rounded.
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from ..hierarchy.resolver import AffiliateHierarchy
from ..ledger.models import (
    Affiliate,
    Commission,
    CommissionEventType,
    CommissionStatus,
    CommissionTier,
    Payout,
    PayoutStatus,
)
from .trends import monthly_trend

logger = logging.getLogger(__name__)


@dataclass
class AffiliateIncome:
    """Income summary of one affiliate, recomputed on every report."""
    affiliate_id: str

    # Earned on the affiliate's own ledger (all tiers), reversed rows excluded
    direct_subscription_income: int = 0
    direct_transaction_income: int = 0
    refund_amount: int = 0
    total_income: int = 0

    # Status buckets
    paid_out: int = 0
    pending: int = 0
    available: int = 0

    # Tier portions of the direct figures
    parent_subscription_income: int = 0
    parent_transaction_income: int = 0
    sub_subscription_income: int = 0
    sub_transaction_income: int = 0

    # Reversed rows, kept for audit display only
    reversed_amount: int = 0
    reversed_count: int = 0

    commission_count: int = 0
    subscription_count: int = 0
    transaction_count: int = 0
    refund_count: int = 0
    parent_subscription_count: int = 0
    parent_transaction_count: int = 0
    sub_subscription_count: int = 0
    sub_transaction_count: int = 0

    payouts_sent: int = 0
    monthly_income: Dict[str, int] = field(default_factory=dict)

    parent_affiliate_id: Optional[str] = None
    child_affiliate_ids: List[str] = field(default_factory=list)

    def tier_totals(self) -> Dict[str, Dict[str, int]]:
        """Split the direct figures by tier; the three tiers sum to the direct figures."""
        return {
            CommissionTier.DIRECT.value: {
                'subscription': self.direct_subscription_income
                - self.sub_subscription_income - self.parent_subscription_income,
                'transaction': self.direct_transaction_income
                - self.sub_transaction_income - self.parent_transaction_income,
            },
            CommissionTier.SUB.value: {
                'subscription': self.sub_subscription_income,
                'transaction': self.sub_transaction_income,
            },
            CommissionTier.PARENT.value: {
                'subscription': self.parent_subscription_income,
                'transaction': self.parent_transaction_income,
            },
        }

    def to_dict(self) -> Dict:
        return asdict(self)


def _fold(income: AffiliateIncome, commission: Commission):
    income.commission_count += 1

    if commission.status == CommissionStatus.PAID:
        income.paid_out += commission.amount_cents
    elif commission.status == CommissionStatus.PENDING:
        income.pending += commission.amount_cents
    elif commission.status == CommissionStatus.AVAILABLE:
        income.available += commission.amount_cents

    if commission.event_type.is_reversal:
        income.refund_amount += -commission.amount_cents
        income.refund_count += 1
        return

    if commission.status == CommissionStatus.REVERSED:
        income.reversed_amount += commission.amount_cents
        income.reversed_count += 1
        return

    amount = commission.amount_cents
    tier = commission.tier
    if commission.event_type == CommissionEventType.SUBSCRIPTION:
        income.direct_subscription_income += amount
        income.subscription_count += 1
        if tier == CommissionTier.PARENT:
            income.parent_subscription_income += amount
            income.parent_subscription_count += 1
        elif tier == CommissionTier.SUB:
            income.sub_subscription_income += amount
            income.sub_subscription_count += 1
    else:
        income.direct_transaction_income += amount
        income.transaction_count += 1
        if tier == CommissionTier.PARENT:
            income.parent_transaction_income += amount
            income.parent_transaction_count += 1
        elif tier == CommissionTier.SUB:
            income.sub_transaction_income += amount
            income.sub_transaction_count += 1


def _build_income(
    affiliate_id: str,
    commissions: List[Commission],
    payouts: List[Payout],
    now: Optional[datetime],
    months: int
) -> AffiliateIncome:
    income = AffiliateIncome(affiliate_id=affiliate_id)
    for commission in commissions:
        _fold(income, commission)

    income.total_income = (
        income.direct_subscription_income
        + income.direct_transaction_income
        - income.refund_amount
    )
    income.payouts_sent = sum(p.amount_cents for p in payouts if p.status == PayoutStatus.SENT)
    income.monthly_income = monthly_trend(commissions, now=now, months=months)
    return income


def aggregate_affiliate_income(
    affiliate_id: str,
    commissions: Iterable[Commission],
    payouts: Iterable[Payout] = (),
    now: Optional[datetime] = None,
    months: int = 12
) -> AffiliateIncome:
    """Aggregate the ledger rows of a single affiliate."""
    own_commissions = [c for c in commissions if c.affiliate_id == affiliate_id]
    own_payouts = [p for p in payouts if p.affiliate_id == affiliate_id]
    return _build_income(affiliate_id, own_commissions, own_payouts, now, months)


def aggregate_incomes(
    affiliates: Iterable[Affiliate],
    commissions: Iterable[Commission],
    payouts: Iterable[Payout] = (),
    hierarchy: Optional[AffiliateHierarchy] = None,
    now: Optional[datetime] = None,
    months: int = 12
) -> List[AffiliateIncome]:
    """Aggregate every affiliate in one pass over each ledger.

    Rows of affiliates not in ``affiliates`` are skipped here; see
    :func:`unattributed_rows` for reporting them.

    Results follow the order of ``affiliates``. When a hierarchy is given,
    each income carries its accepted parent and children.
    """
    affiliates = list(affiliates)
    commissions_by_affiliate: Dict[str, List[Commission]] = {a.id: [] for a in affiliates}
    payouts_by_affiliate: Dict[str, List[Payout]] = {a.id: [] for a in affiliates}

    for commission in commissions:
        if commission.affiliate_id in commissions_by_affiliate:
            commissions_by_affiliate[commission.affiliate_id].append(commission)
    for payout in payouts:
        if payout.affiliate_id in payouts_by_affiliate:
            payouts_by_affiliate[payout.affiliate_id].append(payout)

    incomes = []
    for affiliate in affiliates:
        income = _build_income(
            affiliate.id,
            commissions_by_affiliate[affiliate.id],
            payouts_by_affiliate[affiliate.id],
            now,
            months
        )
        if hierarchy is not None:
            income.parent_affiliate_id = hierarchy.parent_of(affiliate)
            income.child_affiliate_ids = [c.id for c in hierarchy.children_of(affiliate.id)]
        incomes.append(income)

    return incomes


def unattributed_rows(rows: Iterable, affiliate_ids: Iterable[str], kind: str) -> List[Dict]:
    """Ledger rows whose affiliate is missing from the affiliate ledger.

    They cannot be aggregated, so they are returned for the report and logged.
    """
    known = set(affiliate_ids)
    missing = []
    for row in rows:
        if row.affiliate_id in known:
            continue
        logger.warning(f"{kind.capitalize()} {row.id} references unknown affiliate {row.affiliate_id}")
        missing.append({
            'id': row.id,
            'affiliate_id': row.affiliate_id,
            'amount_cents': row.amount_cents,
        })
    return missing
