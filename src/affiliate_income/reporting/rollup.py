"""Rollups, rankings and the assembled income report."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from ..core.config import ProgramConfig
from ..hierarchy.resolver import AffiliateHierarchy, HierarchyInconsistency, resolve_hierarchy
from ..ledger.models import LedgerSnapshot, utc_now
from .aggregator import AffiliateIncome, aggregate_incomes, unattributed_rows
from .statistics import attribution_summary, program_statistics

logger = logging.getLogger(__name__)


@dataclass
class AffiliateRollup:
    """A main affiliate's own income combined with its sub-affiliates'."""
    affiliate_id: str
    own_income: int
    sub_affiliate_income: int
    total_with_subs: int
    child_affiliate_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            'affiliate_id': self.affiliate_id,
            'own_income': self.own_income,
            'sub_affiliate_income': self.sub_affiliate_income,
            'total_with_subs': self.total_with_subs,
            'child_affiliate_ids': list(self.child_affiliate_ids),
        }


def ranking_key(income: AffiliateIncome):
    """Highest total income first; ties by affiliate id ascending."""
    return (-income.total_income, income.affiliate_id)


def rollup(parent: AffiliateIncome, children: Iterable[AffiliateIncome]) -> AffiliateRollup:
    children = list(children)
    sub_income = sum(child.total_income for child in children)
    return AffiliateRollup(
        affiliate_id=parent.affiliate_id,
        own_income=parent.total_income,
        sub_affiliate_income=sub_income,
        total_with_subs=parent.total_income + sub_income,
        child_affiliate_ids=[child.affiliate_id for child in children],
    )


def build_rollups(incomes: Iterable[AffiliateIncome], hierarchy: AffiliateHierarchy) -> List[AffiliateRollup]:
    """One rollup per main affiliate, ranked by the main affiliate's own income."""
    by_id = {income.affiliate_id: income for income in incomes}
    mains = [by_id[a.id] for a in hierarchy.main_affiliates if a.id in by_id]
    mains.sort(key=ranking_key)

    rollups = []
    for main in mains:
        children = [
            by_id[child.id]
            for child in hierarchy.children_of(main.affiliate_id)
            if child.id in by_id
        ]
        rollups.append(rollup(main, children))
    return rollups


def top_performers(incomes: Iterable[AffiliateIncome], limit: int = 10) -> List[AffiliateIncome]:
    """The ``limit`` affiliates with the highest total income."""
    return sorted(incomes, key=ranking_key)[:limit]


def income_totals(incomes: Iterable[AffiliateIncome]) -> Dict[str, int]:
    """Programme-wide income summary across all affiliates."""
    incomes = list(incomes)
    return {
        'direct_subscription_income': sum(i.direct_subscription_income for i in incomes),
        'direct_transaction_income': sum(i.direct_transaction_income for i in incomes),
        'sub_affiliate_income': sum(i.sub_subscription_income + i.sub_transaction_income for i in incomes),
        'parent_income': sum(i.parent_subscription_income + i.parent_transaction_income for i in incomes),
        'refund_amount': sum(i.refund_amount for i in incomes),
        'total_income': sum(i.total_income for i in incomes),
        'paid_out': sum(i.paid_out for i in incomes),
        'payouts_sent': sum(i.payouts_sent for i in incomes),
    }


@dataclass
class IncomeReport:
    """Everything the affiliate income panels render."""
    generated_at: datetime
    affiliate_incomes: List[AffiliateIncome]
    top_performers: List[AffiliateIncome]
    rollups: List[AffiliateRollup]
    totals: Dict[str, int]
    statistics: Dict
    referrals: Dict[str, Dict[str, int]]
    inconsistencies: List[HierarchyInconsistency]
    unattributed_commissions: List[Dict] = field(default_factory=list)
    unattributed_payouts: List[Dict] = field(default_factory=list)
    hierarchy: Optional[AffiliateHierarchy] = None

    def income_for(self, affiliate_id: str) -> Optional[AffiliateIncome]:
        for income in self.affiliate_incomes:
            if income.affiliate_id == affiliate_id:
                return income
        return None

    def to_dict(self) -> Dict:
        return {
            'generated_at': self.generated_at.isoformat(),
            'affiliate_incomes': [i.to_dict() for i in self.affiliate_incomes],
            'top_performers': [i.to_dict() for i in self.top_performers],
            'rollups': [r.to_dict() for r in self.rollups],
            'totals': self.totals,
            'statistics': self.statistics,
            'referrals': self.referrals,
            'inconsistencies': [i.to_dict() for i in self.inconsistencies],
            'unattributed_commissions': list(self.unattributed_commissions),
            'unattributed_payouts': list(self.unattributed_payouts),
        }


class AffiliateIncomeReport:
    """Build income reports from ledger snapshots."""

    def __init__(self, config: Optional[ProgramConfig] = None):
        self.config = config or ProgramConfig()

    def build(self, snapshot: LedgerSnapshot, now: Optional[datetime] = None) -> IncomeReport:
        """Resolve the hierarchy, aggregate every affiliate and rank the results.

        Affiliates rejected by the hierarchy resolver are reported and left
        out of incomes, rankings and rollups.
        """
        now = now or utc_now()
        hierarchy = resolve_hierarchy(snapshot.affiliates)
        rejected = set(hierarchy.rejected_ids)
        accepted = [a for a in snapshot.affiliates if a.id not in rejected]
        known_ids = {a.id for a in snapshot.affiliates}

        incomes = aggregate_incomes(
            accepted,
            snapshot.commissions,
            snapshot.payouts,
            hierarchy=hierarchy,
            now=now,
            months=self.config.trend_months,
        )

        report = IncomeReport(
            generated_at=now,
            affiliate_incomes=incomes,
            top_performers=top_performers(incomes, self.config.top_performers_limit),
            rollups=build_rollups(incomes, hierarchy),
            totals=income_totals(incomes),
            statistics=program_statistics(
                snapshot.affiliates,
                snapshot.commissions,
                snapshot.payouts,
                snapshot.attributions,
                now=now,
            ),
            referrals=attribution_summary(snapshot.attributions, now=now),
            inconsistencies=hierarchy.inconsistencies,
            unattributed_commissions=unattributed_rows(snapshot.commissions, known_ids, "commission"),
            unattributed_payouts=unattributed_rows(snapshot.payouts, known_ids, "payout"),
            hierarchy=hierarchy,
        )
        logger.info(
            f"Built income report for {len(incomes)} affiliate(s), "
            f"{len(hierarchy.inconsistencies)} hierarchy inconsistency(ies)"
        )
        return report


def build_income_report(
    snapshot: LedgerSnapshot,
    config: Optional[ProgramConfig] = None,
    now: Optional[datetime] = None
) -> IncomeReport:
    return AffiliateIncomeReport(config).build(snapshot, now=now)
