"""Dashboard filters as immutable values applied by pure functions."""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable, List, Optional

from ..ledger.models import Affiliate, AffiliateStatus, Commission, LedgerSnapshot, as_utc
from .aggregator import AffiliateIncome
from .rollup import ranking_key

STATUS_ALL = "all"
TYPE_ALL = "all"
TYPE_MAIN = "main"
TYPE_SUB = "sub"


@dataclass(frozen=True)
class DashboardFilter:
    """What the admin has narrowed the affiliate panels down to."""
    search: str = ""
    status: str = STATUS_ALL  # "all" or an AffiliateStatus value
    affiliate_type: str = TYPE_ALL  # "all", "main" or "sub"
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None

    def __post_init__(self):
        valid_statuses = [STATUS_ALL] + [s.value for s in AffiliateStatus]
        if self.status not in valid_statuses:
            raise ValueError(f"Invalid status filter. Must be one of: {valid_statuses}")
        if self.affiliate_type not in (TYPE_ALL, TYPE_MAIN, TYPE_SUB):
            raise ValueError(f"Invalid affiliate type filter: {self.affiliate_type}")
        if self.date_from and self.date_to and as_utc(self.date_from) > as_utc(self.date_to):
            raise ValueError("date_from is after date_to")

    def matches_search(self, affiliate: Affiliate) -> bool:
        query = self.search.strip().lower()
        if not query:
            return True
        return any(
            query in (value or "").lower()
            for value in (affiliate.name, affiliate.email, affiliate.username)
        )

    def matches(self, affiliate: Affiliate) -> bool:
        if self.status != STATUS_ALL and affiliate.status.value != self.status:
            return False
        if self.affiliate_type == TYPE_MAIN and not affiliate.is_main:
            return False
        if self.affiliate_type == TYPE_SUB and affiliate.is_main:
            return False
        return self.matches_search(affiliate)


def filter_affiliates(affiliates: Iterable[Affiliate], criteria: DashboardFilter) -> List[Affiliate]:
    """Affiliates matching the filter, input order kept."""
    return [a for a in affiliates if criteria.matches(a)]


def filter_incomes(
    incomes: Iterable[AffiliateIncome],
    affiliates: Iterable[Affiliate],
    criteria: DashboardFilter
) -> List[AffiliateIncome]:
    """Incomes of matching affiliates, highest total first."""
    matching_ids = {a.id for a in filter_affiliates(affiliates, criteria)}
    matching = [income for income in incomes if income.affiliate_id in matching_ids]
    return sorted(matching, key=ranking_key)


def filter_commissions(commissions: Iterable[Commission], criteria: DashboardFilter) -> List[Commission]:
    """Commissions created inside the filter's date range, newest first."""
    start = as_utc(criteria.date_from) if criteria.date_from else None
    end = as_utc(criteria.date_to) if criteria.date_to else None

    selected = []
    for commission in commissions:
        created = as_utc(commission.created_at)
        if start and created < start:
            continue
        if end and created > end:
            continue
        selected.append(commission)

    selected.sort(key=lambda c: as_utc(c.created_at), reverse=True)
    return selected


def filter_snapshot(snapshot: LedgerSnapshot, criteria: DashboardFilter) -> LedgerSnapshot:
    """Restrict the commission ledger to the filter's date range.

    Affiliates, payouts and attributions are kept whole so the hierarchy and
    statistics still see every record.
    """
    if criteria.date_from is None and criteria.date_to is None:
        return snapshot
    return replace(snapshot, commissions=filter_commissions(snapshot.commissions, criteria))
