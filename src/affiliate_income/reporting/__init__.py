"""Income aggregation, rollups and dashboard reporting."""

from .aggregator import AffiliateIncome, aggregate_affiliate_income, aggregate_incomes, unattributed_rows
from .rollup import (
    AffiliateIncomeReport,
    AffiliateRollup,
    IncomeReport,
    build_income_report,
    build_rollups,
    income_totals,
    rollup,
    top_performers,
)
from .trends import monthly_trend
from .statistics import program_statistics, attribution_summary
from .filters import DashboardFilter, filter_affiliates, filter_commissions, filter_incomes, filter_snapshot

__all__ = [
    'AffiliateIncome',
    'aggregate_affiliate_income',
    'aggregate_incomes',
    'unattributed_rows',
    'AffiliateIncomeReport',
    'AffiliateRollup',
    'IncomeReport',
    'build_income_report',
    'build_rollups',
    'income_totals',
    'rollup',
    'top_performers',
    'monthly_trend',
    'program_statistics',
    'attribution_summary',
    'DashboardFilter',
    'filter_affiliates',
    'filter_commissions',
    'filter_incomes',
    'filter_snapshot',
]
