"""Request-scoped services behind the affiliate routes."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from ..commissions.calculator import CommissionCalculator
from ..core.config import ProgramConfig, ProgramConfigManager
from ..core.money import format_cents
from ..ledger.models import LedgerSnapshot
from ..ledger.readers import parse_snapshot, read_snapshot
from ..payouts.planner import PayoutPlanner
from ..reporting.filters import DashboardFilter, filter_incomes, filter_snapshot
from ..reporting.rollup import AffiliateIncomeReport, top_performers
from .config import settings

logger = logging.getLogger(__name__)


class AffiliateIncomeService:
    """Build reports for one request. Holds no state between requests."""

    def __init__(self, data_path: Optional[str] = None, config: Optional[ProgramConfig] = None):
        self.data_path = data_path or settings.data_path
        self.config = config or ProgramConfigManager(Path(settings.config_path)).config

    def _render(self, snapshot: LedgerSnapshot, criteria: Optional[DashboardFilter], now: Optional[datetime]) -> Dict:
        if criteria is not None:
            snapshot = filter_snapshot(snapshot, criteria)
        report = AffiliateIncomeReport(self.config).build(snapshot, now=now)
        data = report.to_dict()
        if criteria is not None:
            incomes = filter_incomes(report.affiliate_incomes, snapshot.affiliates, criteria)
            data['affiliate_incomes'] = [income.to_dict() for income in incomes]
            data['top_performers'] = [
                income.to_dict()
                for income in top_performers(incomes, self.config.top_performers_limit)
            ]
        data['totals_display'] = {
            key: format_cents(value, self.config.currency_symbol)
            for key, value in report.totals.items()
        }
        return data

    def report_from_payload(self, payload: Dict, now: Optional[datetime] = None) -> Dict:
        """Aggregate a posted ledger snapshot. Raises LedgerValidationError."""
        return self._render(parse_snapshot(payload), None, now)

    def report_from_storage(self, criteria: Optional[DashboardFilter] = None, now: Optional[datetime] = None) -> Dict:
        """Aggregate the ledger files under the configured data path."""
        logger.info(f"Building income report from {self.data_path}")
        return self._render(read_snapshot(self.data_path), criteria, now)

    def payout_preview(self, payload: Optional[Dict] = None, now: Optional[datetime] = None) -> Dict:
        """Plan the next payout batch from a posted snapshot or from storage."""
        snapshot = parse_snapshot(payload) if payload is not None else read_snapshot(self.data_path)
        plan = PayoutPlanner(self.config).plan(
            snapshot.commissions,
            snapshot.affiliates,
            snapshot.payouts,
            now=now,
        )
        return plan.to_dict()

    def calculator(self) -> CommissionCalculator:
        return CommissionCalculator(self.config)
