"""Tests for rollups, rankings, monthly trends and the assembled report."""

from datetime import datetime, timedelta, timezone

from affiliate_income.core.config import ProgramConfig
from affiliate_income.hierarchy import resolve_hierarchy
from affiliate_income.ledger.models import (
    Affiliate,
    Attribution,
    AttributionSource,
    AttributionType,
    Commission,
    CommissionEventType,
    CommissionStatus,
    LedgerSnapshot,
)
from affiliate_income.reporting import (
    AffiliateIncome,
    AffiliateIncomeReport,
    build_rollups,
    monthly_trend,
    rollup,
    top_performers,
)
from affiliate_income.reporting.trends import month_key, trailing_month_keys

NOW = datetime(2026, 3, 10, tzinfo=timezone.utc)


def income(affiliate_id, total):
    return AffiliateIncome(affiliate_id=affiliate_id, total_income=total)


def earned(cid, affiliate_id, amount, created_at, status=CommissionStatus.AVAILABLE,
           event_type=CommissionEventType.TRANSACTION):
    return Commission(cid, affiliate_id, amount, status, event_type, created_at)


class TestRollup:
    """Tests for rollup and build_rollups."""

    def test_rollup_sums_children(self):
        result = rollup(income("P", 700), [income("C1", 200), income("C2", -50)])
        assert result.own_income == 700
        assert result.sub_affiliate_income == 150
        assert result.total_with_subs == 850
        assert result.child_affiliate_ids == ["C1", "C2"]

    def test_rollup_is_idempotent(self):
        parent = income("P", 700)
        children = [income("C", 200)]
        assert rollup(parent, children) == rollup(parent, children)

    def test_rollup_without_children(self):
        result = rollup(income("P", 300), [])
        assert result.total_with_subs == 300
        assert result.child_affiliate_ids == []

    def test_build_rollups_per_main(self):
        hierarchy = resolve_hierarchy([
            Affiliate(id="A"),
            Affiliate(id="B"),
            Affiliate(id="a1", parent_affiliate_id="A"),
        ])
        incomes = [income("A", 100), income("B", 500), income("a1", 1000)]
        rollups = build_rollups(incomes, hierarchy)

        assert [r.affiliate_id for r in rollups] == ["B", "A"]
        assert rollups[1].total_with_subs == 1100


class TestTopPerformers:
    """Tests for top_performers."""

    def test_length_and_order(self):
        incomes = [income(f"aff_{i:02d}", i * 100) for i in range(15)]
        top = top_performers(incomes)

        assert len(top) == 10
        totals = [i.total_income for i in top]
        assert totals == sorted(totals, reverse=True)
        assert top[0].affiliate_id == "aff_14"

    def test_fewer_than_limit(self):
        top = top_performers([income("a", 1), income("b", 2)])
        assert [i.affiliate_id for i in top] == ["b", "a"]

    def test_ties_by_id(self):
        """Equal totals rank by affiliate id ascending."""
        top = top_performers([income("zed", 500), income("amy", 500), income("max", 900)])
        assert [i.affiliate_id for i in top] == ["max", "amy", "zed"]


class TestMonthlyTrend:
    """Tests for the monthly income trend."""

    def test_twelve_months_oldest_first(self):
        keys = trailing_month_keys(NOW, 12)
        assert len(keys) == 12
        assert keys[0] == "2025-04"
        assert keys[-1] == "2026-03"

    def test_month_key_uses_utc(self):
        """A late-evening timestamp west of UTC falls in the next UTC month."""
        eastern = timezone(timedelta(hours=-5))
        assert month_key(datetime(2026, 1, 31, 22, 0, tzinfo=eastern)) == "2026-02"

    def test_bucketing(self):
        commissions = [
            earned("a", "X", 300, datetime(2026, 3, 1, tzinfo=timezone.utc)),
            earned("b", "X", 200, datetime(2026, 3, 9, tzinfo=timezone.utc)),
            earned("c", "X", -100, datetime(2026, 2, 5, tzinfo=timezone.utc),
                   event_type=CommissionEventType.REFUND),
            earned("d", "X", 999, datetime(2026, 2, 6, tzinfo=timezone.utc),
                   status=CommissionStatus.REVERSED),
            earned("e", "X", 5000, datetime(2024, 1, 1, tzinfo=timezone.utc)),
        ]
        trend = monthly_trend(commissions, now=NOW)

        assert len(trend) == 12
        assert trend["2026-03"] == 500
        assert trend["2026-02"] == -100
        assert trend["2025-04"] == 0
        assert "2024-01" not in trend


class TestIncomeReport:
    """Tests for AffiliateIncomeReport."""

    def setup_method(self):
        """Set up test fixtures."""
        self.snapshot = LedgerSnapshot(
            affiliates=[
                Affiliate(id="P", name="Parent"),
                Affiliate(id="C", parent_affiliate_id="P"),
                Affiliate(id="O", parent_affiliate_id="missing"),
            ],
            commissions=[
                earned("p1", "P", 700, datetime(2026, 3, 1, tzinfo=timezone.utc)),
                earned("c1", "C", 200, datetime(2026, 3, 2, tzinfo=timezone.utc)),
                earned("o1", "O", 50, datetime(2026, 3, 3, tzinfo=timezone.utc)),
            ],
            attributions=[
                Attribution("at1", "u1", "P", AttributionType.BUSINESS_SIGNUP, AttributionSource.PROMO_CODE,
                            datetime(2026, 1, 1, tzinfo=timezone.utc), datetime(2027, 1, 1, tzinfo=timezone.utc)),
                Attribution("at2", "u2", "P", AttributionType.USER_SIGNUP, AttributionSource.REFERRAL_LINK,
                            datetime(2025, 1, 1, tzinfo=timezone.utc), datetime(2026, 1, 1, tzinfo=timezone.utc)),
            ],
        )
        self.report = AffiliateIncomeReport(ProgramConfig()).build(self.snapshot, now=NOW)

    def test_rejected_affiliates_reported_not_aggregated(self):
        assert [i.affiliate_id for i in self.report.affiliate_incomes] == ["P", "C"]
        assert [i.affiliate_id for i in self.report.inconsistencies] == ["O"]
        assert self.report.income_for("O") is None

    def test_rollups_and_totals(self):
        assert self.report.rollups[0].total_with_subs == 900
        assert self.report.totals["total_income"] == 900

    def test_statistics_cover_full_ledger(self):
        stats = self.report.statistics
        assert stats["affiliates"]["total"] == 3
        assert stats["affiliates"]["sub"] == 2
        assert stats["commissions"]["total_amount_cents"] == 950
        assert stats["commissions"]["by_status"]["AVAILABLE"]["count"] == 3
        assert stats["attributions"] == {"total": 2, "business": 1, "active": 1}

    def test_referral_summary(self):
        assert self.report.referrals["P"] == {"total": 2, "business": 1, "active": 1}

    def test_to_dict(self):
        data = self.report.to_dict()
        assert data["generated_at"] == NOW.isoformat()
        assert data["top_performers"][0]["affiliate_id"] == "P"
        assert data["inconsistencies"][0]["reason"] == "orphaned_parent"
        assert len(data["affiliate_incomes"][0]["monthly_income"]) == 12

    def test_build_is_repeatable(self):
        again = AffiliateIncomeReport(ProgramConfig()).build(self.snapshot, now=NOW)
        assert again.to_dict() == self.report.to_dict()
