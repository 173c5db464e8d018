"""Tests for the affiliate hierarchy resolver."""

import pytest

from affiliate_income.core.exceptions import LedgerValidationError
from affiliate_income.hierarchy import InconsistencyReason, resolve_hierarchy
from affiliate_income.ledger.models import Affiliate


def placements(hierarchy):
    """Every affiliate id the resolver placed or rejected, with repeats."""
    ids = [a.id for a in hierarchy.main_affiliates]
    for children in hierarchy.sub_affiliates_by_parent.values():
        ids.extend(c.id for c in children)
    ids.extend(hierarchy.rejected_ids)
    return ids


class TestResolveHierarchy:
    """Tests for resolve_hierarchy."""

    def test_main_and_sub(self):
        affiliates = [
            Affiliate(id="main_1"),
            Affiliate(id="sub_1", parent_affiliate_id="main_1"),
            Affiliate(id="main_2"),
            Affiliate(id="sub_2", parent_affiliate_id="main_1"),
        ]
        hierarchy = resolve_hierarchy(affiliates)

        assert [a.id for a in hierarchy.main_affiliates] == ["main_1", "main_2"]
        assert [a.id for a in hierarchy.children_of("main_1")] == ["sub_1", "sub_2"]
        assert hierarchy.children_of("main_2") == []
        assert hierarchy.inconsistencies == []

    def test_parent_listed_after_child(self):
        """Input order does not matter for placement."""
        hierarchy = resolve_hierarchy([
            Affiliate(id="sub", parent_affiliate_id="main"),
            Affiliate(id="main"),
        ])
        assert [a.id for a in hierarchy.children_of("main")] == ["sub"]

    def test_partition_is_complete(self):
        """Every affiliate lands in exactly one place."""
        affiliates = [
            Affiliate(id="m1"),
            Affiliate(id="s1", parent_affiliate_id="m1"),
            Affiliate(id="orphan", parent_affiliate_id="gone"),
            Affiliate(id="self", parent_affiliate_id="self"),
            Affiliate(id="deep", parent_affiliate_id="s1"),
            Affiliate(id="m2"),
        ]
        hierarchy = resolve_hierarchy(affiliates)
        ids = placements(hierarchy)

        assert sorted(ids) == sorted(a.id for a in affiliates)
        assert len(ids) == len(set(ids))

    def test_orphaned_parent_rejected(self):
        """A missing parent is reported instead of reclassifying the affiliate."""
        hierarchy = resolve_hierarchy([Affiliate(id="orphan", parent_affiliate_id="gone")])

        assert hierarchy.main_affiliates == []
        issue = hierarchy.inconsistencies[0]
        assert issue.reason == InconsistencyReason.ORPHANED_PARENT
        assert issue.parent_affiliate_id == "gone"
        assert "gone" in issue.message

    def test_self_parent_rejected(self):
        hierarchy = resolve_hierarchy([Affiliate(id="a", parent_affiliate_id="a")])
        assert hierarchy.inconsistencies[0].reason == InconsistencyReason.SELF_PARENT

    def test_depth_exceeded_rejected(self):
        """Only two levels are allowed."""
        hierarchy = resolve_hierarchy([
            Affiliate(id="m"),
            Affiliate(id="s", parent_affiliate_id="m"),
            Affiliate(id="g", parent_affiliate_id="s"),
        ])
        assert hierarchy.rejected_ids == ["g"]
        assert hierarchy.inconsistencies[0].reason == InconsistencyReason.DEPTH_EXCEEDED
        assert hierarchy.children_of("s") == []

    def test_parent_of(self):
        sub = Affiliate(id="s", parent_affiliate_id="m")
        orphan = Affiliate(id="o", parent_affiliate_id="x")
        hierarchy = resolve_hierarchy([Affiliate(id="m"), sub, orphan])

        assert hierarchy.parent_of(sub) == "m"
        assert hierarchy.parent_of(orphan) is None

    def test_duplicate_ids(self):
        with pytest.raises(LedgerValidationError):
            resolve_hierarchy([Affiliate(id="a"), Affiliate(id="a")])

    def test_inconsistency_to_dict(self):
        hierarchy = resolve_hierarchy([Affiliate(id="a", parent_affiliate_id="b")])
        data = hierarchy.inconsistencies[0].to_dict()
        assert data["affiliate_id"] == "a"
        assert data["reason"] == "orphaned_parent"
