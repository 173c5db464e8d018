"""Resolve main affiliates and their sub-affiliates.

The programme supports exactly two levels: a main affiliate has no parent,
and a sub-affiliate's parent must be a main affiliate. Records that break
this (unknown parent, self-reference, parent that is itself a sub-affiliate)
are kept out of the tree and reported so the inconsistency can be fixed at
the source.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional

from ..core.exceptions import LedgerValidationError
from ..ledger.models import Affiliate

logger = logging.getLogger(__name__)


class InconsistencyReason(Enum):
    """Why an affiliate was left out of the hierarchy."""
    ORPHANED_PARENT = "orphaned_parent"
    SELF_PARENT = "self_parent"
    DEPTH_EXCEEDED = "depth_exceeded"


@dataclass
class HierarchyInconsistency:
    """An affiliate that could not be placed in the hierarchy."""
    affiliate_id: str
    parent_affiliate_id: Optional[str]
    reason: InconsistencyReason

    @property
    def message(self) -> str:
        if self.reason == InconsistencyReason.ORPHANED_PARENT:
            return f"Affiliate {self.affiliate_id} references missing parent {self.parent_affiliate_id}"
        if self.reason == InconsistencyReason.SELF_PARENT:
            return f"Affiliate {self.affiliate_id} is its own parent"
        return (
            f"Affiliate {self.affiliate_id} has parent {self.parent_affiliate_id}, "
            f"which is itself a sub-affiliate"
        )

    def to_dict(self) -> Dict:
        return {
            'affiliate_id': self.affiliate_id,
            'parent_affiliate_id': self.parent_affiliate_id,
            'reason': self.reason.value,
            'message': self.message,
        }


@dataclass
class AffiliateHierarchy:
    """Main affiliates, their children, and the records that were rejected."""
    main_affiliates: List[Affiliate] = field(default_factory=list)
    sub_affiliates_by_parent: Dict[str, List[Affiliate]] = field(default_factory=dict)
    inconsistencies: List[HierarchyInconsistency] = field(default_factory=list)

    def children_of(self, parent_id: str) -> List[Affiliate]:
        return self.sub_affiliates_by_parent.get(parent_id, [])

    def parent_of(self, affiliate: Affiliate) -> Optional[str]:
        """Parent id of an accepted sub-affiliate, else None."""
        parent_id = affiliate.parent_affiliate_id
        if parent_id and any(c.id == affiliate.id for c in self.children_of(parent_id)):
            return parent_id
        return None

    @property
    def accepted_ids(self) -> List[str]:
        ids = [a.id for a in self.main_affiliates]
        for children in self.sub_affiliates_by_parent.values():
            ids.extend(c.id for c in children)
        return ids

    @property
    def rejected_ids(self) -> List[str]:
        return [i.affiliate_id for i in self.inconsistencies]


def resolve_hierarchy(affiliates: Iterable[Affiliate]) -> AffiliateHierarchy:
    """Partition affiliates into main affiliates and per-parent children.

    Input order is preserved inside every list. Raises LedgerValidationError
    on duplicate affiliate ids.
    """
    affiliates = list(affiliates)
    by_id: Dict[str, Affiliate] = {}
    for affiliate in affiliates:
        if affiliate.id in by_id:
            raise LedgerValidationError(
                "Duplicate affiliate id",
                [{'ledger': 'affiliates', 'id': affiliate.id, 'errors': [f"duplicate id {affiliate.id}"]}]
            )
        by_id[affiliate.id] = affiliate

    hierarchy = AffiliateHierarchy()
    for affiliate in affiliates:
        parent_id = affiliate.parent_affiliate_id
        if parent_id is None:
            hierarchy.main_affiliates.append(affiliate)
            continue

        reason = None
        parent = by_id.get(parent_id)
        if parent_id == affiliate.id:
            reason = InconsistencyReason.SELF_PARENT
        elif parent is None:
            reason = InconsistencyReason.ORPHANED_PARENT
        elif parent.parent_affiliate_id is not None:
            reason = InconsistencyReason.DEPTH_EXCEEDED

        if reason:
            issue = HierarchyInconsistency(affiliate.id, parent_id, reason)
            logger.warning(issue.message)
            hierarchy.inconsistencies.append(issue)
            continue

        hierarchy.sub_affiliates_by_parent.setdefault(parent_id, []).append(affiliate)

    return hierarchy
