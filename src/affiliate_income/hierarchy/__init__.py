"""Two-level affiliate hierarchy resolution."""

from .resolver import AffiliateHierarchy, HierarchyInconsistency, InconsistencyReason, resolve_hierarchy

__all__ = [
    'AffiliateHierarchy',
    'HierarchyInconsistency',
    'InconsistencyReason',
    'resolve_hierarchy',
]
