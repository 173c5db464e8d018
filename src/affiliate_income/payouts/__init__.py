"""Payout batch planning."""

from .planner import PayoutCandidate, PayoutPlan, PayoutPlanner, SkippedPayout, SkipReason

__all__ = [
    'PayoutCandidate',
    'PayoutPlan',
    'PayoutPlanner',
    'SkippedPayout',
    'SkipReason',
]
