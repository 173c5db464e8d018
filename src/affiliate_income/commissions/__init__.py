"""Commission rate maths."""

from .calculator import CommissionCalculator, DiscountResult, SubscriptionCommission, round_cents

__all__ = [
    'CommissionCalculator',
    'DiscountResult',
    'SubscriptionCommission',
    'round_cents',
]
