"""Calendar-month bucketing of commission amounts (UTC)."""

from datetime import datetime
from typing import Dict, Iterable, List, Optional

from ..ledger.models import Commission, CommissionStatus, as_utc, utc_now


def counts_toward_income(commission: Commission) -> bool:
    """Whether a row moves an affiliate's total income.

    Refund and chargeback rows always count (they are negative). Earned rows
    count unless they were reversed.
    """
    if commission.event_type.is_reversal:
        return True
    return commission.status != CommissionStatus.REVERSED


def month_key(value: datetime) -> str:
    """YYYY-MM of a timestamp in UTC."""
    value = as_utc(value)
    return f"{value.year:04d}-{value.month:02d}"


def trailing_month_keys(now: Optional[datetime] = None, months: int = 12) -> List[str]:
    """Month keys for the ``months`` calendar months ending with ``now``, oldest first."""
    now = as_utc(now or utc_now())
    year, month = now.year, now.month
    keys = []
    for _ in range(months):
        keys.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year -= 1
            month = 12
    return list(reversed(keys))


def monthly_trend(
    commissions: Iterable[Commission],
    now: Optional[datetime] = None,
    months: int = 12
) -> Dict[str, int]:
    """Sum income-bearing amounts per month over the trailing window.

    Every month in the window is present, zero when nothing was earned.
    Rows outside the window are ignored.
    """
    trend = {key: 0 for key in trailing_month_keys(now, months)}
    for commission in commissions:
        if not counts_toward_income(commission):
            continue
        key = month_key(commission.created_at)
        if key in trend:
            trend[key] += commission.amount_cents
    return trend
