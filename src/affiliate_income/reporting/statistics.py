"""Programme-wide statistics for the affiliate overview panel."""

from datetime import datetime
from typing import Dict, Iterable, List, Optional

from ..ledger.models import (
    Affiliate,
    AffiliateStatus,
    Attribution,
    AttributionType,
    Commission,
    CommissionStatus,
    Payout,
    PayoutStatus,
    utc_now,
)


def _status_totals(rows, statuses) -> Dict[str, Dict[str, int]]:
    totals = {status.value: {'amount_cents': 0, 'count': 0} for status in statuses}
    for row in rows:
        bucket = totals[row.status.value]
        bucket['amount_cents'] += row.amount_cents
        bucket['count'] += 1
    return totals


def attribution_summary(
    attributions: Iterable[Attribution],
    now: Optional[datetime] = None
) -> Dict[str, Dict[str, int]]:
    """Referral counts per affiliate: total, business signups and still-active windows."""
    now = now or utc_now()
    summary: Dict[str, Dict[str, int]] = {}
    for attribution in attributions:
        counts = summary.setdefault(attribution.affiliate_id, {'total': 0, 'business': 0, 'active': 0})
        counts['total'] += 1
        if attribution.type == AttributionType.BUSINESS_SIGNUP:
            counts['business'] += 1
        if attribution.is_active(now):
            counts['active'] += 1
    return summary


def program_statistics(
    affiliates: Iterable[Affiliate],
    commissions: Iterable[Commission],
    payouts: Iterable[Payout],
    attributions: Iterable[Attribution] = (),
    now: Optional[datetime] = None
) -> Dict:
    """Totals over the whole programme, grouped by status."""
    affiliates: List[Affiliate] = list(affiliates)
    commissions = list(commissions)
    payouts = list(payouts)
    attributions = list(attributions)
    now = now or utc_now()

    commission_totals = _status_totals(commissions, CommissionStatus)
    payout_totals = _status_totals(payouts, PayoutStatus)

    return {
        'affiliates': {
            'total': len(affiliates),
            'active': len([a for a in affiliates if a.status == AffiliateStatus.ACTIVE]),
            'suspended': len([a for a in affiliates if a.status == AffiliateStatus.SUSPENDED]),
            'main': len([a for a in affiliates if a.is_main]),
            'sub': len([a for a in affiliates if not a.is_main]),
        },
        'commissions': {
            'total_amount_cents': sum(c.amount_cents for c in commissions),
            'count': len(commissions),
            'by_status': commission_totals,
        },
        'payouts': {
            'total_amount_cents': sum(p.amount_cents for p in payouts),
            'count': len(payouts),
            'by_status': payout_totals,
        },
        'attributions': {
            'total': len(attributions),
            'business': len([a for a in attributions if a.type == AttributionType.BUSINESS_SIGNUP]),
            'active': len([a for a in attributions if a.is_active(now)]),
        },
    }
