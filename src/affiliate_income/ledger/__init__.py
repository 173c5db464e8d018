"""Ledger records and the readers that load them."""

from .models import (
    Affiliate,
    AffiliateStatus,
    Attribution,
    AttributionSource,
    AttributionType,
    Commission,
    CommissionEventType,
    CommissionStatus,
    CommissionTier,
    LedgerSnapshot,
    Payout,
    PayoutStatus,
)
from .readers import (
    AffiliateLedgerReader,
    AttributionLedgerReader,
    CommissionLedgerReader,
    PayoutLedgerReader,
    parse_snapshot,
    read_snapshot,
)

__all__ = [
    'Affiliate',
    'AffiliateStatus',
    'Attribution',
    'AttributionSource',
    'AttributionType',
    'Commission',
    'CommissionEventType',
    'CommissionStatus',
    'CommissionTier',
    'LedgerSnapshot',
    'Payout',
    'PayoutStatus',
    'AffiliateLedgerReader',
    'AttributionLedgerReader',
    'CommissionLedgerReader',
    'PayoutLedgerReader',
    'parse_snapshot',
    'read_snapshot',
]
