"""Typed ledger records: affiliates, commissions, payouts and attributions."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional


class AffiliateStatus(Enum):
    """Affiliate account status."""
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"


class CommissionStatus(Enum):
    """Commission ledger status.

    Rows move PENDING -> AVAILABLE -> PAID, or to REVERSED.
    """
    PENDING = "PENDING"
    AVAILABLE = "AVAILABLE"
    PAID = "PAID"
    REVERSED = "REVERSED"


class CommissionEventType(Enum):
    """Event that produced a commission row."""
    SUBSCRIPTION = "SUBSCRIPTION"
    TRANSACTION = "TRANSACTION"
    REFUND = "REFUND"
    CHARGEBACK = "CHARGEBACK"

    @property
    def is_reversal(self) -> bool:
        return self in (CommissionEventType.REFUND, CommissionEventType.CHARGEBACK)


class CommissionTier(Enum):
    """Relationship tier the billing pipeline tags on each row."""
    DIRECT = "DIRECT"  # Affiliate referred the customer itself
    SUB = "SUB"  # Sub-affiliate's own referral
    PARENT = "PARENT"  # Earned by a main affiliate through a sub-affiliate


class PayoutStatus(Enum):
    """Payout status."""
    CREATED = "CREATED"
    SENT = "SENT"
    FAILED = "FAILED"


class AttributionType(Enum):
    """What kind of signup was attributed."""
    USER_SIGNUP = "USER_SIGNUP"
    BUSINESS_SIGNUP = "BUSINESS_SIGNUP"


class AttributionSource(Enum):
    """How the signup was attributed."""
    REFERRAL_LINK = "REFERRAL_LINK"
    PROMO_CODE = "PROMO_CODE"
    MANUAL = "MANUAL"


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Affiliate:
    """An affiliate account wrapping a user."""
    id: str
    status: AffiliateStatus = AffiliateStatus.ACTIVE
    parent_affiliate_id: Optional[str] = None
    user_id: str = ""
    name: str = ""
    email: str = ""
    username: str = ""
    referral_code: str = ""
    payout_account_id: str = ""
    payout_onboarding_completed: bool = False
    created_at: Optional[datetime] = None

    @property
    def is_main(self) -> bool:
        return self.parent_affiliate_id is None


@dataclass
class Commission:
    """A commission ledger entry. Negative amounts are reversals."""
    id: str
    affiliate_id: str
    amount_cents: int
    status: CommissionStatus
    event_type: CommissionEventType
    created_at: datetime
    tier: CommissionTier = CommissionTier.DIRECT
    event_id: str = ""
    available_at: Optional[datetime] = None
    source_affiliate_id: Optional[str] = None


@dataclass
class Payout:
    """Funds transferred to an affiliate by the payout job."""
    id: str
    affiliate_id: str
    amount_cents: int
    status: PayoutStatus
    period_start: datetime
    period_end: datetime
    external_transfer_ref: str = ""
    created_at: Optional[datetime] = None


@dataclass
class Attribution:
    """Links a referred user to the affiliate credited for them."""
    id: str
    user_id: str
    affiliate_id: str
    type: AttributionType
    source: AttributionSource
    created_at: datetime
    ends_at: datetime

    def is_active(self, now: Optional[datetime] = None) -> bool:
        """An attribution is active while its window has not ended."""
        return as_utc(self.ends_at) > as_utc(now or utc_now())


@dataclass
class LedgerSnapshot:
    """Everything one report is computed from."""
    affiliates: List[Affiliate] = field(default_factory=list)
    commissions: List[Commission] = field(default_factory=list)
    payouts: List[Payout] = field(default_factory=list)
    attributions: List[Attribution] = field(default_factory=list)
