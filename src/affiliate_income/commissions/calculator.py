"""Commission maths applied by the billing pipeline when it writes ledger rows.

Rates come from :class:`ProgramConfig`. All inputs and outputs are integer
cents; percentages are Decimals and each result is rounded once, half away
from zero.

User transactions (buyer and/or seller referred by the affiliate):
    direct affiliate   25% of the platform fee per attributed side
    sub-affiliate      20% per side
    its parent          5% per side

Business subscriptions:
    direct affiliate   50% of the subscription fee
    sub-affiliate      40%
    its parent         10%
    The affiliate may hand part of its own share to the business as a promo
    discount, capped per affiliate type and never below the retained minimum.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from ..core.config import ProgramConfig


def round_cents(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _check_amount(amount_cents: int, name: str):
    if isinstance(amount_cents, bool) or not isinstance(amount_cents, int):
        raise TypeError(f"{name} must be integer cents")
    if amount_cents < 0:
        raise ValueError(f"{name} cannot be negative")


@dataclass
class DiscountResult:
    """Affiliate share after a promo discount."""
    discount_cents: int
    final_share_cents: int


@dataclass
class SubscriptionCommission:
    """Breakdown of one business subscription payment."""
    affiliate_commission_cents: int  # Share before discount
    discount_cents: int  # Given to the business out of the affiliate share
    final_price_cents: int  # What the business pays
    platform_share_cents: int
    final_affiliate_commission_cents: int  # Share after discount


class CommissionCalculator:
    """Compute commission amounts for ledger rows."""

    def __init__(self, config: Optional[ProgramConfig] = None):
        self.config = config or ProgramConfig()

    @staticmethod
    def _sides(buyer_attributed: bool, seller_attributed: bool) -> int:
        return int(bool(buyer_attributed)) + int(bool(seller_attributed))

    def user_transaction_commission(
        self,
        platform_fee_cents: int,
        buyer_attributed: bool,
        seller_attributed: bool,
        is_sub_affiliate: bool = False,
        custom_pct: Optional[Decimal] = None
    ) -> int:
        """Commission for the affiliate that referred the buyer and/or seller."""
        _check_amount(platform_fee_cents, "platform_fee_cents")
        if custom_pct is not None:
            pct = Decimal(str(custom_pct))
        elif is_sub_affiliate:
            pct = self.config.sub_user_commission_pct
        else:
            pct = self.config.user_commission_pct
        sides = self._sides(buyer_attributed, seller_attributed)
        return round_cents(Decimal(platform_fee_cents) * pct * sides)

    def parent_user_transaction_commission(
        self,
        platform_fee_cents: int,
        buyer_attributed: bool,
        seller_attributed: bool,
        custom_pct: Optional[Decimal] = None
    ) -> int:
        """Commission for the parent of the sub-affiliate that referred the user(s)."""
        _check_amount(platform_fee_cents, "platform_fee_cents")
        pct = Decimal(str(custom_pct)) if custom_pct is not None else self.config.parent_user_commission_pct
        sides = self._sides(buyer_attributed, seller_attributed)
        return round_cents(Decimal(platform_fee_cents) * pct * sides)

    def apply_discount(
        self,
        share_cents: int,
        discount_pct: int,
        is_sub_affiliate: bool = False
    ) -> DiscountResult:
        """Take a discount (0-100% of the share) out of an affiliate share.

        The affiliate always keeps at least the configured minimum of its share.
        """
        _check_amount(share_cents, "share_cents")
        capped_pct = min(max(Decimal(str(discount_pct)), Decimal(0)), Decimal(100))
        discount_cents = round_cents(Decimal(share_cents) * capped_pct / 100)
        final_share_cents = share_cents - discount_cents

        min_pct = self.config.sub_min_commission_pct if is_sub_affiliate else self.config.main_min_commission_pct
        min_share_cents = round_cents(Decimal(share_cents) * min_pct)
        if final_share_cents < min_share_cents:
            return DiscountResult(
                discount_cents=share_cents - min_share_cents,
                final_share_cents=min_share_cents,
            )
        return DiscountResult(discount_cents=discount_cents, final_share_cents=final_share_cents)

    def business_subscription_commission(
        self,
        subscription_fee_cents: int,
        discount_pct: int = 0,
        is_sub_affiliate: bool = False,
        custom_pct: Optional[Decimal] = None
    ) -> SubscriptionCommission:
        """Commission, discount and final price for a business subscription payment."""
        _check_amount(subscription_fee_cents, "subscription_fee_cents")
        if custom_pct is not None:
            pct = Decimal(str(custom_pct))
        elif is_sub_affiliate:
            pct = self.config.sub_business_commission_pct
        else:
            pct = self.config.business_commission_pct

        fee = Decimal(subscription_fee_cents)
        commission_cents = round_cents(fee * pct)
        platform_share_cents = round_cents(fee * self.config.business_commission_pct)

        max_discount = self.config.sub_max_discount_pct if is_sub_affiliate else self.config.main_max_discount_pct
        discount = self.apply_discount(commission_cents, min(discount_pct, max_discount), is_sub_affiliate)

        return SubscriptionCommission(
            affiliate_commission_cents=commission_cents,
            discount_cents=discount.discount_cents,
            final_price_cents=subscription_fee_cents - discount.discount_cents,
            platform_share_cents=platform_share_cents,
            final_affiliate_commission_cents=discount.final_share_cents,
        )

    def parent_business_commission(
        self,
        subscription_fee_cents: int,
        custom_pct: Optional[Decimal] = None
    ) -> int:
        """Commission for the parent of the sub-affiliate that referred the business."""
        _check_amount(subscription_fee_cents, "subscription_fee_cents")
        pct = Decimal(str(custom_pct)) if custom_pct is not None else self.config.parent_business_commission_pct
        return round_cents(Decimal(subscription_fee_cents) * pct)
