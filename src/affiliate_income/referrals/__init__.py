"""Referral code handling."""

from .codes import (
    INVALID_CODE_MESSAGE,
    REFERRAL_CODE_PATTERN,
    normalize_referral_code,
    referral_link,
    validate_referral_code,
)

__all__ = [
    'INVALID_CODE_MESSAGE',
    'REFERRAL_CODE_PATTERN',
    'normalize_referral_code',
    'referral_link',
    'validate_referral_code',
]
