"""Referral code validation for the admin edit flow."""

import re

from ..core.exceptions import InvalidReferralCodeError

REFERRAL_CODE_PATTERN = re.compile(r"^[A-Z0-9]{8,50}$")

INVALID_CODE_MESSAGE = (
    "Referral code must be 8 to 50 characters long and contain only letters A-Z and digits 0-9."
)


def normalize_referral_code(code: str) -> str:
    """Uppercase and validate a referral code.

    Raises InvalidReferralCodeError with a user-facing message when the
    code does not match the allowed format. Uniqueness is left to storage.
    """
    normalized = (code or "").strip().upper()
    if not REFERRAL_CODE_PATTERN.match(normalized):
        raise InvalidReferralCodeError(normalized, INVALID_CODE_MESSAGE)
    return normalized


def validate_referral_code(code: str) -> bool:
    """Whether ``code`` is a valid referral code after uppercasing."""
    return bool(REFERRAL_CODE_PATTERN.match((code or "").strip().upper()))


def referral_link(origin: str, code: str, english: bool = False) -> str:
    """Public signup link for a referral code."""
    prefix = "/en" if english else ""
    return f"{origin.rstrip('/')}{prefix}/welkom/{normalize_referral_code(code)}"
