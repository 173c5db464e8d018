"""Configuration, errors and money display shared by every module."""

from .config import ProgramConfig, ProgramConfigManager
from .exceptions import AffiliateIncomeError, LedgerValidationError, InvalidReferralCodeError
from .money import format_cents, parse_cents

__all__ = [
    "ProgramConfig",
    "ProgramConfigManager",
    "AffiliateIncomeError",
    "LedgerValidationError",
    "InvalidReferralCodeError",
    "format_cents",
    "parse_cents",
]
