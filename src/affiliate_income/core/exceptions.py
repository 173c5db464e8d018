"""Exceptions raised by the affiliate income engine."""

from typing import Dict, List, Optional


class AffiliateIncomeError(Exception):
    """Base class for all affiliate income errors."""


class LedgerValidationError(AffiliateIncomeError):
    """A ledger payload could not be parsed into typed records.

    ``errors`` holds one entry per rejected record with the record index,
    the ledger it came from and the validation messages.
    """

    def __init__(self, message: str, errors: Optional[List[Dict]] = None):
        super().__init__(message)
        self.errors = errors or []

    def to_dict(self) -> Dict:
        return {'error': str(self), 'details': self.errors}


class InvalidReferralCodeError(AffiliateIncomeError):
    """A referral code failed format validation."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message
