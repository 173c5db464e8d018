"""Tests for referral code validation."""

import pytest

from affiliate_income.core.exceptions import InvalidReferralCodeError
from affiliate_income.referrals import (
    INVALID_CODE_MESSAGE,
    normalize_referral_code,
    referral_link,
    validate_referral_code,
)


class TestReferralCodes:
    """Tests for the referral code validator."""

    def test_valid_code(self):
        assert validate_referral_code("REF12345")

    def test_lowercase_is_uppercased(self):
        """Lowercase input is valid after uppercasing."""
        assert validate_referral_code("ref12345")
        assert normalize_referral_code(" ref12345 ") == "REF12345"

    def test_too_short(self):
        assert not validate_referral_code("SHORT1")

    def test_too_long(self):
        assert validate_referral_code("A" * 50)
        assert not validate_referral_code("A" * 51)

    def test_invalid_characters(self):
        assert not validate_referral_code("HAS-A-DASH1")
        assert not validate_referral_code("HAS SPACE1")
        assert not validate_referral_code("")

    def test_invalid_code_message(self):
        """The error carries the user-facing message."""
        with pytest.raises(InvalidReferralCodeError) as exc_info:
            normalize_referral_code("short")
        assert exc_info.value.message == INVALID_CODE_MESSAGE
        assert exc_info.value.code == "SHORT"

    def test_referral_link(self):
        assert referral_link("https://example.com/", "ref12345") == "https://example.com/welkom/REF12345"
        assert referral_link("https://example.com", "REF12345", english=True) == \
            "https://example.com/en/welkom/REF12345"
