"""
Unit tests for referral code and ledger reference helpers.
"""

import re

from triangle_engine.utils.referral_codes import (
    build_fallback_referral_code,
    build_reference,
    build_referral_code,
)


class TestReferralCode:
    """Test short referral codes."""

    def test_format(self):
        """Test three-letter prefix plus six A-Z0-9 characters."""
        code = build_referral_code("alice")
        assert re.fullmatch(r"ALI[A-Z0-9]{6}", code)

    def test_short_name(self):
        """Test names shorter than the prefix are used as-is."""
        code = build_referral_code("Jo")
        assert re.fullmatch(r"JO[A-Z0-9]{6}", code)

    def test_codes_vary(self):
        codes = {build_referral_code("alice") for _ in range(20)}
        assert len(codes) > 1


class TestFallbackReferralCode:
    """Test UUID-derived referral codes."""

    def test_format(self):
        code = build_fallback_referral_code("bob")
        assert re.fullmatch(r"BOB[0-9A-F]{32}", code)

    def test_fits_column(self):
        """Test fallback codes fit the 40-char column."""
        assert len(build_fallback_referral_code("bobby")) <= 40


class TestReference:
    """Test ledger references."""

    def test_prefix(self):
        assert re.fullmatch(r"WD[0-9A-F]{16}", build_reference("WD"))

    def test_unique(self):
        assert build_reference("RB") != build_reference("RB")
