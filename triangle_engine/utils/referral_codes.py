"""
Referral code helpers.
"""

import secrets
import string
import uuid

REFERRAL_CODE_ALPHABET = string.ascii_uppercase + string.digits
REFERRAL_CODE_RANDOM_LENGTH = 6
REFERRAL_CODE_PREFIX_LENGTH = 3


def build_referral_code(display_name: str) -> str:
    """
    Build a short referral code from a display name.

    Format: first three characters of the name upper-cased, followed by
    six random characters from A-Z0-9.

    Args:
        display_name: Participant display name

    Returns:
        Referral code, e.g. "ALI7K2Q9Z"
    """
    prefix = display_name[:REFERRAL_CODE_PREFIX_LENGTH].upper()
    suffix = "".join(
        secrets.choice(REFERRAL_CODE_ALPHABET)
        for _ in range(REFERRAL_CODE_RANDOM_LENGTH)
    )
    return f"{prefix}{suffix}"


def build_fallback_referral_code(display_name: str) -> str:
    """
    Build a globally unique referral code.

    Used once the random short codes keep colliding.
    """
    prefix = display_name[:REFERRAL_CODE_PREFIX_LENGTH].upper()
    return f"{prefix}{uuid.uuid4().hex.upper()}"


def build_reference(prefix: str) -> str:
    """
    Build a human-readable ledger reference (DP..., WD..., RB...).

    Args:
        prefix: Two-letter reference prefix

    Returns:
        Reference string unique enough for the ledger's unique index
    """
    return f"{prefix}{uuid.uuid4().hex[:16].upper()}"
