"""
Phone Number Helpers

Normalization, validation and hashing of phone numbers, plus verification
code generation. Shared by the service layer and the seed scripts.
"""

import hashlib
import re
import secrets

E164_PATTERN = re.compile(r"^\+[1-9]\d{1,14}$")
_NON_PHONE_CHARS = re.compile(r"[^\d+]")

CODE_MIN = 100000
CODE_MAX = 999999


def normalize_phone_number(phone_number: str) -> str:
    """
    Strip everything except digits and '+'.

    Example:
        "+852 9123-4567" -> "+85291234567"
    """
    return _NON_PHONE_CHARS.sub("", phone_number)


def is_valid_phone_number(phone_number: str) -> bool:
    """Check E.164 format: '+', a non-zero digit, then up to 14 more digits."""
    return bool(E164_PATTERN.match(phone_number))


def hash_phone_number(phone_number: str) -> str:
    """
    SHA-256 hex digest of a phone number.

    Used as the lookup key so numbers are never queried in cleartext.
    """
    return hashlib.sha256(phone_number.encode()).hexdigest()


def phone_hash_prefix(phone_number_hash: str) -> str:
    """Short hash prefix safe for logs."""
    return phone_number_hash[:8]


def generate_verification_code() -> str:
    """Uniformly random 6-digit code in [100000, 999999]."""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))
