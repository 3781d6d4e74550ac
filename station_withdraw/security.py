"""
Security module for station-withdraw.

Input validation for the withdrawal request fields. Every helper raises
ValidationError with the offending value so the HTTP boundary can echo
it back as "Invalid argument: <value> (<reason>)".
"""

import re
from typing import Any

from eth_utils import is_address, to_checksum_address


# ============================================================
# Input Validation
# ============================================================

HEX_PATTERN = re.compile(r'^(0x)?[a-fA-F0-9]+$')
DECIMAL_PATTERN = re.compile(r'^[0-9]+$')

UINT256_MAX = 2 ** 256 - 1


class ValidationError(ValueError):
    """Raised when input validation fails."""
    def __init__(self, field: str, value: Any, message: str):
        self.field = field
        self.value = value
        self.message = message
        super().__init__(f"{field}: {message}")


def validate_address(value: Any, field_name: str) -> str:
    """
    Validate a 20-byte hex address.

    Accepts all-lowercase, all-uppercase or correctly checksummed input.
    Mixed case with a wrong checksum is rejected.

    Returns:
        The checksummed address
    """
    if not isinstance(value, str):
        raise ValidationError(field_name, value, "invalid address")
    value = value.strip()
    if not is_address(value):
        raise ValidationError(field_name, value, "invalid address")
    return to_checksum_address(value)


def validate_uint256(value: Any, field_name: str) -> int:
    """
    Validate an unsigned 256-bit integer.

    Accepts ints and decimal strings. Floats, booleans, negative numbers
    and anything outside the uint256 range are rejected.
    """
    if isinstance(value, bool):
        raise ValidationError(field_name, value, "invalid BigNumber value")

    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and DECIMAL_PATTERN.match(value.strip()):
        number = int(value.strip())
    else:
        raise ValidationError(field_name, value, "invalid BigNumber string")

    if number < 0:
        raise ValidationError(field_name, value, "value must be non-negative")
    if number > UINT256_MAX:
        raise ValidationError(field_name, value, "value out-of-bounds")
    return number


def validate_bytes32(value: Any, field_name: str) -> str:
    """
    Validate a 32-byte hex value such as a signature's r or s.

    Returns:
        The value as a 0x-prefixed, lowercase, 64-digit hex string
    """
    if not isinstance(value, str):
        raise ValidationError(field_name, value, "must be a hex string")

    stripped = value.strip()
    if not HEX_PATTERN.match(stripped):
        raise ValidationError(field_name, value, "must be a hex string")

    digits = stripped[2:] if stripped.lower().startswith("0x") else stripped
    if len(digits) > 64:
        raise ValidationError(field_name, value, "must be at most 32 bytes")

    return "0x" + digits.lower().rjust(64, "0")


def validate_recovery_id(value: Any, field_name: str = "v") -> int:
    """Validate the signature recovery id (0, 1, 27 or 28)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(field_name, value, "must be an integer")
    if value not in (0, 1, 27, 28):
        raise ValidationError(field_name, value, "invalid recovery id")
    return value
