"""Attendance code generation.

Codes are short uppercase alphanumeric strings meant to be typed in by hand.
Uniqueness is not guaranteed here; the registry enforces it.
"""

import secrets
import string

from config import ATTENDANCE_CODE_LENGTH

CODE_ALPHABET = string.ascii_uppercase + string.digits


def code_space_size(length: int = ATTENDANCE_CODE_LENGTH) -> int:
    """Number of distinct codes of the given length."""
    return len(CODE_ALPHABET) ** length


def generate_attendance_code(length: int = ATTENDANCE_CODE_LENGTH) -> str:
    """Generate a random attendance code.

    Args:
        length: Number of characters in the code.

    Returns:
        A code such as "K4ZQ0B".

    Raises:
        ValueError: If length is smaller than 1.
    """
    if length < 1:
        raise ValueError("Attendance code length must be at least 1")
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def normalize_code(code: str) -> str:
    """Canonical form used for registry keys and lookups."""
    return code.strip().upper()
