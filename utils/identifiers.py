"""
Identifier generation for claims, invoices and payments
"""

import random
import string
import time
from typing import Optional

BASE36_ALPHABET = string.digits + string.ascii_uppercase
SUFFIX_LENGTH = 4


def to_base36(value: int) -> str:
    """Encode a non-negative integer in upper-case base 36."""
    if value < 0:
        raise ValueError("value must be >= 0")
    if value == 0:
        return "0"

    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_entity_id(
    prefix: str, timestamp_ms: Optional[int] = None, rng: Optional[random.Random] = None
) -> str:
    """
    Generate an id of the form <PREFIX>-<base36 millis>-<4 random base36 chars>.

    Uniqueness comes from the timestamp plus random suffix only; the store
    rejects the insert if two ids ever collide.
    """
    if timestamp_ms is None:
        timestamp_ms = time.time_ns() // 1_000_000
    chooser = rng or random
    suffix = "".join(chooser.choices(BASE36_ALPHABET, k=SUFFIX_LENGTH))
    return f"{prefix}-{to_base36(timestamp_ms)}-{suffix}"
