"""Document and lot number generation."""
import secrets
import string
from datetime import datetime
from typing import Optional

from opsplan.utils.clock import utcnow

_ALPHABET = string.ascii_uppercase + string.digits
_BASE36 = string.digits + string.ascii_uppercase


def _random_suffix(length: int = 4) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def document_number(prefix: str, now: Optional[datetime] = None) -> str:
    """``FC-20260301-7QK2`` style numbers for forecasts, plans and purchase orders."""
    now = now or utcnow()
    return f"{prefix}-{now:%Y%m%d}-{_random_suffix()}"


def sequence_code(prefix: str, now: Optional[datetime] = None) -> str:
    """``LOT-LX3K9Q2A-AB12`` style codes built from the epoch milliseconds in base 36."""
    now = now or utcnow()
    stamp = _base36(int(now.timestamp() * 1000))
    return f"{prefix}-{stamp}-{_random_suffix()}"
