"""
Order number generation
"""
import secrets
import string
from datetime import datetime, timezone
from typing import Optional

from order_service.config import settings

ALPHABET = string.ascii_uppercase + string.digits
SUFFIX_LENGTH = 10


def generate_order_number(prefix: Optional[str] = None, now: Optional[datetime] = None) -> str:
    """
    Build a human-readable order number, e.g. ``MHD-20261018-7Q2K9XH4ZB``

    The date part keeps numbers sortable by day; the random suffix avoids
    collisions. Uniqueness is ultimately enforced by the orders table.
    """
    prefix = prefix or settings.ORDER_NUMBER_PREFIX
    now = now or datetime.now(timezone.utc)
    suffix = "".join(secrets.choice(ALPHABET) for _ in range(SUFFIX_LENGTH))
    return f"{prefix}-{now:%Y%m%d}-{suffix}"
