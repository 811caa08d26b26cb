"""
Evo Store - Shared Helpers
===========================
Pure utility functions with NO database or module dependencies.
"""

import re
import secrets
import time
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional


def now_utc() -> datetime:
    """Returns current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes (SQLite reads them back naive) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def now_ms() -> int:
    return int(time.time() * 1000)


def safe_int(value: Optional[str]) -> Optional[int]:
    """Safely convert a string to int. Returns None on failure."""
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except (ValueError, TypeError):
        return None


def to_decimal(value, default: Decimal = Decimal("0")) -> Decimal:
    """Convert int/float/str/Decimal to Decimal. None or garbage gives `default`."""
    if value is None:
        return default
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return default


def optional_decimal(value) -> Optional[Decimal]:
    """Like to_decimal but keeps None/blank as None (for optional thresholds)."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return to_decimal(value, default=None)


def money_str(value) -> str:
    """Serialize a money amount without losing precision."""
    return str(to_decimal(value))


def format_rupees(value) -> str:
    """Format an amount as ₹ with two decimals and thousands separators."""
    if value is None:
        return "₹0.00"
    try:
        return "₹{:,.2f}".format(to_decimal(value))
    except (ValueError, TypeError):
        return str(value)


def parse_datetime(value) -> Optional[datetime]:
    """Parse an ISO date/datetime from API input. Blank gives None; naive means UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    try:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return as_utc(datetime.fromisoformat(text))
    except ValueError:
        return None


_SLUG_STRIP = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """'Porsche 911 (A3)' -> 'porsche-911-a3'"""
    slug = _SLUG_STRIP.sub("-", (text or "").lower()).strip("-")
    return slug or "item"


# ==========================================
# Order ID Generator
# ==========================================

def generate_order_id() -> str:
    """Time-derived short order id, e.g. EVO-482913."""
    return f"EVO-{str(now_ms())[-6:]}"


def generate_unique_order_id(db, max_retries: int = 10) -> str:
    """Generate an order id that isn't taken yet (checks DB for collision)."""
    from modules.order.models import Order
    code = generate_order_id()
    for _ in range(max_retries):
        exists = db.query(Order.id).filter(Order.id == code).first()
        if not exists:
            return code
        code = f"EVO-{secrets.randbelow(1_000_000):06d}"
    raise RuntimeError("Failed to generate unique order id after retries")
