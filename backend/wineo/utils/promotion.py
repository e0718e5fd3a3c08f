"""Time-boxed listing promotions.

A promotion only counts while its expiry is strictly in the future; an expired
or malformed promotion behaves exactly like ``none``. All datetimes here are
naive UTC, matching what the models store.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

PROMOTION_NONE = "none"
PROMOTION_TYPES = ("none", "highlighted", "featured", "homepageTop")

PROMOTION_RANKS = {
    "homepageTop": 0,
    "featured": 1,
    "highlighted": 2,
}
NONE_RANK = 3


def _field(listing: Any, name: str):
    if isinstance(listing, dict):
        return listing.get(name)
    return getattr(listing, name, None)


def parse_timestamp(raw: Any) -> datetime | None:
    """Coerce a datetime, ISO-8601 string or epoch-milliseconds number to naive UTC."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, datetime):
        value = raw
    elif isinstance(raw, (int, float)):
        try:
            value = datetime.fromtimestamp(float(raw) / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def is_promotion_active(listing: Any, *, now: datetime | None = None) -> bool:
    promotion_type = _field(listing, "promotion_type")
    if promotion_type in (None, PROMOTION_NONE):
        return False
    expires_at = parse_timestamp(_field(listing, "promotion_expires_at"))
    if expires_at is None:
        return False
    return expires_at > (now or datetime.utcnow())


def get_effective_promotion_type(listing: Any, *, now: datetime | None = None) -> str:
    raw = _field(listing, "promotion_type")
    if raw in PROMOTION_RANKS:
        return raw if is_promotion_active(listing, now=now) else PROMOTION_NONE
    return PROMOTION_NONE


def get_promotion_rank(listing: Any, *, now: datetime | None = None) -> int:
    return PROMOTION_RANKS.get(get_effective_promotion_type(listing, now=now), NONE_RANK)


def normalize_promotion_input(body: Any, *, now: datetime | None = None) -> tuple[str, datetime | None]:
    """Map a raw ``promotionType``/``promotionExpiresAt`` pair onto a storable pair.

    Unknown types and types without a valid future expiry collapse to
    ``("none", None)``.
    """
    body = body if isinstance(body, dict) else {}
    raw_type = body.get("promotionType")
    promotion_type = raw_type if isinstance(raw_type, str) and raw_type in PROMOTION_TYPES else PROMOTION_NONE
    if promotion_type == PROMOTION_NONE:
        return PROMOTION_NONE, None

    expires_at = parse_timestamp(body.get("promotionExpiresAt"))
    if expires_at is None or expires_at <= (now or datetime.utcnow()):
        return PROMOTION_NONE, None
    return promotion_type, expires_at
