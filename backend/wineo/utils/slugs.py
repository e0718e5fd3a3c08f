from __future__ import annotations

import re
import uuid


def slugify(value: str) -> str:
    raw = (value or "").strip().lower()
    if not raw:
        return ""
    raw = re.sub(r"[^a-z0-9]+", "-", raw)
    raw = re.sub(r"-{2,}", "-", raw)
    return raw.strip("-")


def fallback_slug(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def slug_or_fallback(value: str, prefix: str) -> str:
    """Slugify ``value``; when nothing URL-safe is left, mint ``<prefix>-<token>``."""
    return slugify(value) or fallback_slug(prefix)


def new_id() -> str:
    return uuid.uuid4().hex
