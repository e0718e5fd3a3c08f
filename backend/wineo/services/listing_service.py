"""Listings: validation, persistence, promotion-aware search and photo wiring."""
from __future__ import annotations

import math
from datetime import datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError

from wineo.errors import (
    DuplicateSlug,
    InvalidAttribute,
    InvalidCategory,
    NotFound,
    StorageUnavailable,
    ValidationFailed,
)
from wineo.extensions import db
from wineo.models import Category, Filter, Listing, User
from wineo.schemas import AttributeIn, ListingCreateRequest, ListingUpdateRequest
from wineo.services.image_pipeline import ImagePipeline, highest_image_index, temp_prefix
from wineo.utils.auth import ensure_owner_or_admin
from wineo.utils.promotion import normalize_promotion_input
from wineo.utils.slugs import new_id, slug_or_fallback, slugify

SLUG_TAKEN = "A listing with this slug already exists"
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100
MINE_LIMIT = 500


def _coerce_price(raw) -> float | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if math.isnan(value) or math.isinf(value) or value < 0:
        return None
    return value


def _resolve_price(raw, price_type: str) -> float:
    value = _coerce_price(raw)
    if value is not None:
        return value
    if price_type == "negotiable":
        return 0.0
    raise ValidationFailed("Valid price is required")


def _clean_attributes(items: list[AttributeIn]) -> list[dict]:
    kept = [a for a in items if a.filter_id and a.value is not None]
    if not kept:
        return []
    wanted = {a.filter_id for a in kept}
    known = {row.id for row in Filter.query.filter(Filter.id.in_(wanted)).all()}
    missing = sorted(wanted - known)
    if missing:
        raise InvalidAttribute(f"Unknown filter: {missing[0]}")
    return [{"filterId": a.filter_id, "value": a.value} for a in kept]


def _check_category_id(category_id: str | None) -> str | None:
    if not category_id:
        return None
    if db.session.get(Category, category_id) is None:
        raise InvalidCategory()
    return category_id


def _clean_urls(urls: list[str] | None) -> list[str]:
    return [u.strip() for u in (urls or []) if isinstance(u, str) and u.strip()]


def _check_temp_keys(user: User, keys: list[str] | None, pipeline: ImagePipeline | None) -> list[str]:
    keys = [k.strip() for k in (keys or []) if isinstance(k, str) and k.strip()]
    if not keys:
        return []
    prefix = temp_prefix(user.id)
    for key in keys:
        if not key.startswith(prefix) or ".." in key:
            raise ValidationFailed("Image keys must come from your own upload slots")
    if pipeline is None:
        raise StorageUnavailable()
    return keys


def _slug_taken(slug: str, exclude_id: str | None = None) -> bool:
    q = Listing.query.filter(Listing.slug == slug)
    if exclude_id:
        q = q.filter(Listing.id != exclude_id)
    return q.first() is not None


def _commit() -> None:
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateSlug(SLUG_TAKEN)


def _required(value: str | None, message: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationFailed(message)
    return text


def get_listing(listing_id: str) -> Listing:
    listing = db.session.get(Listing, listing_id)
    if listing is None:
        raise NotFound("Product not found")
    return listing


def get_listing_by_slug(slug: str, listing_type: str | None = None) -> Listing:
    normalized = (slug or "").strip().lower()
    if not normalized:
        raise NotFound("Product not found")
    base = Listing.query.filter(Listing.slug == normalized, Listing.status == "active")
    listing = None
    if listing_type in ("sell", "rent"):
        listing = base.filter(Listing.type == listing_type).first()
    if listing is None:
        listing = base.first()
    if listing is None:
        raise NotFound("Product not found")
    return listing


def search_listings(
    *,
    status: str | None = None,
    listing_type: str | None = None,
    category_slug: str | None = None,
    limit=None,
    skip=None,
    now: datetime | None = None,
) -> tuple[list[Listing], int, int, int]:
    """Filtered page of listings, live promotions first then newest first."""
    try:
        page_size = int(limit) if limit not in (None, "") else DEFAULT_PAGE_SIZE
    except (TypeError, ValueError):
        page_size = DEFAULT_PAGE_SIZE
    page_size = min(max(1, page_size), MAX_PAGE_SIZE)
    try:
        offset = max(0, int(skip or 0))
    except (TypeError, ValueError):
        offset = 0

    q = Listing.query
    if status:
        q = q.filter(Listing.status == status)
    if listing_type:
        q = q.filter(Listing.type == listing_type)
    normalized_slug = (category_slug or "").strip().lower()
    if normalized_slug:
        q = q.filter(Listing.category_slug == normalized_slug)

    total = q.count()
    moment = now or datetime.utcnow()
    items = (
        q.order_by(*Listing.promotion_sort_key(moment))
        .offset(offset)
        .limit(page_size)
        .all()
    )
    return items, total, page_size, offset


def list_mine(user: User) -> list[Listing]:
    return (
        Listing.query.filter(Listing.owner_id == user.id)
        .order_by(Listing.created_at.desc())
        .limit(MINE_LIMIT)
        .all()
    )


def create_listing(user: User, body: ListingCreateRequest, pipeline: ImagePipeline | None = None) -> Listing:
    title = _required(body.title, "Title is required")
    if body.slug is not None and body.slug.strip():
        slug = slugify(body.slug) or slug_or_fallback(title, "listing")
    else:
        slug = slug_or_fallback(title, "listing")
    if _slug_taken(slug):
        raise DuplicateSlug(SLUG_TAKEN)

    description = _required(body.description, "Description is required")
    category_name = _required(body.category.name, "Category with name and slug is required")
    category_slug = slugify(body.category.slug)
    if not category_slug:
        raise ValidationFailed("Category with name and slug is required")
    category_id = _check_category_id(body.category_id)

    price = _resolve_price(body.price, body.price_type)
    rent_period = body.rent_period if body.type == "rent" else None
    if body.type == "rent" and not rent_period:
        raise ValidationFailed("Rent period is required for rent listings")

    region = _required(body.location.region, "Location with region and city is required")
    city = _required(body.location.city, "Location with region and city is required")

    attributes = _clean_attributes(body.attributes)
    temp_keys = _check_temp_keys(user, body.temp_image_keys, pipeline)
    promotion_type, promotion_expires_at = normalize_promotion_input(
        {"promotionType": body.promotion_type, "promotionExpiresAt": body.promotion_expires_at}
    )

    listing_id = new_id()
    images = _clean_urls(body.images)
    thumbnail = (body.thumbnail or "").strip() or None
    if temp_keys:
        processed_thumb, processed = pipeline.commit_listing_images(listing_id, temp_keys)
        images = processed + images
        thumbnail = thumbnail or processed_thumb

    listing = Listing(
        id=listing_id,
        title=title,
        slug=slug,
        description=description,
        type=body.type,
        category_name=category_name,
        category_slug=category_slug,
        category_id=category_id,
        attributes=attributes,
        price=price,
        currency=body.currency,
        price_type=body.price_type,
        rent_period=rent_period,
        images=images,
        thumbnail=thumbnail or (images[0] if images else None),
        specifications=dict(body.specifications or {}),
        location_region=region,
        location_city=city,
        owner_id=user.id,
        status=body.status,
        promotion_type=promotion_type,
        promotion_expires_at=promotion_expires_at,
        seo_title=(body.seo_title or "").strip() or None,
        seo_description=(body.seo_description or "").strip() or None,
    )
    db.session.add(listing)
    _commit()
    current_app.logger.info(
        "listing_created id=%s owner=%s type=%s images=%s promotion=%s",
        listing.id,
        user.id,
        listing.type,
        len(images),
        promotion_type,
    )
    return listing


def update_listing(user: User, listing_id: str, body: ListingUpdateRequest, pipeline: ImagePipeline | None = None) -> Listing:
    listing = get_listing(listing_id)
    ensure_owner_or_admin(user, listing.owner_id)
    stored_images = list(listing.images or [])

    if body.provided("title"):
        listing.title = _required(body.title, "Title cannot be empty")
    if body.provided("slug"):
        slug = slugify(body.slug or "") or slugify(listing.title)
        if not slug:
            raise ValidationFailed("Slug must be URL-friendly (lowercase, hyphens only)")
        if _slug_taken(slug, exclude_id=listing.id):
            raise DuplicateSlug(SLUG_TAKEN)
        listing.slug = slug
    if body.provided("description"):
        listing.description = _required(body.description, "Description cannot be empty")

    if body.provided("type") and body.type is not None:
        listing.type = body.type
    if body.provided("rent_period") and body.rent_period:
        listing.rent_period = body.rent_period
    if listing.type == "sell":
        listing.rent_period = None
    elif not listing.rent_period:
        raise ValidationFailed("Rent period is required for rent listings")

    if body.provided("category") and body.category is not None:
        category_slug = slugify(body.category.slug)
        if not body.category.name or not category_slug:
            raise ValidationFailed("Category with name and slug is required")
        listing.category_name = body.category.name
        listing.category_slug = category_slug
    if body.provided("category_id"):
        listing.category_id = _check_category_id(body.category_id)
    if body.provided("attributes"):
        listing.attributes = _clean_attributes(body.attributes or [])

    if body.provided("price_type") and body.price_type is not None:
        listing.price_type = body.price_type
    if body.provided("price"):
        listing.price = _resolve_price(body.price, listing.price_type)
    if body.provided("currency") and body.currency is not None:
        listing.currency = body.currency

    if body.provided("location") and body.location is not None:
        listing.location_region = _required(body.location.region, "Location with region and city is required")
        listing.location_city = _required(body.location.city, "Location with region and city is required")

    if body.provided("images") and body.images is not None:
        listing.images = _clean_urls(body.images)
    if body.provided("thumbnail"):
        images = list(listing.images or [])
        listing.thumbnail = (body.thumbnail or "").strip() or (images[0] if images else None)

    if body.provided("specifications") and body.specifications is not None:
        listing.specifications = dict(body.specifications)
    if body.provided("status") and body.status is not None:
        listing.status = body.status
    if body.provided("seo_title"):
        listing.seo_title = (body.seo_title or "").strip() or None
    if body.provided("seo_description"):
        listing.seo_description = (body.seo_description or "").strip() or None

    if body.provided("promotion_type") or body.provided("promotion_expires_at"):
        promotion_type, promotion_expires_at = normalize_promotion_input(
            {"promotionType": body.promotion_type, "promotionExpiresAt": body.promotion_expires_at}
        )
        listing.promotion_type = promotion_type
        listing.promotion_expires_at = promotion_expires_at

    temp_keys = _check_temp_keys(user, body.temp_image_keys, pipeline)
    if temp_keys:
        current = list(listing.images or [])
        start = highest_image_index(listing.id, stored_images + current)
        added = pipeline.append_listing_images(listing.id, temp_keys, start)
        listing.images = current + added
        if not listing.thumbnail and listing.images:
            listing.thumbnail = listing.images[0]

    _commit()
    current_app.logger.info("listing_updated id=%s by=%s", listing.id, user.id)
    return listing


def delete_listing(user: User, listing_id: str) -> None:
    listing = get_listing(listing_id)
    ensure_owner_or_admin(user, listing.owner_id)
    db.session.delete(listing)
    db.session.commit()
    current_app.logger.info("listing_deleted id=%s by=%s", listing_id, user.id)
