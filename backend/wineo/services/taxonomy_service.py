"""Regions, cities and the category tree.

Categories carry a materialized ancestor path. ``path`` and ``level`` are
recomputed from the parent whenever a category is created or re-parented;
descendants of a moved category keep their old cached path until
``rebuild_category_paths`` runs.
"""
from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError

from wineo.errors import DuplicateSlug, HasChildren, InvalidParent, NotFound, ValidationFailed
from wineo.extensions import db
from wineo.models import Category, City, Filter, Listing, Region
from wineo.schemas import (
    CategoryCreateRequest,
    CategoryUpdateRequest,
    CityCreateRequest,
    CityUpdateRequest,
    RegionCreateRequest,
    RegionUpdateRequest,
)
from wineo.utils.slugs import slug_or_fallback, slugify

BAD_SLUG = "Slug must be URL-friendly (lowercase, hyphens only)"


def resolve_slug(raw: str | None, source: str, prefix: str) -> str:
    """Slug for a new row: the caller's slug if given, else one derived from ``source``."""
    if raw is not None and raw.strip():
        slug = slugify(raw)
        if not slug:
            raise ValidationFailed(BAD_SLUG)
        return slug
    return slug_or_fallback(source, prefix)


def _explicit_slug(raw: str | None) -> str:
    slug = slugify(raw or "")
    if not slug:
        raise ValidationFailed(BAD_SLUG)
    return slug


def _required_text(value: str | None, message: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationFailed(message)
    return text


def commit_or_conflict(message: str) -> None:
    """Commit, turning a unique-index violation into a 409."""
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        current_app.logger.info("unique_violation message=%s", message)
        raise DuplicateSlug(message)


# regions

REGION_SLUG_TAKEN = "A region with this slug already exists"


def list_regions() -> list[Region]:
    return Region.query.order_by(Region.label.asc()).all()


def get_region(region_id: str) -> Region:
    region = db.session.get(Region, region_id)
    if region is None:
        raise NotFound("Region not found")
    return region


def create_region(body: RegionCreateRequest) -> Region:
    label = _required_text(body.label, "Region label is required")
    slug = resolve_slug(body.slug, label, "region")
    if Region.query.filter_by(slug=slug).first() is not None:
        raise DuplicateSlug(REGION_SLUG_TAKEN)
    region = Region(slug=slug, label=label)
    db.session.add(region)
    commit_or_conflict(REGION_SLUG_TAKEN)
    current_app.logger.info("region_created id=%s slug=%s", region.id, region.slug)
    return region


def update_region(region_id: str, body: RegionUpdateRequest) -> Region:
    region = get_region(region_id)
    if body.provided("label"):
        region.label = _required_text(body.label, "Region label cannot be empty")
    if body.provided("slug"):
        slug = _explicit_slug(body.slug)
        clash = Region.query.filter(Region.slug == slug, Region.id != region.id).first()
        if clash is not None:
            raise DuplicateSlug(REGION_SLUG_TAKEN)
        region.slug = slug
    commit_or_conflict(REGION_SLUG_TAKEN)
    return region


def delete_region(region_id: str) -> None:
    region = get_region(region_id)
    # Cities cannot outlive their region.
    City.query.filter_by(region_id=region.id).delete(synchronize_session=False)
    db.session.delete(region)
    db.session.commit()
    current_app.logger.info("region_deleted id=%s", region_id)


# cities

CITY_SLUG_TAKEN = "A city with this slug already exists in this region"


def list_cities(region_id: str | None = None) -> list[City]:
    q = City.query
    if region_id:
        q = q.filter(City.region_id == region_id)
    return q.order_by(City.region_id.asc(), City.label.asc()).all()


def get_city(city_id: str) -> City:
    city = db.session.get(City, city_id)
    if city is None:
        raise NotFound("City not found")
    return city


def _city_slug_taken(region_id: str, slug: str, exclude_id: str | None = None) -> bool:
    q = City.query.filter(City.region_id == region_id, City.slug == slug)
    if exclude_id:
        q = q.filter(City.id != exclude_id)
    return q.first() is not None


def create_city(body: CityCreateRequest) -> City:
    label = _required_text(body.label, "City label is required")
    region_id = _required_text(body.region_id, "Region is required")
    region = db.session.get(Region, region_id)
    if region is None:
        raise ValidationFailed("Region not found")
    slug = resolve_slug(body.slug, label, "city")
    if _city_slug_taken(region.id, slug):
        raise DuplicateSlug(CITY_SLUG_TAKEN)
    city = City(slug=slug, label=label, region_id=region.id)
    db.session.add(city)
    commit_or_conflict(CITY_SLUG_TAKEN)
    current_app.logger.info("city_created id=%s region=%s slug=%s", city.id, region.id, city.slug)
    return city


def update_city(city_id: str, body: CityUpdateRequest) -> City:
    city = get_city(city_id)
    scope_changed = False
    if body.provided("label"):
        city.label = _required_text(body.label, "City label cannot be empty")
    if body.provided("region_id"):
        region = db.session.get(Region, body.region_id or "")
        if region is None:
            raise ValidationFailed("Region not found")
        scope_changed = region.id != city.region_id
        city.region_id = region.id
    if body.provided("slug"):
        city.slug = _explicit_slug(body.slug)
        scope_changed = True
    if scope_changed and _city_slug_taken(city.region_id, city.slug, exclude_id=city.id):
        raise DuplicateSlug(CITY_SLUG_TAKEN)
    commit_or_conflict(CITY_SLUG_TAKEN)
    db.session.refresh(city)
    return city


def delete_city(city_id: str) -> None:
    city = get_city(city_id)
    db.session.delete(city)
    db.session.commit()
    current_app.logger.info("city_deleted id=%s", city_id)


# categories

CATEGORY_SLUG_TAKEN = "A category with this slug already exists under this parent"


def list_categories(parent_id: str | None = None, roots: bool = False) -> list[Category]:
    q = Category.query
    if roots:
        q = q.filter(Category.parent_id.is_(None))
    elif parent_id:
        q = q.filter(Category.parent_id == parent_id)
    return q.order_by(Category.level.asc(), Category.name.asc()).all()


def get_category(category_id: str) -> Category:
    category = db.session.get(Category, category_id)
    if category is None:
        raise NotFound("Category not found")
    return category


def get_category_by_slug(slug: str) -> Category:
    normalized = (slug or "").strip().lower()
    category = None
    if normalized:
        category = (
            Category.query.filter(Category.slug == normalized, Category.active.is_(True))
            .order_by(Category.level.asc())
            .first()
        )
    if category is None:
        raise NotFound("Category not found")
    return category


def _attach_to_parent(category: Category, parent: Category | None) -> None:
    if parent is None:
        category.parent_id = None
        category.parent_scope = ""
        category.path = []
        category.level = 0
        return
    category.parent_id = parent.id
    category.parent_scope = parent.id
    category.path = list(parent.path or []) + [parent.id]
    category.level = int(parent.level or 0) + 1


def _chain_reaches(start: Category, target_id: str) -> bool:
    """Walk ``parent_id`` pointers up from ``start``; true if ``target_id`` is on the chain.

    Cached paths may be stale after an ancestor moves.
    """
    seen: set[str] = set()
    cursor = start
    while cursor is not None and cursor.id not in seen:
        if cursor.id == target_id:
            return True
        seen.add(cursor.id)
        cursor = db.session.get(Category, cursor.parent_id) if cursor.parent_id else None
    return False


def _category_slug_taken(parent_scope: str, slug: str, exclude_id: str | None = None) -> bool:
    q = Category.query.filter(Category.parent_scope == parent_scope, Category.slug == slug)
    if exclude_id:
        q = q.filter(Category.id != exclude_id)
    return q.first() is not None


def create_category(body: CategoryCreateRequest) -> Category:
    name = _required_text(body.name, "Category name is required")
    slug = resolve_slug(body.slug, name, "category")

    parent = None
    if body.parent_id:
        parent = db.session.get(Category, body.parent_id)
        if parent is None:
            raise InvalidParent()

    category = Category(
        name=name,
        slug=slug,
        description=(body.description or "").strip(),
        active=bool(body.active),
    )
    _attach_to_parent(category, parent)
    if _category_slug_taken(category.parent_scope, slug):
        raise DuplicateSlug(CATEGORY_SLUG_TAKEN)

    db.session.add(category)
    commit_or_conflict(CATEGORY_SLUG_TAKEN)
    current_app.logger.info(
        "category_created id=%s parent=%s level=%s", category.id, category.parent_id, category.level
    )
    return category


def update_category(category_id: str, body: CategoryUpdateRequest) -> Category:
    category = get_category(category_id)
    scope_changed = False

    if body.provided("name"):
        category.name = _required_text(body.name, "Category name cannot be empty")
    if body.provided("description"):
        category.description = (body.description or "").strip()
    if body.provided("active") and body.active is not None:
        category.active = bool(body.active)

    if body.provided("parent_id"):
        if not body.parent_id:
            _attach_to_parent(category, None)
        else:
            parent = db.session.get(Category, body.parent_id)
            if parent is None:
                raise InvalidParent()
            if parent.id == category.id:
                raise InvalidParent("Category cannot be its own parent")
            if _chain_reaches(parent, category.id):
                raise InvalidParent("Category cannot be moved under its own descendant")
            _attach_to_parent(category, parent)
        scope_changed = True

    if body.provided("slug"):
        category.slug = _explicit_slug(body.slug)
        scope_changed = True

    if scope_changed and _category_slug_taken(category.parent_scope, category.slug, exclude_id=category.id):
        raise DuplicateSlug(CATEGORY_SLUG_TAKEN)

    commit_or_conflict(CATEGORY_SLUG_TAKEN)
    return category


def delete_category(category_id: str) -> None:
    category = get_category(category_id)
    if Category.query.filter_by(parent_id=category.id).count() > 0:
        raise HasChildren()
    Filter.query.filter_by(category_id=category.id).delete(synchronize_session=False)
    Listing.query.filter_by(category_id=category.id).update({"category_id": None}, synchronize_session=False)
    db.session.delete(category)
    db.session.commit()
    current_app.logger.info("category_deleted id=%s", category_id)


def rebuild_category_paths() -> tuple[int, list[str]]:
    """Recompute ``path``/``level`` for every category from parent pointers.

    Returns the number of rows changed and the ids skipped because their
    parent chain is broken or cyclic.
    """
    categories = Category.query.all()
    by_id = {c.id: c for c in categories}
    updated = 0
    skipped: list[str] = []

    for category in categories:
        path: list[str] = []
        seen = {category.id}
        cursor = category
        broken = False
        while cursor.parent_id:
            parent = by_id.get(cursor.parent_id)
            if parent is None or parent.id in seen:
                broken = True
                break
            path.insert(0, parent.id)
            seen.add(parent.id)
            cursor = parent
        if broken:
            skipped.append(category.id)
            continue
        if list(category.path or []) == path and int(category.level or 0) == len(path):
            continue
        category.path = path
        category.level = len(path)
        updated += 1

    db.session.commit()
    return updated, skipped
