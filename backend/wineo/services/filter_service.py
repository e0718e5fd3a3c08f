"""Category filters and their inheritance down the category tree.

A category sees its own filters plus every filter attached to one of its
ancestors with ``apply_to_children`` set. Inactive filters are never returned.

Search facets built from indexed listings would apply the same rule.
"""
from __future__ import annotations

from flask import current_app
from sqlalchemy import and_, or_

from wineo.errors import DuplicateSlug, InvalidCategory, NotFound, ValidationFailed
from wineo.extensions import db
from wineo.models import Category, Filter
from wineo.schemas import FilterCreateRequest, FilterUpdateRequest
from wineo.services.taxonomy_service import BAD_SLUG, commit_or_conflict, resolve_slug
from wineo.utils.slugs import slugify

FILTER_SLUG_TAKEN = "A filter with this slug already exists in this category"


def filters_for_category(category_id: str) -> list[Filter]:
    category = db.session.get(Category, category_id)
    if category is None:
        raise NotFound("Category not found")

    ancestors = list(category.path or [])
    clauses = [Filter.category_id == category.id]
    if ancestors:
        clauses.append(and_(Filter.category_id.in_(ancestors), Filter.apply_to_children.is_(True)))

    return (
        Filter.query.filter(Filter.is_active.is_(True), or_(*clauses))
        .order_by(Filter.sort_order.asc(), Filter.name.asc())
        .all()
    )


def list_filters(category_id: str | None = None, include_inactive: bool = False) -> list[Filter]:
    q = Filter.query
    if not include_inactive:
        q = q.filter(Filter.is_active.is_(True))
    if category_id:
        q = q.filter(Filter.category_id == category_id)
    return q.order_by(Filter.category_id.asc(), Filter.sort_order.asc(), Filter.name.asc()).all()


def get_filter(filter_id: str) -> Filter:
    row = db.session.get(Filter, filter_id)
    if row is None:
        raise NotFound("Filter not found")
    return row


def _clean_options(filter_type: str, options: list[str] | None) -> list[str] | None:
    if filter_type != "select":
        return None
    cleaned = [o for o in (options or []) if isinstance(o, str) and o]
    if not cleaned or len(cleaned) != len(options or []):
        raise ValidationFailed("Select filters must have at least one option")
    return cleaned


def _require_category(category_id: str | None) -> Category:
    category = db.session.get(Category, category_id or "")
    if category is None:
        raise InvalidCategory()
    return category


def _slug_taken(category_id: str, slug: str, exclude_id: str | None = None) -> bool:
    q = Filter.query.filter(Filter.category_id == category_id, Filter.slug == slug)
    if exclude_id:
        q = q.filter(Filter.id != exclude_id)
    return q.first() is not None


def create_filter(body: FilterCreateRequest) -> Filter:
    name = (body.name or "").strip()
    if not name:
        raise ValidationFailed("name, type, and categoryId are required")
    category = _require_category(body.category_id)
    slug = resolve_slug(body.slug, name, "filter")
    if _slug_taken(category.id, slug):
        raise DuplicateSlug(FILTER_SLUG_TAKEN)

    row = Filter(
        name=name,
        slug=slug,
        type=body.type,
        options=_clean_options(body.type, body.options),
        unit=body.unit or "",
        category_id=category.id,
        apply_to_children=bool(body.apply_to_children),
        is_required=bool(body.is_required),
        sort_order=int(body.sort_order or 0),
        is_active=bool(body.is_active),
    )
    db.session.add(row)
    commit_or_conflict(FILTER_SLUG_TAKEN)
    current_app.logger.info("filter_created id=%s category=%s inherit=%s", row.id, row.category_id, row.apply_to_children)
    return row


def update_filter(filter_id: str, body: FilterUpdateRequest) -> Filter:
    row = get_filter(filter_id)
    scope_changed = False

    if body.provided("name"):
        name = (body.name or "").strip()
        if not name:
            raise ValidationFailed("Name cannot be empty")
        row.name = name
    if body.provided("slug"):
        slug = slugify(body.slug or "") or slugify(row.name)
        if not slug:
            raise ValidationFailed(BAD_SLUG)
        row.slug = slug
        scope_changed = True
    if body.provided("category_id"):
        row.category_id = _require_category(body.category_id).id
        scope_changed = True
    if body.provided("type") and body.type is not None:
        row.type = body.type
    if body.provided("options") or body.provided("type"):
        options = body.options if body.provided("options") else row.options
        row.options = _clean_options(row.type, options)
    if body.provided("unit"):
        row.unit = body.unit or ""
    if body.provided("apply_to_children") and body.apply_to_children is not None:
        row.apply_to_children = bool(body.apply_to_children)
    if body.provided("is_required") and body.is_required is not None:
        row.is_required = bool(body.is_required)
    if body.provided("sort_order") and body.sort_order is not None:
        row.sort_order = int(body.sort_order)
    if body.provided("is_active") and body.is_active is not None:
        row.is_active = bool(body.is_active)

    if scope_changed and _slug_taken(row.category_id, row.slug, exclude_id=row.id):
        raise DuplicateSlug(FILTER_SLUG_TAKEN)
    commit_or_conflict(FILTER_SLUG_TAKEN)
    return row


def delete_filter(filter_id: str) -> None:
    row = get_filter(filter_id)
    db.session.delete(row)
    db.session.commit()
    current_app.logger.info("filter_deleted id=%s", filter_id)
