from flask import Blueprint, jsonify, request

from wineo.schemas import CategoryCreateRequest, CategoryUpdateRequest, parse_body
from wineo.services import taxonomy_service
from wineo.utils.auth import require_auth

categories_bp = Blueprint("categories_bp", __name__, url_prefix="/categories")


def _truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes")


@categories_bp.get("")
def list_categories():
    rows = taxonomy_service.list_categories(
        parent_id=(request.args.get("parentId") or "").strip() or None,
        roots=_truthy(request.args.get("roots")),
    )
    return jsonify({"ok": True, "items": [c.to_dict() for c in rows]}), 200


# Registered before /<category_id> so "slug" is never read as an id.
@categories_bp.get("/slug/<slug>")
def get_category_by_slug(slug):
    return jsonify(taxonomy_service.get_category_by_slug(slug).to_dict()), 200


@categories_bp.get("/<category_id>")
def get_category(category_id):
    return jsonify(taxonomy_service.get_category(category_id).to_dict()), 200


@categories_bp.post("")
@require_auth
def create_category():
    category = taxonomy_service.create_category(parse_body(CategoryCreateRequest))
    return jsonify(category.to_dict()), 201


@categories_bp.put("/<category_id>")
@require_auth
def update_category(category_id):
    category = taxonomy_service.update_category(category_id, parse_body(CategoryUpdateRequest))
    return jsonify(category.to_dict()), 200


@categories_bp.delete("/<category_id>")
@require_auth
def delete_category(category_id):
    taxonomy_service.delete_category(category_id)
    return "", 204
