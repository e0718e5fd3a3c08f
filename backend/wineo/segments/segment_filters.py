from flask import Blueprint, jsonify, request

from wineo.schemas import FilterCreateRequest, FilterUpdateRequest, parse_body
from wineo.services import filter_service
from wineo.utils.auth import require_auth

filters_bp = Blueprint("filters_bp", __name__, url_prefix="/filters")


@filters_bp.get("")
def list_filters():
    rows = filter_service.list_filters(
        category_id=(request.args.get("categoryId") or "").strip() or None,
        include_inactive=(request.args.get("all") or "").strip().lower() in ("1", "true"),
    )
    return jsonify({"ok": True, "items": [f.to_dict() for f in rows]}), 200


@filters_bp.get("/by-category/<category_id>")
def filters_for_category(category_id):
    rows = filter_service.filters_for_category(category_id)
    return jsonify({"ok": True, "items": [f.to_dict() for f in rows]}), 200


@filters_bp.get("/<filter_id>")
def get_filter(filter_id):
    return jsonify(filter_service.get_filter(filter_id).to_dict()), 200


@filters_bp.post("")
@require_auth
def create_filter():
    return jsonify(filter_service.create_filter(parse_body(FilterCreateRequest)).to_dict()), 201


@filters_bp.put("/<filter_id>")
@require_auth
def update_filter(filter_id):
    return jsonify(filter_service.update_filter(filter_id, parse_body(FilterUpdateRequest)).to_dict()), 200


@filters_bp.delete("/<filter_id>")
@require_auth
def delete_filter(filter_id):
    filter_service.delete_filter(filter_id)
    return "", 204
