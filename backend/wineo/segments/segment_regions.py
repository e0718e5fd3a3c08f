from flask import Blueprint, jsonify

from wineo.schemas import RegionCreateRequest, RegionUpdateRequest, parse_body
from wineo.services import taxonomy_service
from wineo.utils.auth import require_auth

regions_bp = Blueprint("regions_bp", __name__, url_prefix="/regions")


@regions_bp.get("")
def list_regions():
    return jsonify({"ok": True, "items": [r.to_dict() for r in taxonomy_service.list_regions()]}), 200


@regions_bp.get("/<region_id>")
def get_region(region_id):
    return jsonify(taxonomy_service.get_region(region_id).to_dict()), 200


@regions_bp.post("")
@require_auth
def create_region():
    return jsonify(taxonomy_service.create_region(parse_body(RegionCreateRequest)).to_dict()), 201


@regions_bp.put("/<region_id>")
@require_auth
def update_region(region_id):
    return jsonify(taxonomy_service.update_region(region_id, parse_body(RegionUpdateRequest)).to_dict()), 200


@regions_bp.delete("/<region_id>")
@require_auth
def delete_region(region_id):
    taxonomy_service.delete_region(region_id)
    return "", 204
