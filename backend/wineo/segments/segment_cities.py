from flask import Blueprint, jsonify, request

from wineo.schemas import CityCreateRequest, CityUpdateRequest, parse_body
from wineo.services import taxonomy_service
from wineo.utils.auth import require_auth

cities_bp = Blueprint("cities_bp", __name__, url_prefix="/cities")


@cities_bp.get("")
def list_cities():
    region_id = (request.args.get("regionId") or "").strip() or None
    rows = taxonomy_service.list_cities(region_id)
    return jsonify({"ok": True, "items": [c.to_dict() for c in rows]}), 200


@cities_bp.get("/<city_id>")
def get_city(city_id):
    return jsonify(taxonomy_service.get_city(city_id).to_dict()), 200


@cities_bp.post("")
@require_auth
def create_city():
    return jsonify(taxonomy_service.create_city(parse_body(CityCreateRequest)).to_dict()), 201


@cities_bp.put("/<city_id>")
@require_auth
def update_city(city_id):
    return jsonify(taxonomy_service.update_city(city_id, parse_body(CityUpdateRequest)).to_dict()), 200


@cities_bp.delete("/<city_id>")
@require_auth
def delete_city(city_id):
    taxonomy_service.delete_city(city_id)
    return "", 204
