from flask import Blueprint, current_app, jsonify, request

from wineo.errors import StorageUnavailable
from wineo.schemas import ListingCreateRequest, ListingUpdateRequest, UploadSlotsRequest, parse_body
from wineo.services import listing_service
from wineo.utils.auth import current_user, require_auth

products_bp = Blueprint("products_bp", __name__, url_prefix="/products")


def _pipeline():
    return current_app.extensions.get("image_pipeline")


@products_bp.get("")
def list_products():
    args = request.args
    items, total, limit, skip = listing_service.search_listings(
        status=(args.get("status") or "").strip() or None,
        listing_type=(args.get("type") or "").strip() or None,
        category_slug=args.get("categorySlug"),
        limit=args.get("limit"),
        skip=args.get("skip"),
    )
    return jsonify({
        "ok": True,
        "items": [row.to_dict() for row in items],
        "total": total,
        "limit": limit,
        "skip": skip,
    }), 200


# The fixed paths below are registered before /<listing_id>.
@products_bp.get("/slug/<slug>")
def get_product_by_slug(slug):
    listing = listing_service.get_listing_by_slug(slug, (request.args.get("type") or "").strip() or None)
    return jsonify(listing.to_dict()), 200


@products_bp.get("/mine")
@require_auth
def my_products():
    rows = listing_service.list_mine(current_user())
    return jsonify({"ok": True, "items": [row.to_dict() for row in rows]}), 200


@products_bp.post("/upload-urls")
@require_auth
def upload_urls():
    body = parse_body(UploadSlotsRequest)
    pipeline = _pipeline()
    if pipeline is None:
        raise StorageUnavailable()
    slots = pipeline.allocate_upload_slots(current_user().id, body.count)
    return jsonify({"ok": True, "items": slots}), 200


@products_bp.get("/<listing_id>")
def get_product(listing_id):
    return jsonify(listing_service.get_listing(listing_id).to_dict()), 200


@products_bp.post("")
@require_auth
def create_product():
    listing = listing_service.create_listing(current_user(), parse_body(ListingCreateRequest), _pipeline())
    return jsonify(listing.to_dict()), 201


@products_bp.put("/<listing_id>")
@require_auth
def update_product(listing_id):
    listing = listing_service.update_listing(current_user(), listing_id, parse_body(ListingUpdateRequest), _pipeline())
    return jsonify(listing.to_dict()), 200


@products_bp.delete("/<listing_id>")
@require_auth
def delete_product(listing_id):
    listing_service.delete_listing(current_user(), listing_id)
    return "", 204
