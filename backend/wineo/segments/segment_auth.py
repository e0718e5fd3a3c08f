from flask import Blueprint, jsonify

from wineo.schemas import LoginRequest, ProfileUpdateRequest, RegisterRequest, parse_body
from wineo.services import auth_service
from wineo.utils.auth import current_user, require_auth

auth_bp = Blueprint("auth_bp", __name__, url_prefix="/auth")


@auth_bp.post("/register")
def register():
    user = auth_service.register(parse_body(RegisterRequest))
    return jsonify(auth_service.issue_session(user)), 201


@auth_bp.post("/login")
def login():
    user = auth_service.login(parse_body(LoginRequest))
    return jsonify(auth_service.issue_session(user)), 200


@auth_bp.get("/me")
@require_auth
def me():
    return jsonify(current_user().to_dict()), 200


@auth_bp.patch("/me")
@require_auth
def update_me():
    user = auth_service.update_profile(current_user(), parse_body(ProfileUpdateRequest))
    return jsonify(user.to_dict()), 200
