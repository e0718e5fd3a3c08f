from __future__ import annotations

from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy.exc import IntegrityError

from wineo.errors import Conflict, InvalidCredentials, Unauthorized, ValidationFailed
from wineo.extensions import db
from wineo.models import User
from wineo.schemas import LoginRequest, ProfileUpdateRequest, RegisterRequest
from wineo.utils.jwt_utils import access_token_ttl_seconds, create_access_token, decode_token, get_bearer_token

MIN_PASSWORD_LENGTH = 6
EMAIL_TAKEN = "Email already registered"


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _iso_utc(dt: datetime) -> str:
    return dt.replace(microsecond=0).isoformat() + "Z"


def _check_names(user_type: str, first_name: str, last_name: str, business_name: str) -> None:
    if user_type == "business":
        if not business_name:
            raise ValidationFailed("Business name is required for business accounts")
    elif not first_name or not last_name:
        raise ValidationFailed("First name and last name are required")


def issue_session(user: User) -> dict:
    ttl_seconds = access_token_ttl_seconds()
    expires_at = datetime.utcnow() + timedelta(seconds=ttl_seconds)
    token = create_access_token(user.id, ttl_seconds=ttl_seconds)
    return {
        "user": user.to_dict(),
        "token": token,
        "expires_at": _iso_utc(expires_at),
    }


def register(body: RegisterRequest) -> User:
    email = normalize_email(body.email)
    if len(body.password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    _check_names(body.user_type, body.first_name, body.last_name, body.business_name)

    if User.query.filter_by(email=email).first() is not None:
        current_app.logger.info("register_conflict reason=email_taken")
        raise Conflict(EMAIL_TAKEN)

    user = User(
        email=email,
        first_name=body.first_name,
        last_name=body.last_name,
        business_name=body.business_name,
        user_type=body.user_type,
        phone=body.phone,
        role="customer",
    )
    user.set_password(body.password)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        current_app.logger.info("register_conflict reason=unique_index")
        raise Conflict(EMAIL_TAKEN)
    current_app.logger.info("user_registered id=%s type=%s", user.id, user.user_type)
    return user


def login(body: LoginRequest) -> User:
    email = normalize_email(body.email)
    if not email or not body.password:
        raise ValidationFailed("Email and password are required")
    user = User.query.filter_by(email=email).first()
    # Same error for unknown email and wrong password.
    if user is None or not user.check_password(body.password):
        raise InvalidCredentials()
    return user


def authenticate(auth_header: str) -> User:
    token = get_bearer_token(auth_header or "")
    if not token:
        raise Unauthorized("Missing or invalid authorization header")
    payload = decode_token(token)
    if not payload:
        raise Unauthorized("Invalid or expired token")
    user_id = str(payload.get("sub") or "").strip()
    if not user_id:
        raise Unauthorized("Invalid token payload")
    user = db.session.get(User, user_id)
    if user is None:
        raise Unauthorized("User not found")
    return user


def update_profile(user: User, body: ProfileUpdateRequest) -> User:
    first_name = body.first_name if body.first_name is not None else user.first_name
    last_name = body.last_name if body.last_name is not None else user.last_name
    business_name = body.business_name if body.business_name is not None else user.business_name
    user_type = body.user_type or user.user_type
    _check_names(user_type, first_name or "", last_name or "", business_name or "")

    user.first_name = first_name or ""
    user.last_name = last_name or ""
    user.business_name = business_name or ""
    user.user_type = user_type
    if body.phone is not None:
        user.phone = body.phone
    db.session.commit()
    current_app.logger.info("profile_updated id=%s", user.id)
    return user
