import os

import click
from flask import Flask, g, jsonify, request
from pydantic import ValidationError
from sqlalchemy import text
from werkzeug.exceptions import HTTPException

from wineo.errors import ApiError
from wineo.extensions import cors, db, migrate
from wineo.models import User
from wineo.segments.segment_auth import auth_bp
from wineo.segments.segment_categories import categories_bp
from wineo.segments.segment_cities import cities_bp
from wineo.segments.segment_filters import filters_bp
from wineo.segments.segment_products import products_bp
from wineo.segments.segment_regions import regions_bp
from wineo.services.image_pipeline import ImagePipeline
from wineo.services.object_store import build_object_store_from_env
from wineo.services.taxonomy_service import rebuild_category_paths
from wineo.utils.observability import init_sentry, install_request_observers

DEV_ENVS = ("dev", "development", "local", "test")


def _env_int(name: str, default: int, *, minimum: int = 1, maximum: int = 100000) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        value = int(default)
    else:
        try:
            value = int(raw)
        except ValueError:
            value = int(default)
    return max(minimum, min(value, maximum))


def _database_url(env: str, instance_dir: str) -> str:
    database_url = (os.getenv("SQLALCHEMY_DATABASE_URI") or os.getenv("DATABASE_URL") or "").strip()
    if not database_url:
        if env in ("prod", "production"):
            raise RuntimeError("DATABASE_URL (or SQLALCHEMY_DATABASE_URI) must be set in production")
        database_url = f"sqlite:///{os.path.join(instance_dir, 'wineo.db').replace(os.sep, '/')}"
    # Heroku/Render style URLs are not accepted by SQLAlchemy 2.
    if database_url.startswith("postgres://"):
        database_url = "postgresql://" + database_url[len("postgres://"):]
    return database_url


def _cors_origins(env: str) -> list[str]:
    allowed = [o.strip() for o in (os.getenv("CORS_ORIGINS") or "").split(",") if o.strip()]
    if allowed or env in ("prod", "production"):
        return allowed
    return ["*"]


def _error_response(payload: dict, status: int):
    rid = (getattr(g, "request_id", "") or "").strip()
    if rid:
        payload["trace_id"] = rid
    return jsonify(payload), status


def create_app(test_config=None, *, object_store=None):
    app = Flask(__name__)
    init_sentry(app)

    env = (os.getenv("WINEO_ENV", "dev") or "dev").strip().lower()

    if env in ("prod", "production"):
        secret = (os.getenv("JWT_SECRET") or os.getenv("SECRET_KEY") or "").strip()
        if not secret or len(secret) < 16:
            raise RuntimeError("SECRET_KEY must be set and at least 16 chars in production")

    app.config["SECRET_KEY"] = os.getenv("SECRET_KEY", "dev-secret-change-me")
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["WINEO_ENV"] = env

    instance_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "instance"))
    os.makedirs(instance_dir, exist_ok=True)

    database_url = _database_url(env, instance_dir)
    app.config["SQLALCHEMY_DATABASE_URI"] = database_url
    engine_options = {"pool_pre_ping": True}
    if not database_url.startswith("sqlite://"):
        engine_options.update(
            {
                "pool_recycle": _env_int("DB_POOL_RECYCLE_SECONDS", 1800, minimum=60, maximum=86400),
                "pool_size": _env_int("DB_POOL_SIZE", 10, minimum=1, maximum=200),
                "max_overflow": _env_int("DB_MAX_OVERFLOW", 20, minimum=0, maximum=500),
                "pool_timeout": _env_int("DB_POOL_TIMEOUT_SECONDS", 30, minimum=1, maximum=300),
            }
        )
        app.logger.info(
            "db_pooling_enabled pool_size=%s max_overflow=%s pool_timeout=%s",
            engine_options["pool_size"],
            engine_options["max_overflow"],
            engine_options["pool_timeout"],
        )
    app.config["SQLALCHEMY_ENGINE_OPTIONS"] = engine_options

    if test_config:
        app.config.update(test_config)

    cors.init_app(app, resources={r"/*": {"origins": _cors_origins(env)}})

    db.init_app(app)
    migrate.init_app(app, db)
    install_request_observers(app)

    store = object_store if object_store is not None else build_object_store_from_env()
    app.extensions["image_pipeline"] = ImagePipeline(store) if store is not None else None
    if store is None:
        app.logger.info("image_pipeline_disabled reason=no_object_store")

    @app.errorhandler(ApiError)
    def _api_error(error: ApiError):
        return _error_response(error.to_payload(), int(error.status))

    @app.errorhandler(ValidationError)
    def _api_validation_error(error: ValidationError):
        parts = []
        for item in error.errors():
            loc = ".".join(str(p) for p in item.get("loc", ()) if p != "__root__")
            msg = item.get("msg") or "invalid"
            parts.append(f"{loc}: {msg}" if loc else msg)
        payload = {
            "ok": False,
            "error": "VALIDATION_FAILED",
            "message": "; ".join(parts) or "Invalid request",
            "status": 400,
        }
        return _error_response(payload, 400)

    @app.errorhandler(HTTPException)
    def _api_http_exception(error: HTTPException):
        payload = {
            "ok": False,
            "error": error.name,
            "message": error.description or error.name,
            "status": int(error.code or 500),
        }
        return _error_response(payload, int(error.code or 500))

    @app.errorhandler(Exception)
    def _api_unhandled_exception(error: Exception):
        app.logger.exception("unhandled_exception path=%s", request.path)
        db.session.rollback()
        payload = {
            "ok": False,
            "error": "InternalServerError",
            "message": "Internal server error",
            "status": 500,
        }
        return _error_response(payload, 500)

    app.register_blueprint(auth_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(regions_bp)
    app.register_blueprint(cities_bp)
    app.register_blueprint(filters_bp)
    app.register_blueprint(products_bp)

    @app.get("/health")
    def health():
        db_state = "ok"
        try:
            with db.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception as e:
            app.logger.warning("health_db_probe_failed err=%s", e)
            db_state = "fail"
        return jsonify({"ok": True, "service": "wineo-backend", "env": env, "db": db_state})

    @app.cli.command("backfill-category-paths")
    def backfill_category_paths():
        """Recompute cached path/level for every category from its parent chain."""
        updated, skipped = rebuild_category_paths()
        for category_id in skipped:
            click.echo(f"skipped {category_id}: parent missing or cyclic", err=True)
        click.echo(f"category_paths_backfilled updated={updated} skipped={len(skipped)}")

    @app.cli.command("bootstrap-admin")
    def bootstrap_admin():
        allow = (os.getenv("ALLOW_ADMIN_BOOTSTRAP") or "").strip() == "1"
        if env not in DEV_ENVS and not allow:
            raise click.ClickException("Admin bootstrap disabled. Set ALLOW_ADMIN_BOOTSTRAP=1 or WINEO_ENV=dev.")

        email = (os.getenv("ADMIN_EMAIL") or "").strip().lower()
        password = (os.getenv("ADMIN_PASSWORD") or "").strip()
        if not email or not password:
            raise click.ClickException("ADMIN_EMAIL and ADMIN_PASSWORD must be set.")
        if len(password) < 6:
            raise click.ClickException("ADMIN_PASSWORD must be at least 6 characters.")

        u = User.query.filter_by(email=email).first()
        if u:
            u.set_password(password)
            u.role = "admin"
        else:
            u = User(email=email, role="admin", first_name="Admin", last_name=email.split("@")[0])
            u.set_password(password)
            db.session.add(u)
        db.session.commit()
        click.echo(f"admin_bootstrap_ok {u.email}")

    return app
