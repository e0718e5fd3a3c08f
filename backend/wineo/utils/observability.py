"""Request tracing, access logging and optional Sentry reporting."""
from __future__ import annotations

import hashlib
import json
import os
import re
import time
import uuid
from datetime import datetime

from flask import g, request

REQUEST_ID_HEADER = "X-Request-Id"
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._-]{1,128}$")
_SCRUBBED_HEADERS = ("authorization", "cookie", "set-cookie", "x-api-key")


def _sample_rate(raw: str | None) -> float:
    try:
        rate = float((raw or "0").strip())
    except ValueError:
        return 0.0
    return max(0.0, min(rate, 1.0))


def _client_fingerprint(salt: str) -> str:
    forwarded = (request.headers.get("X-Forwarded-For") or "").split(",")[0].strip()
    ip = forwarded or request.remote_addr or ""
    return hashlib.sha256(f"{salt}:{ip}".encode("utf-8")).hexdigest()[:16]


def _incoming_request_id() -> str:
    rid = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
    return rid if _REQUEST_ID_RE.match(rid) else uuid.uuid4().hex


def _before_send_scrub(event, hint):
    headers = (event.get("request") or {}).get("headers")
    if isinstance(headers, dict):
        for name in list(headers):
            if name.lower() in _SCRUBBED_HEADERS:
                headers[name] = "[REDACTED]"
    return event


def init_sentry(app) -> None:
    dsn = (os.getenv("SENTRY_DSN") or "").strip()
    if not dsn:
        app.logger.info("sentry_disabled reason=no_dsn")
        return
    try:
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=dsn,
            environment=os.getenv("SENTRY_ENVIRONMENT") or os.getenv("WINEO_ENV") or "dev",
            integrations=[FlaskIntegration()],
            send_default_pii=False,
            traces_sample_rate=_sample_rate(os.getenv("SENTRY_TRACES_SAMPLE_RATE")),
            before_send=_before_send_scrub,
        )
        app.logger.info("sentry_enabled")
    except Exception as e:
        # Error reporting must never stop the API from booting.
        app.logger.warning("sentry_init_failed err=%s", e)


def _access_record(response, salt: str) -> dict:
    started = getattr(g, "request_started_at", None)
    user = getattr(g, "current_user", None)
    return {
        "ts": datetime.utcnow().isoformat(),
        "event": "http_request",
        "request_id": g.request_id,
        "method": request.method,
        "path": request.path,
        "status": int(response.status_code),
        "latency_ms": round((time.perf_counter() - started) * 1000.0, 2) if started is not None else None,
        "user_id": getattr(user, "id", None),
        "client": _client_fingerprint(salt),
    }


def install_request_observers(app) -> None:
    """Tag every request with an id, echo it back and emit one JSON access line."""

    @app.before_request
    def _begin_request():
        g.request_id = _incoming_request_id()
        g.request_started_at = time.perf_counter()

    @app.after_request
    def _finish_request(response):
        if not getattr(g, "request_id", ""):
            g.request_id = uuid.uuid4().hex
        response.headers[REQUEST_ID_HEADER] = g.request_id
        app.logger.info(json.dumps(_access_record(response, app.config.get("SECRET_KEY", "wineo"))))
        return response
