from __future__ import annotations

import os
import unittest

from wineo import create_app
from wineo.extensions import db


class ApiErrorContractTestCase(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls._prev_db_url = os.getenv("DATABASE_URL")
        os.environ["DATABASE_URL"] = "sqlite:///:memory:"
        cls.app = create_app()
        cls.app.config.update(TESTING=True)
        with cls.app.app_context():
            db.create_all()
        cls.client = cls.app.test_client()

        @cls.app.get("/boom")
        def _boom():
            raise RuntimeError("secret detail")

    @classmethod
    def tearDownClass(cls):
        if cls._prev_db_url is None:
            os.environ.pop("DATABASE_URL", None)
        else:
            os.environ["DATABASE_URL"] = cls._prev_db_url

    def _assert_error_shape(self, res, status: int):
        self.assertEqual(res.status_code, status)
        self.assertTrue(res.is_json)
        body = res.get_json(force=True) or {}
        self.assertFalse(bool(body.get("ok", True)))
        self.assertTrue(str(body.get("error") or "").strip())
        self.assertTrue(str(body.get("message") or "").strip())
        self.assertEqual(int(body.get("status") or 0), status)
        self.assertTrue(str(body.get("trace_id") or "").strip())
        return body

    def test_unknown_route_returns_json_error_shape(self):
        self._assert_error_shape(self.client.get("/does-not-exist"), 404)

    def test_wrong_method_returns_405(self):
        self._assert_error_shape(self.client.patch("/regions"), 405)

    def test_missing_resource_uses_not_found_code(self):
        body = self._assert_error_shape(self.client.get("/categories/0123456789abcdef0123456789abcdef"), 404)
        self.assertEqual(body.get("error"), "NOT_FOUND")

    def test_auth_errors_use_unauthorized_code(self):
        body = self._assert_error_shape(self.client.post("/regions", json={"label": "Kakheti"}), 401)
        self.assertEqual(body.get("error"), "UNAUTHORIZED")

    def test_schema_violation_is_validation_failed(self):
        body = self._assert_error_shape(self.client.post("/auth/register", json={"email": "not-an-email"}), 400)
        self.assertEqual(body.get("error"), "VALIDATION_FAILED")
        self.assertIn("email", body.get("message", ""))

    def test_non_object_body_is_rejected(self):
        body = self._assert_error_shape(self.client.post("/auth/login", json=["a", "b"]), 400)
        self.assertEqual(body.get("error"), "VALIDATION_FAILED")

    def test_unhandled_exception_hides_detail(self):
        body = self._assert_error_shape(self.client.get("/boom"), 500)
        self.assertEqual(body.get("message"), "Internal server error")
        self.assertNotIn("secret", str(body))

    def test_request_id_is_echoed(self):
        res = self.client.get("/does-not-exist", headers={"X-Request-Id": "req-abc-123"})
        self.assertEqual(res.headers.get("X-Request-Id"), "req-abc-123")
        self.assertEqual((res.get_json() or {}).get("trace_id"), "req-abc-123")

    def test_health_reports_db_state(self):
        res = self.client.get("/health")
        self.assertEqual(res.status_code, 200)
        body = res.get_json() or {}
        self.assertTrue(body.get("ok"))
        self.assertEqual(body.get("service"), "wineo-backend")
        self.assertEqual(body.get("db"), "ok")
        self.assertIn("env", body)


if __name__ == "__main__":
    unittest.main()
