from __future__ import annotations

import os
import unittest
from unittest.mock import patch

from wineo import create_app
from wineo.extensions import db
from wineo.models import Category, User


class CliCommandsTestCase(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls._prev_db_url = os.getenv("DATABASE_URL")
        os.environ["DATABASE_URL"] = "sqlite:///:memory:"
        cls.app = create_app()
        cls.app.config.update(TESTING=True)
        with cls.app.app_context():
            db.create_all()
        cls.runner = cls.app.test_cli_runner()

    @classmethod
    def tearDownClass(cls):
        if cls._prev_db_url is None:
            os.environ.pop("DATABASE_URL", None)
        else:
            os.environ["DATABASE_URL"] = cls._prev_db_url

    def test_bootstrap_admin_creates_then_promotes(self):
        env = {"ADMIN_EMAIL": "Root@Wineo.ge", "ADMIN_PASSWORD": "s3cret-pass"}
        with patch.dict(os.environ, env, clear=False):
            result = self.runner.invoke(args=["bootstrap-admin"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("admin_bootstrap_ok root@wineo.ge", result.output)
        with self.app.app_context():
            admin = User.query.filter_by(email="root@wineo.ge").first()
            self.assertIsNotNone(admin)
            self.assertTrue(admin.is_admin)
            self.assertTrue(admin.check_password("s3cret-pass"))

        with patch.dict(os.environ, {**env, "ADMIN_PASSWORD": "rotated-pass"}, clear=False):
            result = self.runner.invoke(args=["bootstrap-admin"])
        self.assertEqual(result.exit_code, 0, result.output)
        with self.app.app_context():
            self.assertEqual(User.query.filter_by(email="root@wineo.ge").count(), 1)
            self.assertTrue(User.query.filter_by(email="root@wineo.ge").first().check_password("rotated-pass"))

    def test_bootstrap_admin_requires_credentials(self):
        with patch.dict(os.environ, {"ADMIN_EMAIL": "", "ADMIN_PASSWORD": ""}, clear=False):
            result = self.runner.invoke(args=["bootstrap-admin"])
        self.assertNotEqual(result.exit_code, 0)

    def test_backfill_skips_broken_chains(self):
        with self.app.app_context():
            root = Category(name="Root", slug="root-cli", parent_scope="", path=[], level=0)
            db.session.add(root)
            db.session.flush()
            stale = Category(name="Stale", slug="stale", parent_id=root.id, parent_scope=root.id, path=[], level=0)
            orphan = Category(name="Orphan", slug="orphan", parent_id="x" * 32, parent_scope="x" * 32, path=[], level=0)
            db.session.add_all([stale, orphan])
            db.session.commit()
            stale_id, orphan_id, root_id = stale.id, orphan.id, root.id

        result = self.runner.invoke(args=["backfill-category-paths"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("updated=1", result.output)
        self.assertIn("skipped=1", result.output)

        with self.app.app_context():
            self.assertEqual(db.session.get(Category, stale_id).path, [root_id])
            self.assertEqual(db.session.get(Category, stale_id).level, 1)
            self.assertEqual(db.session.get(Category, orphan_id).path, [])


if __name__ == "__main__":
    unittest.main()
