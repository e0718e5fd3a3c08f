from __future__ import annotations

import os
import time
import unittest
from datetime import datetime, timedelta

from wineo import create_app
from wineo.extensions import db
from wineo.models import Listing, User
from wineo.utils.jwt_utils import create_access_token


class ProductsApiTestCase(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls._prev_db_url = os.getenv("DATABASE_URL")
        os.environ["DATABASE_URL"] = "sqlite:///:memory:"
        cls.app = create_app()
        cls.app.config.update(TESTING=True)
        with cls.app.app_context():
            db.create_all()
        cls.client = cls.app.test_client()
        cls.owner = cls._seed_user("owner")
        cls.stranger = cls._seed_user("stranger")
        cls.admin = cls._seed_user("admin", role="admin")

    @classmethod
    def tearDownClass(cls):
        if cls._prev_db_url is None:
            os.environ.pop("DATABASE_URL", None)
        else:
            os.environ["DATABASE_URL"] = cls._prev_db_url

    @classmethod
    def _seed_user(cls, prefix: str, role: str = "customer") -> dict:
        with cls.app.app_context():
            user = User(
                email=f"{prefix}-{time.time_ns()}@wineo.ge",
                first_name=prefix.title(),
                last_name="Tester",
                role=role,
            )
            user.set_password("secret123")
            db.session.add(user)
            db.session.commit()
            return {"id": user.id, "headers": {"Authorization": f"Bearer {create_access_token(user.id)}"}}

    def _payload(self, **overrides) -> dict:
        payload = {
            "title": f"Toyota Prius {time.time_ns()}",
            "description": "Well kept hybrid, one owner.",
            "type": "sell",
            "category": {"name": "Cars", "slug": "cars"},
            "price": 12500,
            "currency": "USD",
            "location": {"region": "Tbilisi", "city": "Tbilisi"},
        }
        payload.update(overrides)
        return payload

    def _create(self, user: dict | None = None, **overrides):
        user = user or self.owner
        return self.client.post("/products", json=self._payload(**overrides), headers=user["headers"])

    def _created(self, user: dict | None = None, **overrides) -> dict:
        res = self._create(user, **overrides)
        self.assertEqual(res.status_code, 201, res.get_json())
        return res.get_json()

    def test_create_requires_auth(self):
        res = self.client.post("/products", json=self._payload())
        self.assertEqual(res.status_code, 401)

    def test_create_sets_owner_and_slug(self):
        body = self._created(title="Toyota Prius 2015!!", slug=None)
        self.assertEqual(body["slug"], "toyota-prius-2015")
        self.assertEqual(body["ownerId"], self.owner["id"])
        self.assertEqual(body["ownerName"], "Owner Tester")
        self.assertEqual(body["ownerType"], "physical")
        self.assertEqual(body["currency"], "USD")
        self.assertEqual(body["promotionType"], "none")
        self.assertEqual(body["effectivePromotionType"], "none")

        dupe = self._create(title="Toyota  Prius 2015")
        self.assertEqual(dupe.status_code, 409)
        self.assertEqual(dupe.get_json()["error"], "DUPLICATE_SLUG")

    def test_title_without_slug_characters_gets_fallback(self):
        body = self._created(title="!!! ???")
        self.assertTrue(body["slug"].startswith("listing-"))

    def test_missing_required_fields(self):
        self.assertEqual(self._create(title="  ").status_code, 400)
        self.assertEqual(self._create(description="").status_code, 400)
        self.assertEqual(self._create(location={"region": "Tbilisi", "city": ""}).status_code, 400)
        payload = self._payload()
        payload.pop("category")
        res = self.client.post("/products", json=payload, headers=self.owner["headers"])
        self.assertEqual(res.status_code, 400)

    def test_rent_requires_period(self):
        res = self._create(type="rent")
        self.assertEqual(res.status_code, 400)
        body = self._created(type="rent", rentPeriod="month")
        self.assertEqual(body["rentPeriod"], "month")

    def test_sell_drops_rent_period(self):
        body = self._created(type="sell", rentPeriod="day")
        self.assertIsNone(body["rentPeriod"])

    def test_price_rules(self):
        self.assertEqual(self._create(price=-1).status_code, 400)
        self.assertEqual(self._create(price=None).status_code, 400)
        self.assertEqual(self._create(price="abc").status_code, 400)
        negotiable = self._created(priceType="negotiable", price=None)
        self.assertEqual(negotiable["price"], 0)
        negative = self._created(priceType="negotiable", price=-50)
        self.assertEqual(negative["price"], 0)

    def test_unknown_category_id(self):
        res = self._create(categoryId="e" * 32)
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.get_json()["error"], "INVALID_CATEGORY")

    def test_attributes_validated_against_filters(self):
        category = self.client.post(
            "/categories", json={"name": f"Cars {time.time_ns()}"}, headers=self.owner["headers"]
        ).get_json()
        year = self.client.post(
            "/filters",
            json={"name": "Year", "type": "number", "categoryId": category["id"]},
            headers=self.owner["headers"],
        ).get_json()

        bad = self._create(categoryId=category["id"], attributes=[{"filterId": "9" * 32, "value": 1}])
        self.assertEqual(bad.status_code, 400)
        self.assertEqual(bad.get_json()["error"], "INVALID_ATTRIBUTE")

        body = self._created(
            categoryId=category["id"],
            attributes=[{"filterId": year["id"], "value": 2015}, {"filterId": year["id"], "value": None}],
        )
        self.assertEqual(body["attributes"], [{"filterId": year["id"], "value": 2015}])
        self.assertEqual(body["categoryId"], category["id"])

    def test_thumbnail_defaults_to_first_image(self):
        body = self._created(images=["https://cdn.wineo.ge/a.jpg", "https://cdn.wineo.ge/b.jpg"])
        self.assertEqual(body["thumbnail"], "https://cdn.wineo.ge/a.jpg")

        res = self.client.put(
            f"/products/{body['id']}",
            json={"images": ["https://cdn.wineo.ge/c.jpg"], "thumbnail": ""},
            headers=self.owner["headers"],
        )
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.get_json()["thumbnail"], "https://cdn.wineo.ge/c.jpg")

    def test_only_owner_or_admin_can_modify(self):
        body = self._created()
        path = f"/products/{body['id']}"
        res = self.client.put(path, json={"title": "Hijacked"}, headers=self.stranger["headers"])
        self.assertEqual(res.status_code, 403)
        self.assertEqual(res.get_json()["error"], "FORBIDDEN")
        self.assertEqual(self.client.delete(path, headers=self.stranger["headers"]).status_code, 403)

        res = self.client.put(path, json={"status": "sold"}, headers=self.admin["headers"])
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.get_json()["status"], "sold")

        self.assertEqual(self.client.delete(path, headers=self.owner["headers"]).status_code, 204)
        self.assertEqual(self.client.get(path).status_code, 404)

    def test_type_changes_on_update(self):
        body = self._created(type="rent", rentPeriod="week")
        path = f"/products/{body['id']}"
        res = self.client.put(path, json={"type": "sell"}, headers=self.owner["headers"])
        self.assertEqual(res.status_code, 200)
        self.assertIsNone(res.get_json()["rentPeriod"])

        res = self.client.put(path, json={"type": "rent"}, headers=self.owner["headers"])
        self.assertEqual(res.status_code, 400)

        res = self.client.put(path, json={"type": "rent", "rentPeriod": "day"}, headers=self.owner["headers"])
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.get_json()["rentPeriod"], "day")

    def test_slug_change_checks_other_listings(self):
        first = self._created()
        second = self._created()
        res = self.client.put(f"/products/{second['id']}", json={"slug": first["slug"]}, headers=self.owner["headers"])
        self.assertEqual(res.status_code, 409)
        same = self.client.put(f"/products/{first['id']}", json={"slug": first["slug"]}, headers=self.owner["headers"])
        self.assertEqual(same.status_code, 200)

    def test_promotion_input_is_normalized(self):
        future = (datetime.utcnow() + timedelta(days=3)).replace(microsecond=0).isoformat() + "Z"
        past = (datetime.utcnow() - timedelta(days=1)).isoformat() + "Z"
        live = self._created(promotionType="featured", promotionExpiresAt=future)
        self.assertEqual(live["promotionType"], "featured")
        self.assertEqual(live["effectivePromotionType"], "featured")

        stale = self._created(promotionType="featured", promotionExpiresAt=past)
        self.assertEqual(stale["promotionType"], "none")
        self.assertIsNone(stale["promotionExpiresAt"])

        bogus = self._created(promotionType="gold", promotionExpiresAt=future)
        self.assertEqual(bogus["promotionType"], "none")

    def test_search_orders_live_promotions_first(self):
        slug = f"boats-{time.time_ns()}"
        category = {"name": "Boats", "slug": slug}
        future = (datetime.utcnow() + timedelta(days=2)).isoformat() + "Z"
        oldest = self._created(category=category)
        featured = self._created(category=category, promotionType="featured", promotionExpiresAt=future)
        top = self._created(category=category, promotionType="homepageTop", promotionExpiresAt=future)
        newest = self._created(category=category)
        expired = self._created(category=category)
        with self.app.app_context():
            row = db.session.get(Listing, expired["id"])
            row.promotion_type = "homepageTop"
            row.promotion_expires_at = datetime.utcnow() - timedelta(hours=1)
            row.created_at = datetime.utcnow() - timedelta(days=30)
            db.session.commit()

        res = self.client.get(f"/products?categorySlug={slug.upper()}")
        self.assertEqual(res.status_code, 200)
        body = res.get_json()
        self.assertEqual(body["total"], 5)
        ids = [item["id"] for item in body["items"]]
        self.assertEqual(ids, [top["id"], featured["id"], newest["id"], oldest["id"], expired["id"]])
        self.assertEqual(body["items"][-1]["effectivePromotionType"], "none")

    def test_search_filters_and_paging(self):
        slug = f"bikes-{time.time_ns()}"
        category = {"name": "Bikes", "slug": slug}
        self._created(category=category)
        self._created(category=category, type="rent", rentPeriod="day")
        sold = self._created(category=category)
        self.client.put(f"/products/{sold['id']}", json={"status": "sold"}, headers=self.owner["headers"])

        rent = self.client.get(f"/products?categorySlug={slug}&type=rent").get_json()
        self.assertEqual(rent["total"], 1)
        active = self.client.get(f"/products?categorySlug={slug}&status=active").get_json()
        self.assertEqual(active["total"], 2)

        page = self.client.get(f"/products?categorySlug={slug}&limit=1&skip=1").get_json()
        self.assertEqual((page["limit"], page["skip"], page["total"]), (1, 1, 3))
        self.assertEqual(len(page["items"]), 1)

        capped = self.client.get("/products?limit=1000").get_json()
        self.assertEqual(capped["limit"], 100)
        default = self.client.get("/products").get_json()
        self.assertEqual(default["limit"], 50)

    def test_get_by_slug_falls_back_across_types(self):
        body = self._created(type="rent", rentPeriod="hour")
        exact = self.client.get(f"/products/slug/{body['slug']}?type=rent")
        self.assertEqual(exact.status_code, 200)
        fallback = self.client.get(f"/products/slug/{body['slug'].upper()}?type=sell")
        self.assertEqual(fallback.status_code, 200)
        self.assertEqual(fallback.get_json()["type"], "rent")

        self.client.put(f"/products/{body['id']}", json={"status": "rented"}, headers=self.owner["headers"])
        self.assertEqual(self.client.get(f"/products/slug/{body['slug']}").status_code, 404)

    def test_mine_lists_only_own_listings(self):
        mine = self._created(self.stranger)
        res = self.client.get("/products/mine", headers=self.stranger["headers"])
        self.assertEqual(res.status_code, 200)
        items = res.get_json()["items"]
        self.assertIn(mine["id"], [item["id"] for item in items])
        self.assertTrue(all(item["ownerId"] == self.stranger["id"] for item in items))
        self.assertEqual(self.client.get("/products/mine").status_code, 401)

    def test_upload_routes_without_storage(self):
        res = self.client.post("/products/upload-urls", json={"count": 2}, headers=self.owner["headers"])
        self.assertEqual(res.status_code, 503)
        self.assertEqual(res.get_json()["error"], "STORAGE_UNAVAILABLE")

        own_key = f"temp/products/{self.owner['id']}/a.jpg"
        res = self._create(tempImageKeys=[own_key])
        self.assertEqual(res.status_code, 503)

    def test_foreign_temp_keys_rejected(self):
        res = self._create(tempImageKeys=[f"temp/products/{self.stranger['id']}/x.jpg"])
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.get_json()["error"], "VALIDATION_FAILED")


if __name__ == "__main__":
    unittest.main()
