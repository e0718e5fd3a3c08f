from __future__ import annotations

import os
import time
import unittest

from wineo import create_app
from wineo.extensions import db
from wineo.models import User
from wineo.utils.jwt_utils import create_access_token


class RegionsCitiesTestCase(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls._prev_db_url = os.getenv("DATABASE_URL")
        os.environ["DATABASE_URL"] = "sqlite:///:memory:"
        cls.app = create_app()
        cls.app.config.update(TESTING=True)
        with cls.app.app_context():
            db.create_all()
            user = User(email=f"geo-{time.time_ns()}@wineo.ge", first_name="Levan", last_name="Gelashvili")
            user.set_password("secret123")
            db.session.add(user)
            db.session.commit()
            cls.headers = {"Authorization": f"Bearer {create_access_token(user.id)}"}
        cls.client = cls.app.test_client()

    @classmethod
    def tearDownClass(cls):
        if cls._prev_db_url is None:
            os.environ.pop("DATABASE_URL", None)
        else:
            os.environ["DATABASE_URL"] = cls._prev_db_url

    def _region(self, label: str | None = None) -> dict:
        res = self.client.post("/regions", json={"label": label or f"Region {time.time_ns()}"}, headers=self.headers)
        self.assertEqual(res.status_code, 201, res.get_json())
        return res.get_json()

    def _city(self, region_id: str, label: str):
        return self.client.post("/cities", json={"label": label, "regionId": region_id}, headers=self.headers)

    def test_region_slug_derived_from_label(self):
        region = self._region("Samegrelo-Zemo Svaneti")
        self.assertEqual(region["slug"], "samegrelo-zemo-svaneti")
        dupe = self.client.post("/regions", json={"label": "Samegrelo Zemo Svaneti"}, headers=self.headers)
        self.assertEqual(dupe.status_code, 409)

    def test_city_slug_derived_from_label(self):
        region = self._region()
        res = self._city(region["id"], "Tbilisi")
        self.assertEqual(res.status_code, 201)
        city = res.get_json()
        self.assertEqual(city["slug"], "tbilisi")
        self.assertEqual(city["regionId"], region["id"])
        self.assertEqual(city["region"]["id"], region["id"])

    def test_city_slug_unique_per_region(self):
        first = self._region()
        second = self._region()
        self.assertEqual(self._city(first["id"], "Zugdidi").status_code, 201)
        self.assertEqual(self._city(first["id"], "zugdidi").status_code, 409)
        self.assertEqual(self._city(second["id"], "Zugdidi").status_code, 201)

    def test_city_requires_known_region(self):
        res = self._city("c" * 32, "Batumi")
        self.assertEqual(res.status_code, 400)

    def test_blank_label_rejected(self):
        res = self.client.post("/regions", json={"label": "   "}, headers=self.headers)
        self.assertEqual(res.status_code, 400)

    def test_list_cities_by_region(self):
        region = self._region()
        other = self._region()
        self._city(region["id"], "Telavi")
        self._city(region["id"], "Sighnaghi")
        self._city(other["id"], "Kutaisi")
        items = self.client.get(f"/cities?regionId={region['id']}").get_json()["items"]
        self.assertEqual([c["label"] for c in items], ["Sighnaghi", "Telavi"])

    def test_update_city_and_region(self):
        region = self._region()
        city = self._city(region["id"], "Rustavi").get_json()
        res = self.client.put(f"/cities/{city['id']}", json={"label": "Rustavi City"}, headers=self.headers)
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.get_json()["label"], "Rustavi City")
        self.assertEqual(res.get_json()["slug"], "rustavi")

        res = self.client.put(f"/regions/{region['id']}", json={"slug": "Kvemo Kartli"}, headers=self.headers)
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.get_json()["slug"], "kvemo-kartli")

    def test_moving_city_checks_target_region(self):
        source = self._region()
        target = self._region()
        moving = self._city(source["id"], "Gori").get_json()
        self._city(target["id"], "Gori")
        res = self.client.put(f"/cities/{moving['id']}", json={"regionId": target["id"]}, headers=self.headers)
        self.assertEqual(res.status_code, 409)

    def test_delete_region_removes_its_cities(self):
        region = self._region()
        city = self._city(region["id"], "Mtskheta").get_json()
        self.assertEqual(self.client.delete(f"/regions/{region['id']}", headers=self.headers).status_code, 204)
        self.assertEqual(self.client.get(f"/regions/{region['id']}").status_code, 404)
        self.assertEqual(self.client.get(f"/cities/{city['id']}").status_code, 404)

    def test_mutations_require_auth(self):
        self.assertEqual(self.client.post("/regions", json={"label": "Guria"}).status_code, 401)
        self.assertEqual(self.client.delete(f"/cities/{'d' * 32}").status_code, 401)


if __name__ == "__main__":
    unittest.main()
