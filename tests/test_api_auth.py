"""HTTP tests for /register, /login and /health using FastAPI's TestClient."""

import unittest

from fastapi.testclient import TestClient

from _support import TempDatabase, fast_settings
from app.core.config import get_settings
from app.core.database import get_db
from app.main import app

PREFIX = "/api/v1/auth"


class ApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = TempDatabase()

        def override_get_db():
            session = self.db.SessionLocal()
            try:
                yield session
            finally:
                session.close()

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_settings] = lambda: fast_settings()
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        self.db.close()

    def register(self, username: str = "alice", password: str = "secret1", prefix: str = PREFIX):
        return self.client.post(f"{prefix}/register", json={"username": username, "password": password})

    def login(self, username: str = "alice", password: str = "secret1", prefix: str = PREFIX):
        return self.client.post(f"{prefix}/login", json={"username": username, "password": password})


class TestRegisterEndpoint(ApiTestCase):
    """201 created, 400 invalid, 409 duplicate."""

    def test_created(self) -> None:
        resp = self.register()
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["ok"], True)
        self.assertNotIn("lockedUntil", resp.json())

    def test_invalid(self) -> None:
        resp = self.register(username="x", password="123")
        self.assertEqual(resp.status_code, 400)
        body = resp.json()
        self.assertFalse(body["ok"])
        self.assertIn("Username must be 3-32", body["message"])

    def test_duplicate(self) -> None:
        self.register()
        resp = self.register()
        self.assertEqual(resp.status_code, 409)
        self.assertFalse(resp.json()["ok"])

    def test_missing_field(self) -> None:
        resp = self.client.post(f"{PREFIX}/register", json={"username": "alice"})
        self.assertEqual(resp.status_code, 422)


class TestLoginEndpoint(ApiTestCase):
    """200 allowed, 401 denied, 423 locked."""

    def setUp(self) -> None:
        super().setUp()
        self.register()

    def test_allowed(self) -> None:
        resp = self.login()
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"ok": True, "message": "Access granted."})

    def test_unknown_user(self) -> None:
        resp = self.login(username="nobody")
        self.assertEqual(resp.status_code, 401)
        self.assertNotIn("attemptsRemaining", resp.json())

    def test_scenario(self) -> None:
        for expected in (4, 3, 2, 1):
            resp = self.login(password="wrong")
            self.assertEqual(resp.status_code, 401)
            self.assertEqual(resp.json()["attemptsRemaining"], expected)

        resp = self.login(password="wrong")
        self.assertEqual(resp.status_code, 423)
        self.assertIn("lockedUntil", resp.json())

        resp = self.login()
        self.assertEqual(resp.status_code, 423)
        self.assertFalse(resp.json()["ok"])


class TestUnprefixedRoutes(ApiTestCase):
    """POST /register and POST /login are also served at the root."""

    def test_root_routes(self) -> None:
        self.assertEqual(self.register(prefix="").status_code, 201)
        self.assertEqual(self.login(prefix="").status_code, 200)


class TestHealthEndpoint(ApiTestCase):
    def test_health(self) -> None:
        resp = self.client.get("/api/v1/health/")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["status"], "ok")
        self.assertEqual(body["database"], "connected")
        self.assertEqual(body["database_backend"], "sqlite")


if __name__ == "__main__":
    unittest.main()
