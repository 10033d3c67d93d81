"""Shared fakes for the API tests."""

import unittest
from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from flourish.app import create_app
from flourish.config import Settings, get_settings
from flourish.db import InMemoryDbClient
from flourish.dependencies import (
    get_billing_client,
    get_clock,
    get_db_client,
    get_gemini_client,
    get_token_verifier,
)
from flourish.firebase import TokenVerificationError

TOKEN_PREFIX = "token-"


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeTokenVerifier:
    """Accepts `token-<uid>`; uids starting with "anon" carry no email claim."""

    def verify(self, id_token: str) -> dict:
        if not id_token.startswith(TOKEN_PREFIX):
            raise TokenVerificationError("Invalid ID token")
        uid = id_token[len(TOKEN_PREFIX):]
        claims = {"uid": uid}
        if not uid.startswith("anon"):
            claims["email"] = f"{uid}@example.com"
        return claims


def auth_header(uid: str) -> dict:
    return {"Authorization": f"Bearer {TOKEN_PREFIX}{uid}"}


class ApiTestCase(unittest.TestCase):
    """Builds an app wired to an in-memory store, a fixed clock and no Gemini key."""

    start_time = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)

    def setUp(self):
        self.db = InMemoryDbClient()
        self.clock = FakeClock(self.start_time)
        self.gemini = None
        self.billing = None
        self.settings = Settings(_env_file=None, revenuecat_webhook_secret=None)

        self.app = create_app()
        overrides = self.app.dependency_overrides
        overrides[get_db_client] = lambda: self.db
        overrides[get_token_verifier] = lambda: FakeTokenVerifier()
        overrides[get_gemini_client] = lambda: self.gemini
        overrides[get_billing_client] = lambda: self.billing
        overrides[get_clock] = lambda: self.clock
        overrides[get_settings] = lambda: self.settings
        self.client = TestClient(self.app, raise_server_exceptions=False)

    def init_user(self, uid: str, **body):
        return self.client.post("/api/user/init", json=body, headers=auth_header(uid))

    def make_premium(self, uid: str):
        self.init_user(uid)
        response = self.client.post(
            "/api/admin/set-premium", json={}, headers=auth_header(uid)
        )
        self.assertEqual(response.status_code, 200)
        return response
