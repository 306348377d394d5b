import unittest
import uuid

import httpx

from safeportal.db.base import Base
from safeportal.db.session import engine, AsyncSessionLocal
from safeportal.main import app
from safeportal.models.user import AppRole, UserRole

PASSWORD = "secret123"


class ApiTestCase(unittest.IsolatedAsyncioTestCase):
    """
    Fresh in-memory schema per test, an ASGI client bound to the app, and
    shortcuts for creating identities.
    """

    async def asyncSetUp(self):
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        self.client = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")

    async def asyncTearDown(self):
        await self.client.aclose()
        # Drops the single pooled connection, and with it the in-memory database.
        await engine.dispose()

    async def signup(self, email: str, full_name: str = "Test User") -> dict:
        resp = await self.client.post(
            "/api/v1/auth/signup",
            json={"email": email, "password": PASSWORD, "full_name": full_name},
        )
        self.assertEqual(resp.status_code, 201, resp.text)
        body = resp.json()
        body["headers"] = {"Authorization": f"Bearer {body['access_token']}"}
        return body

    async def grant(self, user: dict, role: AppRole) -> None:
        async with AsyncSessionLocal() as db:
            db.add(UserRole(user_id=uuid.UUID(user["user_id"]), role=role))
            await db.commit()
