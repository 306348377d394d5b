import unittest
import uuid

from safeportal.models.user import AppRole
from tests.helpers import ApiTestCase


class TestRoleManagement(ApiTestCase):

    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.alice = await self.signup("alice@example.com")
        self.admin = await self.signup("admin@example.com")
        await self.grant(self.admin, AppRole.ADMIN)

    async def test_read_own_roles_only(self):
        resp = await self.client.get(f"/api/v1/roles/{self.alice['user_id']}", headers=self.alice["headers"])
        self.assertEqual([r["role"] for r in resp.json()], ["user"])

        resp = await self.client.get(f"/api/v1/roles/{self.admin['user_id']}", headers=self.alice["headers"])
        self.assertEqual(resp.status_code, 403)

        resp = await self.client.get(f"/api/v1/roles/{self.alice['user_id']}", headers=self.admin["headers"])
        self.assertEqual(resp.status_code, 200)

    async def test_grant_and_revoke(self):
        url = f"/api/v1/roles/{self.alice['user_id']}"

        resp = await self.client.post(url, json={"role": "moderator"}, headers=self.alice["headers"])
        self.assertEqual(resp.status_code, 403)

        resp = await self.client.post(url, json={"role": "moderator"}, headers=self.admin["headers"])
        self.assertEqual(resp.status_code, 201)
        again = await self.client.post(url, json={"role": "moderator"}, headers=self.admin["headers"])
        self.assertEqual(again.json()["id"], resp.json()["id"])

        me = await self.client.get("/api/v1/auth/me", headers=self.alice["headers"])
        self.assertEqual(me.json()["roles"], ["moderator", "user"])

        resp = await self.client.delete(f"{url}/moderator", headers=self.admin["headers"])
        self.assertEqual(resp.status_code, 204)
        resp = await self.client.delete(f"{url}/moderator", headers=self.admin["headers"])
        self.assertEqual(resp.status_code, 404)

    async def test_base_role_cannot_be_revoked(self):
        resp = await self.client.delete(f"/api/v1/roles/{self.alice['user_id']}/user", headers=self.admin["headers"])
        self.assertEqual(resp.status_code, 409)

    async def test_grant_to_unknown_user(self):
        resp = await self.client.post(
            f"/api/v1/roles/{uuid.uuid4()}", json={"role": "admin"}, headers=self.admin["headers"]
        )
        self.assertEqual(resp.status_code, 404)


if __name__ == "__main__":
    unittest.main()
