import unittest
import uuid
from unittest.mock import AsyncMock, patch

from safeportal.core.config import settings
from safeportal.models.user import AppRole
from safeportal.services.email_service import EmailDeliveryError
from tests.helpers import ApiTestCase

SOS_URL = "/functions/v1/notify-sos"
INCIDENT_URL = "/functions/v1/notify-incident-update"


class TestNotificationFunctions(ApiTestCase):
    """
    The dispatcher endpoints are called directly here; SOS activation and
    status changes also enqueue deliveries, which are patched out too.
    """

    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.send = patch("safeportal.services.notification_service.EmailService.send", new=AsyncMock())
        self.geocode = patch(
            "safeportal.services.sos_service.GeocodingService.reverse", new=AsyncMock(return_value="")
        )
        self.mock_send = self.send.start()
        self.geocode.start()
        self.addCleanup(self.send.stop)
        self.addCleanup(self.geocode.stop)

        self.alice = await self.signup("alice@example.com", full_name="Alice")
        self.bob = await self.signup("bob@example.com")
        self.admin = await self.signup("admin@example.com")
        await self.grant(self.admin, AppRole.ADMIN)

    async def call(self, url, body, user=None, **kwargs):
        headers = dict(user["headers"]) if user else {}
        return await self.client.post(url, json=body, headers=headers, **kwargs)

    async def sos_id(self):
        resp = await self.client.post(
            "/api/v1/sos/", json={"latitude": 1.5, "longitude": 2.5}, headers=self.alice["headers"]
        )
        self.mock_send.reset_mock()
        return resp.json()["id"]

    async def incident_id(self, **extra):
        resp = await self.client.post(
            "/api/v1/incidents/",
            json={"incident_type": "stalking", "description": "Repeated messages", **extra},
            headers=self.alice["headers"],
        )
        return resp.json()["id"]

    async def test_preflight_and_method(self):
        resp = await self.client.options(SOS_URL)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.text, "ok")
        self.assertEqual(resp.headers["access-control-allow-origin"], "*")

        resp = await self.client.get(SOS_URL, headers=self.alice["headers"])
        self.assertEqual(resp.status_code, 405)

    async def test_authorization_required(self):
        resp = await self.call(SOS_URL, {"sosId": str(uuid.uuid4())})
        self.assertEqual(resp.status_code, 401)

        resp = await self.client.post(
            SOS_URL, json={"sosId": str(uuid.uuid4())}, headers={"Authorization": "Bearer nope"}
        )
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json(), {"error": "Unauthorized"})

    async def test_bad_bodies(self):
        resp = await self.client.post(
            SOS_URL, content=b"{not json", headers={**self.alice["headers"], "Content-Type": "application/json"}
        )
        self.assertEqual(resp.status_code, 400)

        resp = await self.call(SOS_URL, {}, self.alice)
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "Missing sosId"})

    async def test_missing_configuration(self):
        with patch.object(settings, "RESEND_API_KEY", ""):
            resp = await self.call(SOS_URL, {"sosId": str(uuid.uuid4())}, self.alice)
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json(), {"error": "Missing function environment configuration"})

    async def test_sos_owner_or_admin_only(self):
        sos_id = await self.sos_id()

        resp = await self.call(SOS_URL, {"sosId": sos_id}, self.bob)
        self.assertEqual(resp.status_code, 403)

        resp = await self.call(SOS_URL, {"sosId": sos_id}, self.alice)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"success": True})

        resp = await self.call(SOS_URL, {"sosId": sos_id}, self.admin)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.mock_send.await_count, 2)

        resp = await self.call(SOS_URL, {"sosId": str(uuid.uuid4())}, self.admin)
        self.assertEqual(resp.status_code, 404)

    async def test_incident_update_requires_admin(self):
        incident_id = await self.incident_id()

        resp = await self.call(INCIDENT_URL, {"incidentId": incident_id}, self.alice)
        self.assertEqual(resp.status_code, 403)

        resp = await self.call(INCIDENT_URL, {"incidentId": str(uuid.uuid4())}, self.admin)
        self.assertEqual(resp.status_code, 404)

        resp = await self.call(INCIDENT_URL, {"incidentId": incident_id}, self.admin)
        self.assertEqual(resp.status_code, 200)
        to, subject, _ = self.mock_send.await_args.args
        self.assertEqual(to, ["alice@example.com"])

    async def test_anonymous_incident_skipped_without_email(self):
        incident_id = await self.incident_id(is_anonymous=True)

        resp = await self.call(INCIDENT_URL, {"incidentId": incident_id}, self.admin)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"success": True, "skipped": "anonymous incident"})
        self.mock_send.assert_not_awaited()

    async def test_provider_failure_maps_to_502(self):
        incident_id = await self.incident_id()
        self.mock_send.side_effect = EmailDeliveryError('{"message":"domain not verified"}')

        resp = await self.call(INCIDENT_URL, {"incidentId": incident_id}, self.admin)
        self.assertEqual(resp.status_code, 502)
        self.assertEqual(
            resp.json(), {"error": "Failed to send email", "details": '{"message":"domain not verified"}'}
        )


if __name__ == "__main__":
    unittest.main()
