import unittest
from unittest.mock import AsyncMock, patch

from sqlalchemy import select, func

from safeportal.db.session import AsyncSessionLocal
from safeportal.models.incident import Incident
from safeportal.models.notification_outbox import NotificationOutbox
from safeportal.models.user import AppRole
from tests.helpers import ApiTestCase


def report(**overrides):
    payload = {
        "incident_type": "harassment",
        "description": "Followed from the bus stop to my building.",
        "location_address": "MG Road",
        "latitude": 12.9716,
        "longitude": 77.5946,
    }
    payload.update(overrides)
    return payload


class TestIncidentReports(ApiTestCase):

    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.alice = await self.signup("alice@example.com", full_name="Alice")
        self.bob = await self.signup("bob@example.com", full_name="Bob")

    async def create(self, user, **overrides):
        resp = await self.client.post("/api/v1/incidents/", json=report(**overrides), headers=user["headers"])
        self.assertEqual(resp.status_code, 201, resp.text)
        return resp.json()

    async def test_report_defaults(self):
        incident = await self.create(self.alice)
        self.assertEqual(incident["user_id"], self.alice["user_id"])
        self.assertEqual(incident["status"], "new")
        self.assertEqual(incident["evidence_urls"], [])
        self.assertFalse(incident["is_anonymous"])

    async def test_anonymous_report_has_no_reporter(self):
        incident = await self.create(self.alice, is_anonymous=True)
        self.assertIsNone(incident["user_id"])

        mine = await self.client.get("/api/v1/incidents/mine", headers=self.alice["headers"])
        self.assertEqual(mine.json(), [])

        # Anonymous reports are readable by any identity
        resp = await self.client.get(f"/api/v1/incidents/{incident['id']}", headers=self.bob["headers"])
        self.assertEqual(resp.status_code, 200)

    async def test_invalid_reports_rejected(self):
        for payload in (
            report(description="   "),
            report(incident_type="burglary"),
            report(latitude=91),
            report(longitude=None),
        ):
            resp = await self.client.post("/api/v1/incidents/", json=payload, headers=self.alice["headers"])
            self.assertEqual(resp.status_code, 422, payload)

        async with AsyncSessionLocal() as db:
            count = (await db.execute(select(func.count(Incident.id)))).scalar_one()
        self.assertEqual(count, 0)

    async def test_other_users_cannot_read_or_edit(self):
        incident = await self.create(self.alice)

        resp = await self.client.get(f"/api/v1/incidents/{incident['id']}", headers=self.bob["headers"])
        self.assertEqual(resp.status_code, 404)
        resp = await self.client.patch(
            f"/api/v1/incidents/{incident['id']}", json={"description": "x"}, headers=self.bob["headers"]
        )
        self.assertEqual(resp.status_code, 404)

        moderator = await self.signup("mod@example.com")
        await self.grant(moderator, AppRole.MODERATOR)
        resp = await self.client.get(f"/api/v1/incidents/{incident['id']}", headers=moderator["headers"])
        self.assertEqual(resp.status_code, 200)

    async def test_owner_edits_narrative_but_not_status(self):
        incident = await self.create(self.alice)

        resp = await self.client.patch(
            f"/api/v1/incidents/{incident['id']}",
            json={"description": "Updated account", "evidence_urls": ["https://files.example/1.jpg"]},
            headers=self.alice["headers"],
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["description"], "Updated account")

        resp = await self.client.patch(
            f"/api/v1/incidents/{incident['id']}", json={"status": "resolved"}, headers=self.alice["headers"]
        )
        self.assertEqual(resp.status_code, 422)

        resp = await self.client.put(
            f"/api/v1/incidents/{incident['id']}/status", json={"status": "resolved"}, headers=self.alice["headers"]
        )
        self.assertEqual(resp.status_code, 403)

    async def test_null_for_required_field_rejected(self):
        incident = await self.create(self.alice)

        for body in ({"description": None}, {"incident_type": None}, {"evidence_urls": None}):
            resp = await self.client.patch(
                f"/api/v1/incidents/{incident['id']}", json=body, headers=self.alice["headers"]
            )
            self.assertEqual(resp.status_code, 422, body)

        resp = await self.client.get(f"/api/v1/incidents/{incident['id']}", headers=self.alice["headers"])
        self.assertEqual(resp.json()["description"], incident["description"])

    async def test_coordinates_merge_with_stored_pair(self):
        incident = await self.create(self.alice, latitude=1.0, longitude=2.0)
        url = f"/api/v1/incidents/{incident['id']}"

        resp = await self.client.patch(url, json={"latitude": None}, headers=self.alice["headers"])
        self.assertEqual(resp.status_code, 422, resp.text)
        current = await self.client.get(url, headers=self.alice["headers"])
        self.assertEqual((current.json()["latitude"], current.json()["longitude"]), (1.0, 2.0))

        resp = await self.client.patch(url, json={"latitude": 5}, headers=self.alice["headers"])
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual((resp.json()["latitude"], resp.json()["longitude"]), (5.0, 2.0))

        resp = await self.client.patch(
            url, json={"latitude": None, "longitude": None}, headers=self.alice["headers"]
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertIsNone(resp.json()["latitude"])

    async def test_triage_queue_for_elevated_roles(self):
        first = await self.create(self.alice)
        second = await self.create(self.bob, is_anonymous=True)

        resp = await self.client.get("/api/v1/incidents/", headers=self.alice["headers"])
        self.assertEqual(resp.status_code, 403)

        moderator = await self.signup("mod@example.com")
        await self.grant(moderator, AppRole.MODERATOR)
        resp = await self.client.get("/api/v1/incidents/", headers=moderator["headers"])
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual({i["id"] for i in resp.json()}, {first["id"], second["id"]})

        resp = await self.client.put(
            f"/api/v1/incidents/{first['id']}/status", json={"status": "resolved"}, headers=moderator["headers"]
        )
        self.assertEqual(resp.status_code, 200)

        resp = await self.client.get("/api/v1/incidents/?status=resolved", headers=moderator["headers"])
        self.assertEqual([i["id"] for i in resp.json()], [first["id"]])
        resp = await self.client.get("/api/v1/incidents/?status=new", headers=moderator["headers"])
        self.assertEqual([i["id"] for i in resp.json()], [second["id"]])


class TestIncidentStatus(ApiTestCase):

    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.send = patch("safeportal.services.notification_service.EmailService.send", new=AsyncMock())
        self.mock_send = self.send.start()
        self.addCleanup(self.send.stop)

        self.alice = await self.signup("alice@example.com", full_name="Alice")
        self.admin = await self.signup("admin@example.com")
        await self.grant(self.admin, AppRole.ADMIN)
        resp = await self.client.post("/api/v1/incidents/", json=report(), headers=self.alice["headers"])
        self.incident = resp.json()

    async def set_status(self, user, status, expected=None):
        body = {"status": status}
        if expected:
            body["expected_status"] = expected
        return await self.client.put(
            f"/api/v1/incidents/{self.incident['id']}/status", json=body, headers=user["headers"]
        )

    async def outbox_count(self):
        async with AsyncSessionLocal() as db:
            return (await db.execute(select(func.count(NotificationOutbox.id)))).scalar_one()

    async def test_admin_change_emails_reporter(self):
        resp = await self.set_status(self.admin, "under_review")
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["status"], "under_review")

        self.mock_send.assert_awaited_once()
        to, subject, text = self.mock_send.await_args.args
        self.assertEqual(to, ["alice@example.com"])
        self.assertEqual(subject, "Incident status updated")
        self.assertIn("Current status: under_review", text)

    async def test_moderator_change_sends_nothing(self):
        moderator = await self.signup("mod@example.com")
        await self.grant(moderator, AppRole.MODERATOR)

        resp = await self.set_status(moderator, "resolved")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(await self.outbox_count(), 0)
        self.mock_send.assert_not_awaited()

    async def test_any_transition_allowed(self):
        for status in ("resolved", "new", "under_review"):
            resp = await self.set_status(self.admin, status)
            self.assertEqual(resp.json()["status"], status)

    async def test_compare_and_swap(self):
        resp = await self.set_status(self.admin, "under_review", expected="new")
        self.assertEqual(resp.status_code, 200)

        stale = await self.set_status(self.admin, "resolved", expected="new")
        self.assertEqual(stale.status_code, 409)

        current = await self.client.get(f"/api/v1/incidents/{self.incident['id']}", headers=self.admin["headers"])
        self.assertEqual(current.json()["status"], "under_review")
        # Only the successful change queued a notification
        self.assertEqual(await self.outbox_count(), 1)

    async def test_admin_dashboard_lists_reporter_names(self):
        await self.client.post(
            "/api/v1/incidents/", json=report(is_anonymous=True), headers=self.alice["headers"]
        )

        resp = await self.client.get("/api/v1/admin/incidents", headers=self.admin["headers"])
        self.assertEqual(resp.status_code, 200)
        names = sorted(str(item["reporter_name"]) for item in resp.json())
        self.assertEqual(names, ["Alice", "None"])

        stats = await self.client.get("/api/v1/admin/stats", headers=self.admin["headers"])
        self.assertEqual(stats.json(), {"total_users": 2, "total_incidents": 2, "active_sos": 0})

        for path in ("/api/v1/admin/stats", "/api/v1/admin/incidents", "/api/v1/admin/notifications"):
            resp = await self.client.get(path, headers=self.alice["headers"])
            self.assertEqual(resp.status_code, 403, path)


if __name__ == "__main__":
    unittest.main()
