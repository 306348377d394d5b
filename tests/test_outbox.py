import unittest
import uuid
from datetime import timedelta
from unittest.mock import AsyncMock, patch

from sqlalchemy import select

from safeportal.core.config import settings
from safeportal.core.time_utils import as_utc, get_utc_now
from safeportal.db.session import AsyncSessionLocal
from safeportal.models.notification_outbox import NotificationOutbox, OutboxKind, OutboxStatus
from safeportal.models.user import AppRole
from safeportal.services.email_service import EmailDeliveryError
from safeportal.services import outbox_service
from safeportal.services.outbox_service import OutboxService
from tests.helpers import ApiTestCase


class TestBackoff(unittest.TestCase):

    def test_doubles_per_attempt(self):
        with patch.object(settings, "NOTIFY_RETRY_BASE_SECONDS", 30.0):
            self.assertEqual(
                [OutboxService.backoff_seconds(n) for n in (1, 2, 3, 4)], [30.0, 60.0, 120.0, 240.0]
            )


class TestModuleDocs(unittest.TestCase):

    def test_lifecycle_diagram_has_no_escapes(self):
        # A stray backslash in the docstring is an invalid escape sequence.
        self.assertNotIn("\\", outbox_service.__doc__)
        self.assertIn("reach NOTIFY_MAX_ATTEMPTS", outbox_service.__doc__)


class TestOutboxDelivery(ApiTestCase):

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
        self.alice = await self.signup("alice@example.com")

    async def activate(self):
        resp = await self.client.post(
            "/api/v1/sos/", json={"latitude": 10.0, "longitude": 20.0}, headers=self.alice["headers"]
        )
        self.assertEqual(resp.status_code, 201)
        return resp.json()

    async def entry(self) -> NotificationOutbox:
        async with AsyncSessionLocal() as db:
            return (await db.execute(select(NotificationOutbox))).scalar_one()

    async def make_due(self) -> None:
        async with AsyncSessionLocal() as db:
            entry = (await db.execute(select(NotificationOutbox))).scalar_one()
            entry.next_attempt_at = get_utc_now() - timedelta(seconds=1)
            await db.commit()

    async def test_transient_failure_is_retried_later(self):
        self.mock_send.side_effect = EmailDeliveryError("timeout")
        await self.activate()

        entry = await self.entry()
        self.assertEqual(entry.status, OutboxStatus.PENDING)
        self.assertEqual(entry.attempts, 1)
        self.assertGreater(as_utc(entry.next_attempt_at), get_utc_now())

        # Not due yet
        self.assertEqual(await OutboxService.deliver_due(), 0)

        self.mock_send.side_effect = None
        await self.make_due()
        self.assertEqual(await OutboxService.deliver_due(), 1)

        entry = await self.entry()
        self.assertEqual(entry.status, OutboxStatus.SENT)
        self.assertEqual(entry.attempts, 2)
        self.assertIsNone(entry.last_error)

    async def test_gives_up_after_max_attempts(self):
        self.mock_send.side_effect = EmailDeliveryError("timeout")
        with patch.object(settings, "NOTIFY_MAX_ATTEMPTS", 2):
            await self.activate()
            await self.make_due()
            await OutboxService.deliver_due()

        entry = await self.entry()
        self.assertEqual(entry.status, OutboxStatus.FAILED)
        self.assertEqual(entry.attempts, 2)
        self.assertEqual(self.mock_send.await_count, 2)

    async def test_authorization_failure_is_final(self):
        # A non-admin actor can never send an incident update
        async with AsyncSessionLocal() as db:
            entry = OutboxService.enqueue(
                db, OutboxKind.INCIDENT_UPDATE, uuid.uuid4(), uuid.UUID(self.alice["user_id"])
            )
            await db.commit()
            entry_id = entry.id

        status = await OutboxService.deliver(entry_id)
        self.assertEqual(status, OutboxStatus.FAILED)
        entry = await self.entry()
        self.assertTrue(entry.last_error.startswith("403"))
        self.mock_send.assert_not_awaited()

    async def test_skipped_outcome_recorded(self):
        admin = await self.signup("admin@example.com")
        await self.grant(admin, AppRole.ADMIN)
        resp = await self.client.post(
            "/api/v1/incidents/",
            json={"incident_type": "other", "description": "Anonymous tip", "is_anonymous": True},
            headers=self.alice["headers"],
        )
        resp = await self.client.put(
            f"/api/v1/incidents/{resp.json()['id']}/status", json={"status": "resolved"}, headers=admin["headers"]
        )
        self.assertEqual(resp.status_code, 200)

        entry = await self.entry()
        self.assertEqual(entry.status, OutboxStatus.SKIPPED)
        self.assertEqual(entry.skipped_reason, "anonymous incident")
        self.mock_send.assert_not_awaited()

        listing = await self.client.get("/api/v1/admin/notifications?status=skipped", headers=admin["headers"])
        self.assertEqual([item["id"] for item in listing.json()], [str(entry.id)])


if __name__ == "__main__":
    unittest.main()
