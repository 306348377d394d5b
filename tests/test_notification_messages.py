import unittest
from datetime import datetime
from types import SimpleNamespace

from safeportal.core.time_utils import UTC, format_iso
from safeportal.models.incident import IncidentStatus, IncidentType
from safeportal.services.notification_service import build_incident_message, build_sos_message


class TestMessages(unittest.TestCase):

    def setUp(self):
        self.created = datetime(2025, 11, 21, 14, 11, 47, 123456, tzinfo=UTC)

    def test_format_iso(self):
        self.assertEqual(format_iso(self.created), "2025-11-21T14:11:47.123Z")
        self.assertEqual(format_iso(datetime(2025, 1, 2, 3, 4, 5)), "2025-01-02T03:04:05.000Z")

    def test_incident_message_truncates_long_descriptions(self):
        incident = SimpleNamespace(
            incident_type=IncidentType.STALKING,
            description="x" * 250,
            location_address="Park Street",
            status=IncidentStatus.RESOLVED,
            created_at=self.created,
        )
        subject, text = build_incident_message(incident, SimpleNamespace(full_name="Priya"))

        self.assertEqual(subject, "Incident status updated")
        self.assertTrue(text.startswith("Hi Priya,"))
        self.assertIn("Description: " + "x" * 197 + "...\n", text)
        self.assertIn("Current status: resolved", text)
        self.assertIn("Reported on: 2025-11-21T14:11:47.123Z", text)

    def test_sos_message_includes_map_and_contact(self):
        alert = SimpleNamespace(
            created_at=self.created, location_address=None, latitude=12.5, longitude=77.25
        )
        profile = SimpleNamespace(full_name=None, emergency_contact_name="Asha", emergency_contact_phone=None)
        subject, text = build_sos_message(alert, profile)

        self.assertEqual(subject, "SOS alert activated")
        self.assertTrue(text.startswith("Hi,"))
        self.assertIn("https://www.openstreetmap.org/?mlat=12.5&mlon=77.25#map=18/12.5/77.25", text)
        self.assertIn("Name: Asha", text)
        self.assertNotIn("Phone:", text)
        self.assertNotIn("Location:", text)

    def test_sos_message_keeps_zero_coordinates(self):
        alert = SimpleNamespace(
            created_at=self.created, location_address=None, latitude=0.0, longitude=0.0
        )
        _, text = build_sos_message(alert, None)

        self.assertIn("Coordinates: 0.0, 0.0", text)
        self.assertIn("https://www.openstreetmap.org/?mlat=0.0&mlon=0.0#map=18/0.0/0.0", text)


if __name__ == "__main__":
    unittest.main()
