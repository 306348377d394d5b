from safeportal.models.user import AppRole, User, Profile, UserRole
from safeportal.models.incident import IncidentType, IncidentStatus, Incident
from safeportal.models.sos_alert import SOSAlert
from safeportal.models.forum import ForumPost, ForumComment
from safeportal.models.legal_resource import LegalResource
from safeportal.models.notification_outbox import OutboxKind, OutboxStatus, NotificationOutbox

__all__ = [
    "AppRole",
    "User",
    "Profile",
    "UserRole",
    "IncidentType",
    "IncidentStatus",
    "Incident",
    "SOSAlert",
    "ForumPost",
    "ForumComment",
    "LegalResource",
    "OutboxKind",
    "OutboxStatus",
    "NotificationOutbox",
]
