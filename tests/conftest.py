import os

# Settings are read at import time; point everything at an in-memory database
# and a configured (but mocked) email provider before the app is imported.
os.environ["ENVIRONMENT"] = "test"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["OUTBOX_POLL_INTERVAL_SECONDS"] = "0"
os.environ["RESEND_API_KEY"] = "re_test"
os.environ["NOTIFY_FROM_EMAIL"] = "Portal <alerts@example.com>"
os.environ["LOG_LEVEL"] = "WARNING"
