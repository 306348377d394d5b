"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18 00:00:00

"""
import uuid

from alembic import op
import sqlalchemy as sa

from safeportal.db.seed import LEGAL_RESOURCES

# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

app_role = sa.Enum("user", "moderator", "admin", name="app_role")
incident_type = sa.Enum(
    "harassment", "assault", "stalking", "domestic_violence",
    "cyber_harassment", "workplace_harassment", "other",
    name="incident_type",
)
incident_status = sa.Enum("new", "under_review", "resolved", name="incident_status")
outbox_kind = sa.Enum("sos", "incident_update", name="outbox_kind")
outbox_status = sa.Enum("pending", "sent", "skipped", "failed", name="outbox_status")


def _timestamps(updated: bool = True):
    cols = [sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())]
    if updated:
        cols.append(sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()))
    return cols


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        *_timestamps(updated=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "profiles",
        sa.Column("id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("full_name", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("emergency_contact_name", sa.String(), nullable=True),
        sa.Column("emergency_contact_phone", sa.String(), nullable=True),
        sa.Column("emergency_contact_relationship", sa.String(), nullable=True),
        sa.Column("avatar_url", sa.String(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "user_roles",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", app_role, nullable=False),
        *_timestamps(updated=False),
        sa.UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),
    )
    op.create_index("ix_user_roles_user_id", "user_roles", ["user_id"])

    op.create_table(
        "incidents",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("incident_type", incident_type, nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("location_address", sa.Text(), nullable=True),
        sa.Column("latitude", sa.Numeric(10, 8), nullable=True),
        sa.Column("longitude", sa.Numeric(11, 8), nullable=True),
        sa.Column("is_anonymous", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("status", incident_status, nullable=False, server_default="new"),
        sa.Column("evidence_urls", sa.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_incidents_user_id", "incidents", ["user_id"])
    op.create_index("ix_incidents_status", "incidents", ["status"])

    op.create_table(
        "sos_alerts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("latitude", sa.Numeric(10, 8), nullable=False),
        sa.Column("longitude", sa.Numeric(11, 8), nullable=False),
        sa.Column("location_address", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(updated=False),
        sa.Column("deactivated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_sos_alerts_user_id", "sos_alerts", ["user_id"])
    op.create_index("ix_sos_alerts_is_active", "sos_alerts", ["is_active"])

    op.create_table(
        "forum_posts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("upvotes", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_forum_posts_user_id", "forum_posts", ["user_id"])

    op.create_table(
        "forum_comments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("post_id", sa.Uuid(), sa.ForeignKey("forum_posts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        *_timestamps(updated=False),
    )
    op.create_index("ix_forum_comments_post_id", "forum_comments", ["post_id"])

    legal_resources = op.create_table(
        "legal_resources",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        *_timestamps(updated=False),
    )
    op.create_index("ix_legal_resources_category", "legal_resources", ["category"])

    op.create_table(
        "notification_outbox",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("kind", outbox_kind, nullable=False),
        sa.Column("target_id", sa.Uuid(), nullable=False),
        sa.Column("actor_id", sa.Uuid(), nullable=False),
        sa.Column("status", outbox_status, nullable=False, server_default="pending"),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("skipped_reason", sa.String(), nullable=True),
        sa.Column("next_attempt_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        *_timestamps(),
    )
    op.create_index("ix_notification_outbox_target_id", "notification_outbox", ["target_id"])
    op.create_index("ix_notification_outbox_status", "notification_outbox", ["status"])

    op.bulk_insert(
        legal_resources,
        [
            {"id": uuid.uuid4(), "category": category, "title": title, "content": content}
            for category, title, content in LEGAL_RESOURCES
        ],
    )


def downgrade() -> None:
    for table in (
        "notification_outbox",
        "legal_resources",
        "forum_comments",
        "forum_posts",
        "sos_alerts",
        "incidents",
        "user_roles",
        "profiles",
        "users",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum_type in (outbox_status, outbox_kind, incident_status, incident_type, app_role):
        enum_type.drop(bind, checkfirst=True)
