"""completion core schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

UUID = postgresql.UUID(as_uuid=True)
TS = sa.DateTime(timezone=True)


def upgrade() -> None:
    op.create_table(
        "content_items",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("org_id", UUID, nullable=False),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("passing_score", sa.Integer, nullable=True),
    )
    op.create_table(
        "curricula",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("org_id", UUID, nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
    )
    op.create_table(
        "curriculum_sections",
        sa.Column("id", UUID, primary_key=True),
        sa.Column(
            "curriculum_id",
            UUID,
            sa.ForeignKey("curricula.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("position", sa.Integer, nullable=False),
    )
    op.create_table(
        "curriculum_items",
        sa.Column(
            "section_id",
            UUID,
            sa.ForeignKey("curriculum_sections.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "content_item_id", UUID, sa.ForeignKey("content_items.id"), primary_key=True
        ),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("required", sa.Boolean, nullable=False, server_default=sa.true()),
    )
    op.create_table(
        "assignments",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("org_id", UUID, nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column(
            "content_item_id", UUID, sa.ForeignKey("content_items.id"), nullable=True
        ),
        sa.Column("curriculum_id", UUID, sa.ForeignKey("curricula.id"), nullable=True),
        sa.Column("due_at", TS, nullable=True),
    )

    op.create_table(
        "enrollments",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("org_id", UUID, nullable=False),
        sa.Column("user_id", UUID, nullable=False),
        sa.Column("assignment_id", UUID, sa.ForeignKey("assignments.id"), nullable=False),
        sa.Column("status", sa.String(32), nullable=False, server_default="ASSIGNED"),
        sa.Column("started_at", TS, nullable=True),
        sa.Column("completed_at", TS, nullable=True),
        sa.Column("due_at", TS, nullable=True),
        sa.UniqueConstraint("user_id", "assignment_id"),
    )
    op.create_table(
        "enrollment_item_progress",
        sa.Column(
            "enrollment_id",
            UUID,
            sa.ForeignKey("enrollments.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "content_item_id", UUID, sa.ForeignKey("content_items.id"), primary_key=True
        ),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("completed", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("completed_at", TS, nullable=True),
    )

    op.create_table(
        "certificate_templates",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("org_id", UUID, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("html_template", sa.Text, nullable=False),
        sa.Column("assignment_id", UUID, sa.ForeignKey("assignments.id"), nullable=True),
    )
    op.create_table(
        "certificates_issued",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("certificate_number", sa.String(64), nullable=False, unique=True),
        sa.Column("issued_at", TS, nullable=False),
        sa.Column("org_id", UUID, nullable=False),
        sa.Column("user_id", UUID, nullable=False),
        sa.Column(
            "template_id", UUID, sa.ForeignKey("certificate_templates.id"), nullable=False
        ),
        sa.Column(
            "enrollment_id",
            UUID,
            sa.ForeignKey("enrollments.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
    )

    op.create_table(
        "completion_vault_records",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("enrollment_id", UUID, nullable=False, unique=True),
        sa.Column("user_id", UUID, nullable=False),
        sa.Column("org_id", UUID, nullable=False),
        sa.Column("certificate_id", UUID, nullable=True),
        sa.Column("certificate_number", sa.String(64), nullable=True),
        sa.Column("assignment_title", sa.String(500), nullable=False),
        sa.Column("completed_at", TS, nullable=False),
        sa.Column("verification_hash", sa.String(64), nullable=False),
        sa.Column("hash_version", sa.Integer, nullable=False, server_default="1"),
        sa.Column("created_at", TS, nullable=False),
        sa.Column("updated_at", TS, nullable=False),
    )
    op.create_index(
        "ix_completion_vault_records_org_id", "completion_vault_records", ["org_id"]
    )

    op.create_table(
        "event_log",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("org_id", UUID, nullable=False),
        sa.Column("user_id", UUID, nullable=False),
        sa.Column("enrollment_id", UUID, nullable=False),
        sa.Column("kind", sa.String(64), nullable=False),
        sa.Column("occurred_at", TS, nullable=False),
        sa.Column(
            "payload",
            postgresql.JSONB,
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
    )
    op.create_index("ix_event_log_enrollment_id", "event_log", ["enrollment_id"])


def downgrade() -> None:
    op.drop_index("ix_event_log_enrollment_id", table_name="event_log")
    op.drop_table("event_log")
    op.drop_index(
        "ix_completion_vault_records_org_id", table_name="completion_vault_records"
    )
    op.drop_table("completion_vault_records")
    op.drop_table("certificates_issued")
    op.drop_table("certificate_templates")
    op.drop_table("enrollment_item_progress")
    op.drop_table("enrollments")
    op.drop_table("assignments")
    op.drop_table("curriculum_items")
    op.drop_table("curriculum_sections")
    op.drop_table("curricula")
    op.drop_table("content_items")
