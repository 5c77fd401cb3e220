"""quiz attempts, attestation records and form submissions

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-19 12:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0002"
down_revision: str | Sequence[str] | None = "0001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

UUID = postgresql.UUID(as_uuid=True)
TS = sa.DateTime(timezone=True)


def _evidence_columns() -> list[sa.Column]:
    return [
        sa.Column("id", UUID, primary_key=True),
        sa.Column("org_id", UUID, nullable=False),
        sa.Column(
            "enrollment_id",
            UUID,
            sa.ForeignKey("enrollments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", UUID, nullable=False),
        sa.Column(
            "content_item_id", UUID, sa.ForeignKey("content_items.id"), nullable=False
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "quiz_attempts",
        *_evidence_columns(),
        sa.Column("score", sa.Integer, nullable=False),
        sa.Column("passing_score", sa.Integer, nullable=False),
        sa.Column("passed", sa.Boolean, nullable=False),
        sa.Column("submitted_at", TS, nullable=False),
    )
    op.create_index("ix_quiz_attempts_enrollment_id", "quiz_attempts", ["enrollment_id"])

    op.create_table(
        "attestation_records",
        *_evidence_columns(),
        sa.Column("typed_name", sa.String(200), nullable=False),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("signed_at", TS, nullable=False),
    )
    op.create_index(
        "ix_attestation_records_enrollment_id", "attestation_records", ["enrollment_id"]
    )

    op.create_table(
        "form_submissions",
        *_evidence_columns(),
        sa.Column(
            "answers",
            postgresql.JSONB,
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("submitted_at", TS, nullable=False),
    )
    op.create_index(
        "ix_form_submissions_enrollment_id", "form_submissions", ["enrollment_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_form_submissions_enrollment_id", table_name="form_submissions")
    op.drop_table("form_submissions")
    op.drop_index(
        "ix_attestation_records_enrollment_id", table_name="attestation_records"
    )
    op.drop_table("attestation_records")
    op.drop_index("ix_quiz_attempts_enrollment_id", table_name="quiz_attempts")
    op.drop_table("quiz_attempts")
