"""Add applicant profiles and applications.

Revision ID: 0002_applicants_and_applications
Revises: 0001_initial
Create Date: 2026-10-12
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0002_applicants_and_applications"
down_revision = "0001_initial"
branch_labels = None
depends_on = None


def upgrade() -> None:
    application_status = sa.Enum(
        "pending",
        "invited",
        "reviewing",
        "interviewing",
        "accepted",
        "rejected",
        name="applicationstatus",
    )

    # Keyed by the auth identity id.
    op.create_table(
        "applicant_profiles",
        sa.Column("id", sa.String(length=32), sa.ForeignKey("users.id"), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False, index=True),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "applications",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("company_id", sa.String(length=32), sa.ForeignKey("companies.id"), nullable=False, index=True),
        sa.Column(
            "applicant_id",
            sa.String(length=32),
            sa.ForeignKey("applicant_profiles.id"),
            nullable=False,
            index=True,
        ),
        sa.Column("job_id", sa.String(length=32), sa.ForeignKey("jobs.id"), nullable=True, index=True),
        sa.Column("status", application_status, nullable=False, server_default="pending"),
        sa.Column("score", sa.Float(), nullable=True),
        sa.Column("feedback", sa.Text(), nullable=True),
        sa.Column("next_step", sa.String(length=255), nullable=True),
        sa.Column("next_date", sa.DateTime(), nullable=True),
        sa.Column("applied_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("applications")
    op.drop_table("applicant_profiles")
    op.execute("DROP TYPE IF EXISTS applicationstatus")
