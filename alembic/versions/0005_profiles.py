"""Add recruiter profiles, company details and applicant career fields.

Revision ID: 0005_profiles
Revises: 0004_jobs_owner_nullable
Create Date: 2026-10-20
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0005_profiles"
down_revision = "0004_jobs_owner_nullable"
branch_labels = None
depends_on = None

APPLICANT_LIST_COLUMNS = ("education", "work_experience", "skills", "certifications")


def upgrade() -> None:
    op.add_column("companies", sa.Column("address", sa.String(length=255), nullable=True))
    op.add_column("companies", sa.Column("description", sa.Text(), nullable=True))

    op.add_column("applicant_profiles", sa.Column("current_position", sa.String(length=255), nullable=True))
    op.add_column("applicant_profiles", sa.Column("desired_position", sa.String(length=255), nullable=True))
    op.add_column("applicant_profiles", sa.Column("desired_salary", sa.String(length=128), nullable=True))
    for name in APPLICANT_LIST_COLUMNS:
        op.add_column(
            "applicant_profiles",
            sa.Column(name, sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        )

    op.create_table(
        "recruiter_profiles",
        sa.Column("id", sa.String(length=32), sa.ForeignKey("users.id"), primary_key=True),
        sa.Column("first_name", sa.String(length=100), nullable=True),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("department", sa.String(length=255), nullable=True),
        sa.Column("position", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("recruiter_profiles")
    with op.batch_alter_table("applicant_profiles") as batch_op:
        for name in APPLICANT_LIST_COLUMNS:
            batch_op.drop_column(name)
        batch_op.drop_column("desired_salary")
        batch_op.drop_column("desired_position")
        batch_op.drop_column("current_position")
    with op.batch_alter_table("companies") as batch_op:
        batch_op.drop_column("description")
        batch_op.drop_column("address")
