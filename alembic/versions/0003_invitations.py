"""Add applicant invitations.

Revision ID: 0003_invitations
Revises: 0002_applicants_and_applications
Create Date: 2026-10-14
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0003_invitations"
down_revision = "0002_applicants_and_applications"
branch_labels = None
depends_on = None


def upgrade() -> None:
    invitation_status = sa.Enum("pending", "used", name="invitationstatus")
    op.create_table(
        "invitations",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False, index=True),
        sa.Column("company_id", sa.String(length=32), sa.ForeignKey("companies.id"), nullable=False, index=True),
        sa.Column("invited_by_user_id", sa.String(length=32), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("status", invitation_status, nullable=False, server_default="pending"),
        sa.Column("send_attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_sent_at", sa.DateTime(), nullable=True),
        sa.Column("used_at", sa.DateTime(), nullable=True),
        sa.Column("used_by_user_id", sa.String(length=32), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("invitations")
    op.execute("DROP TYPE IF EXISTS invitationstatus")
