"""Keep jobs when the posting recruiter deletes their account.

Revision ID: 0004_jobs_owner_nullable
Revises: 0003_invitations
Create Date: 2026-10-20
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0004_jobs_owner_nullable"
down_revision = "0003_invitations"
branch_labels = None
depends_on = None


def upgrade() -> None:
    with op.batch_alter_table("jobs") as batch_op:
        batch_op.alter_column("user_id", existing_type=sa.String(length=32), nullable=True)


def downgrade() -> None:
    op.execute("UPDATE applications SET job_id = NULL WHERE job_id IN (SELECT id FROM jobs WHERE user_id IS NULL)")
    op.execute("DELETE FROM jobs WHERE user_id IS NULL")
    with op.batch_alter_table("jobs") as batch_op:
        batch_op.alter_column("user_id", existing_type=sa.String(length=32), nullable=False)
