"""Create password_reset_otp table

Revision ID: 003
Revises: 002
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "003"
down_revision: str | None = "002"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "password_reset_otp",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("otp_hash", sa.String(length=256), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_password_reset_otp_email"), "password_reset_otp", ["email"], unique=False)
    op.create_index(op.f("ix_password_reset_otp_expires_at"), "password_reset_otp", ["expires_at"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_password_reset_otp_expires_at"), table_name="password_reset_otp")
    op.drop_index(op.f("ix_password_reset_otp_email"), table_name="password_reset_otp")
    op.drop_table("password_reset_otp")
