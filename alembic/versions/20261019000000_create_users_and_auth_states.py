"""Create users and auth_states tables.

Revision ID: 20261019000000
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "20261019000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(length=32), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_users")),
    )
    op.create_index(
        op.f("ix_users_username"),
        "users",
        ["username"],
        unique=True,
    )
    # locked_until / updated_at hold fixed-width ISO 8601 UTC text.
    op.create_table(
        "auth_states",
        sa.Column("username", sa.String(length=32), nullable=False),
        sa.Column("failed_attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("locked_until", sa.String(length=32), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.String(length=32), nullable=True),
        sa.CheckConstraint("failed_attempts >= 0", name="ck_auth_states_failed_attempts"),
        sa.ForeignKeyConstraint(
            ["username"],
            ["users.username"],
            name=op.f("fk_auth_states_username_users"),
        ),
        sa.PrimaryKeyConstraint("username", name=op.f("pk_auth_states")),
    )


def downgrade() -> None:
    op.drop_table("auth_states")
    op.drop_index(op.f("ix_users_username"), table_name="users")
    op.drop_table("users")
