"""initial blood shortage schema

Revision ID: 3f2a91c07d4e
Revises:
Create Date: 2026-10-19 09:12:40.118214

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3f2a91c07d4e'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _json():
    return sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _ts(name, nullable=False, default=True):
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        server_default=sa.text("now()") if default else None,
        nullable=nullable,
    )


def upgrade():
    # ---------------- auth ----------------
    op.create_table(
        "auth_users",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=256), nullable=False),
        _ts("email_confirmed_at", nullable=True, default=False),
        _ts("last_sign_in_at", nullable=True, default=False),
        _ts("created_at"),
    )

    op.create_table(
        "auth_sessions",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("auth_users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _ts("created_at"),
        _ts("revoked_at", nullable=True, default=False),
    )
    op.create_index("ix_auth_sessions_user", "auth_sessions", ["user_id"])

    op.create_table(
        "auth_one_time_codes",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("auth_users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("purpose", sa.String(length=16), nullable=False),
        sa.Column("code_hash", sa.String(length=256), nullable=False),
        _ts("created_at"),
        _ts("expires_at", default=False),
        _ts("consumed_at", nullable=True, default=False),
    )
    op.create_index("ix_auth_codes_user_purpose", "auth_one_time_codes", ["user_id", "purpose"])

    # ---------------- domain ----------------
    op.create_table(
        "centers",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=256), nullable=False),
        sa.Column("district", sa.String(length=128), nullable=False),
        sa.Column("address", sa.String(length=512), nullable=True),
        sa.Column("phone", sa.String(length=64), nullable=True),
        sa.Column("opening_hours", _json(), nullable=True),
        _ts("created_at"),
        _ts("updated_at"),
    )
    op.create_index("ix_centers_district", "centers", ["district"])
    op.create_index("ix_centers_name", "centers", ["name"])

    op.create_table(
        "user_centers",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column(
            "center_id",
            sa.Uuid(),
            sa.ForeignKey("centers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("role", sa.String(length=16), server_default=sa.text("'editor'"), nullable=False),
        _ts("created_at"),
    )
    op.create_index("ix_user_centers_user", "user_centers", ["user_id"])
    op.create_index("ix_user_centers_center", "user_centers", ["center_id"])

    op.create_table(
        "shortages",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column(
            "center_id",
            sa.Uuid(),
            sa.ForeignKey("centers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("blood_type", sa.String(length=4), nullable=False),
        sa.Column("status", sa.String(length=16), server_default=sa.text("'normal'"), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        _ts("created_at"),
        _ts("updated_at"),
    )
    op.create_index("ix_shortages_center", "shortages", ["center_id"])
    op.create_index("ix_shortages_status", "shortages", ["status"])
    op.create_index("ix_shortages_created", "shortages", ["created_at"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.Column(
            "center_id",
            sa.Uuid(),
            sa.ForeignKey("centers.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("action", sa.String(length=16), nullable=False),
        sa.Column("table_name", sa.String(length=64), nullable=False),
        sa.Column("old_data", _json(), nullable=True),
        sa.Column("new_data", _json(), nullable=True),
        _ts("timestamp"),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
    )
    op.create_index("ix_audit_logs_center", "audit_logs", ["center_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_timestamp", "audit_logs", ["timestamp"])


def downgrade():
    for index, table in (
        ("ix_audit_logs_timestamp", "audit_logs"),
        ("ix_audit_logs_action", "audit_logs"),
        ("ix_audit_logs_center", "audit_logs"),
        ("ix_shortages_created", "shortages"),
        ("ix_shortages_status", "shortages"),
        ("ix_shortages_center", "shortages"),
        ("ix_user_centers_center", "user_centers"),
        ("ix_user_centers_user", "user_centers"),
        ("ix_centers_name", "centers"),
        ("ix_centers_district", "centers"),
        ("ix_auth_codes_user_purpose", "auth_one_time_codes"),
        ("ix_auth_sessions_user", "auth_sessions"),
    ):
        op.drop_index(index, table_name=table)

    op.drop_table("audit_logs")
    op.drop_table("shortages")
    op.drop_table("user_centers")
    op.drop_table("centers")
    op.drop_table("auth_one_time_codes")
    op.drop_table("auth_sessions")
    op.drop_table("auth_users")
