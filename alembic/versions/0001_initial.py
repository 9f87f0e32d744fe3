"""Initial schema (users, friends, reminder_logs)

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(length=254), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=True),
        sa.Column("timezone", sa.String(length=64), nullable=False, server_default="UTC"),
        sa.Column("locale", sa.String(length=8), nullable=False, server_default="en"),
        sa.Column("reminder_default_days", sa.Integer(), nullable=False, server_default="2"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("api_key_hash", sa.String(length=64), nullable=True),
        sa.Column("api_key_prefix", sa.String(length=12), nullable=True),
        sa.Column("api_key_last_rotated_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.UniqueConstraint("api_key_hash", name="uq_users_api_key_hash"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=False)
    op.create_index("ix_users_api_key_hash", "users", ["api_key_hash"], unique=False)

    op.create_table(
        "friends",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=254), nullable=True),
        sa.Column("birthday", sa.Date(), nullable=False),
        sa.Column("timezone", sa.String(length=64), nullable=False, server_default="UTC"),
        sa.Column("reminder_days_override", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_friends_user_id", "friends", ["user_id"], unique=False)
    op.create_index("ix_friends_birthday", "friends", ["birthday"], unique=False)

    op.create_table(
        "reminder_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("friend_id", sa.Integer(), nullable=False),
        sa.Column("remind_for_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="sent"),
        sa.Column("error_message", sa.String(length=400), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["friend_id"], ["friends.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "friend_id", "remind_for_date", name="uq_reminder_logs_user_friend_date"),
    )
    op.create_index("ix_reminder_logs_user_id", "reminder_logs", ["user_id"], unique=False)
    op.create_index("ix_reminder_logs_friend_id", "reminder_logs", ["friend_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_reminder_logs_friend_id", table_name="reminder_logs")
    op.drop_index("ix_reminder_logs_user_id", table_name="reminder_logs")
    op.drop_table("reminder_logs")
    op.drop_index("ix_friends_birthday", table_name="friends")
    op.drop_index("ix_friends_user_id", table_name="friends")
    op.drop_table("friends")
    op.drop_index("ix_users_api_key_hash", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
