"""create chat tables

Revision ID: 20261018_01
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

from app.models.base import Timestamp, current_timestamp


# revision identifiers, used by Alembic.
revision = "20261018_01"
down_revision = None
branch_labels = None
depends_on = None


PRESENCE_STATUS = sa.Enum("online", "away", "offline", name="presence_status")
CHANNEL_VISIBILITY = sa.Enum("public", "private", name="channel_visibility")
MEMBER_ROLE = sa.Enum("owner", "admin", "member", name="member_role")
CONVERSATION_TYPE = sa.Enum("dm", "group", name="conversation_type")
MESSAGE_TYPE = sa.Enum("text", "system", "file", name="message_type")


def _timestamp(name: str, *, onupdate: bool = False) -> sa.Column:
    return sa.Column(
        name,
        Timestamp,
        server_default=current_timestamp(),
        onupdate=current_timestamp() if onupdate else None,
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("open_id", sa.String(length=64), nullable=False, unique=True),
        sa.Column("name", sa.String(length=128), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("avatar_url", sa.String(length=512), nullable=True),
        sa.Column("status", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("status_emoji", sa.String(length=32), nullable=False, server_default=""),
        sa.Column("presence", PRESENCE_STATUS, nullable=False, server_default="offline"),
        _timestamp("last_seen_at"),
        _timestamp("created_at"),
        _timestamp("updated_at", onupdate=True),
        mysql_charset="utf8mb4",
    )

    op.create_table(
        "channels",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("visibility", CHANNEL_VISIBILITY, nullable=False, server_default="public"),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "created_by_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        _timestamp("created_at"),
        _timestamp("updated_at", onupdate=True),
        sa.UniqueConstraint("name", name="uq_channels_name"),
        mysql_charset="utf8mb4",
    )

    op.create_table(
        "channel_members",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "channel_id",
            sa.Integer(),
            sa.ForeignKey("channels.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("role", MEMBER_ROLE, nullable=False, server_default="member"),
        _timestamp("last_read_at"),
        _timestamp("joined_at"),
        sa.UniqueConstraint("channel_id", "user_id", name="uq_channel_member"),
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_channel_members_user", "channel_members", ["user_id"])

    op.create_table(
        "conversations",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("type", CONVERSATION_TYPE, nullable=False, server_default="dm"),
        sa.Column("name", sa.String(length=100), nullable=True),
        sa.Column(
            "user_a_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "user_b_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=True,
        ),
        _timestamp("created_at"),
        _timestamp("updated_at", onupdate=True),
        sa.UniqueConstraint("user_a_id", "user_b_id", name="uq_conversation_pair"),
        mysql_charset="utf8mb4",
    )

    op.create_table(
        "conversation_participants",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "conversation_id",
            sa.Integer(),
            sa.ForeignKey("conversations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _timestamp("last_read_at"),
        _timestamp("joined_at"),
        sa.UniqueConstraint("conversation_id", "user_id", name="uq_conversation_participant"),
        mysql_charset="utf8mb4",
    )
    op.create_index(
        "ix_conversation_participants_user", "conversation_participants", ["user_id"]
    )

    op.create_table(
        "messages",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column(
            "channel_id",
            sa.Integer(),
            sa.ForeignKey("channels.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "conversation_id",
            sa.Integer(),
            sa.ForeignKey("conversations.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "parent_id",
            sa.Integer(),
            sa.ForeignKey("messages.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("type", MESSAGE_TYPE, nullable=False, server_default="text"),
        sa.Column("is_edited", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("reply_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("file_url", sa.String(length=1024), nullable=True),
        sa.Column("file_name", sa.String(length=255), nullable=True),
        sa.Column("file_mime_type", sa.String(length=128), nullable=True),
        sa.Column("file_size", sa.Integer(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at", onupdate=True),
        sa.CheckConstraint(
            "(channel_id IS NULL) <> (conversation_id IS NULL)",
            name="ck_messages_single_target",
        ),
        mysql_charset="utf8mb4",
        sqlite_autoincrement=True,
    )
    op.create_index("ix_messages_channel_feed", "messages", ["channel_id", "parent_id", "id"])
    op.create_index(
        "ix_messages_conversation_feed", "messages", ["conversation_id", "parent_id", "id"]
    )
    op.create_index("ix_messages_parent", "messages", ["parent_id", "created_at"])

    op.create_table(
        "reactions",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "message_id",
            sa.Integer(),
            sa.ForeignKey("messages.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("emoji", sa.String(length=64), nullable=False),
        _timestamp("created_at"),
        sa.UniqueConstraint("message_id", "user_id", "emoji", name="uq_reaction"),
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_reactions_message", "reactions", ["message_id"])


def downgrade() -> None:
    op.drop_index("ix_reactions_message", table_name="reactions")
    op.drop_table("reactions")
    op.drop_index("ix_messages_parent", table_name="messages")
    op.drop_index("ix_messages_conversation_feed", table_name="messages")
    op.drop_index("ix_messages_channel_feed", table_name="messages")
    op.drop_table("messages")
    op.drop_index("ix_conversation_participants_user", table_name="conversation_participants")
    op.drop_table("conversation_participants")
    op.drop_table("conversations")
    op.drop_index("ix_channel_members_user", table_name="channel_members")
    op.drop_table("channel_members")
    op.drop_table("channels")
    op.drop_table("users")

    MESSAGE_TYPE.drop(op.get_bind(), checkfirst=False)
    CONVERSATION_TYPE.drop(op.get_bind(), checkfirst=False)
    MEMBER_ROLE.drop(op.get_bind(), checkfirst=False)
    CHANNEL_VISIBILITY.drop(op.get_bind(), checkfirst=False)
    PRESENCE_STATUS.drop(op.get_bind(), checkfirst=False)
