from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, Timestamp, current_timestamp, utcnow
from app.models.enums import (
    ChannelVisibility,
    ConversationType,
    MemberRole,
    MessageType,
    PresenceStatus,
)


def _enum_column(enum_cls, name: str) -> SAEnum:
    return SAEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
    )


class User(Base):
    """Workspace user as supplied by the identity provider."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    open_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(128))
    email: Mapped[str | None] = mapped_column(String(320))
    avatar_url: Mapped[str | None] = mapped_column(String(512))
    status: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    status_emoji: Mapped[str] = mapped_column(String(32), default="", nullable=False)
    presence: Mapped[PresenceStatus] = mapped_column(
        _enum_column(PresenceStatus, "presence_status"),
        default=PresenceStatus.OFFLINE,
        nullable=False,
    )
    last_seen_at: Mapped[datetime] = mapped_column(
        Timestamp, default=utcnow, server_default=current_timestamp(), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        Timestamp, default=utcnow, server_default=current_timestamp(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        Timestamp,
        default=utcnow,
        onupdate=utcnow,
        server_default=current_timestamp(),
        nullable=False,
    )

    memberships: Mapped[list["ChannelMembership"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )
    participations: Mapped[list["ConversationParticipant"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )


class Channel(Base):
    """Named workspace channel."""

    __tablename__ = "channels"
    __table_args__ = (UniqueConstraint("name", name="uq_channels_name"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    visibility: Mapped[ChannelVisibility] = mapped_column(
        _enum_column(ChannelVisibility, "channel_visibility"),
        default=ChannelVisibility.PUBLIC,
        nullable=False,
    )
    is_archived: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        Timestamp, default=utcnow, server_default=current_timestamp(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        Timestamp,
        default=utcnow,
        onupdate=utcnow,
        server_default=current_timestamp(),
        nullable=False,
    )

    members: Mapped[list["ChannelMembership"]] = relationship(
        back_populates="channel", cascade="all, delete-orphan"
    )
    created_by: Mapped[User | None] = relationship(foreign_keys=[created_by_id])

    @property
    def is_private(self) -> bool:
        return self.visibility == ChannelVisibility.PRIVATE


class ChannelMembership(Base):
    """Link between a channel and a user carrying the read cursor."""

    __tablename__ = "channel_members"
    __table_args__ = (
        UniqueConstraint("channel_id", "user_id", name="uq_channel_member"),
        Index("ix_channel_members_user", "user_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    channel_id: Mapped[int] = mapped_column(
        ForeignKey("channels.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role: Mapped[MemberRole] = mapped_column(
        _enum_column(MemberRole, "member_role"),
        default=MemberRole.MEMBER,
        nullable=False,
    )
    last_read_at: Mapped[datetime] = mapped_column(
        Timestamp, default=utcnow, server_default=current_timestamp(), nullable=False
    )
    joined_at: Mapped[datetime] = mapped_column(
        Timestamp, default=utcnow, server_default=current_timestamp(), nullable=False
    )

    channel: Mapped[Channel] = relationship(back_populates="members")
    user: Mapped[User] = relationship(back_populates="memberships")


class Conversation(Base):
    """Direct message thread. Supports 1:1 and group chats.

    For 1:1 conversations ``user_a_id``/``user_b_id`` hold the canonical
    ordered pair, which the unique constraint keeps to a single row.
    """

    __tablename__ = "conversations"
    __table_args__ = (UniqueConstraint("user_a_id", "user_b_id", name="uq_conversation_pair"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    type: Mapped[ConversationType] = mapped_column(
        _enum_column(ConversationType, "conversation_type"),
        default=ConversationType.DM,
        nullable=False,
    )
    name: Mapped[str | None] = mapped_column(String(100))
    user_a_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=True
    )
    user_b_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        Timestamp, default=utcnow, server_default=current_timestamp(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        Timestamp,
        default=utcnow,
        onupdate=utcnow,
        server_default=current_timestamp(),
        nullable=False,
    )

    participants: Mapped[list["ConversationParticipant"]] = relationship(
        back_populates="conversation",
        cascade="all, delete-orphan",
        order_by="ConversationParticipant.joined_at",
    )

    def has_user(self, user_id: int) -> bool:
        return any(participant.user_id == user_id for participant in self.participants)


class ConversationParticipant(Base):
    """Membership information for direct conversations."""

    __tablename__ = "conversation_participants"
    __table_args__ = (
        UniqueConstraint("conversation_id", "user_id", name="uq_conversation_participant"),
        Index("ix_conversation_participants_user", "user_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    conversation_id: Mapped[int] = mapped_column(
        ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    last_read_at: Mapped[datetime] = mapped_column(
        Timestamp, default=utcnow, server_default=current_timestamp(), nullable=False
    )
    joined_at: Mapped[datetime] = mapped_column(
        Timestamp, default=utcnow, server_default=current_timestamp(), nullable=False
    )

    conversation: Mapped[Conversation] = relationship(back_populates="participants")
    user: Mapped[User] = relationship(back_populates="participations")


class Message(Base):
    """Message posted to exactly one channel or conversation."""

    __tablename__ = "messages"
    __table_args__ = (
        CheckConstraint(
            "(channel_id IS NULL) <> (conversation_id IS NULL)",
            name="ck_messages_single_target",
        ),
        Index("ix_messages_channel_feed", "channel_id", "parent_id", "id"),
        Index("ix_messages_conversation_feed", "conversation_id", "parent_id", "id"),
        Index("ix_messages_parent", "parent_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    channel_id: Mapped[int | None] = mapped_column(
        ForeignKey("channels.id", ondelete="CASCADE"), nullable=True
    )
    conversation_id: Mapped[int | None] = mapped_column(
        ForeignKey("conversations.id", ondelete="CASCADE"), nullable=True
    )
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    parent_id: Mapped[int | None] = mapped_column(
        ForeignKey("messages.id", ondelete="SET NULL"), nullable=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[MessageType] = mapped_column(
        _enum_column(MessageType, "message_type"),
        default=MessageType.TEXT,
        nullable=False,
    )
    is_edited: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    reply_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    file_url: Mapped[str | None] = mapped_column(String(1024))
    file_name: Mapped[str | None] = mapped_column(String(255))
    file_mime_type: Mapped[str | None] = mapped_column(String(128))
    file_size: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(
        Timestamp, default=utcnow, server_default=current_timestamp(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        Timestamp,
        default=utcnow,
        onupdate=utcnow,
        server_default=current_timestamp(),
        nullable=False,
    )


class Reaction(Base):
    """Individual emoji reaction; the tally is always derived from these rows."""

    __tablename__ = "reactions"
    __table_args__ = (
        UniqueConstraint("message_id", "user_id", "emoji", name="uq_reaction"),
        Index("ix_reactions_message", "message_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    message_id: Mapped[int] = mapped_column(
        ForeignKey("messages.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    emoji: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        Timestamp, default=utcnow, server_default=current_timestamp(), nullable=False
    )
