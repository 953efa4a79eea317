"""Database models package."""

from .base import Base, Timestamp, current_timestamp, utcnow
from .chat import (
    Channel,
    ChannelMembership,
    Conversation,
    ConversationParticipant,
    Message,
    Reaction,
    User,
)
from .enums import ChannelVisibility, ConversationType, MemberRole, MessageType, PresenceStatus

__all__ = [
    "Base",
    "utcnow",
    "Timestamp",
    "current_timestamp",
    "User",
    "Channel",
    "ChannelMembership",
    "Conversation",
    "ConversationParticipant",
    "Message",
    "Reaction",
    "ChannelVisibility",
    "ConversationType",
    "MemberRole",
    "MessageType",
    "PresenceStatus",
]
