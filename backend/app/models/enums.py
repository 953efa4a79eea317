from __future__ import annotations

from enum import Enum


class PresenceStatus(str, Enum):
    """Presence indicator maintained by heartbeats."""

    ONLINE = "online"
    AWAY = "away"
    OFFLINE = "offline"


class ChannelVisibility(str, Enum):
    """Who can discover and read a channel."""

    PUBLIC = "public"
    PRIVATE = "private"


class MemberRole(str, Enum):
    """Roles that a user can have inside a channel."""

    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


class ConversationType(str, Enum):
    """Direct conversation flavours."""

    DM = "dm"
    GROUP = "group"


class MessageType(str, Enum):
    """Kind of content carried by a message."""

    TEXT = "text"
    SYSTEM = "system"
    FILE = "file"
