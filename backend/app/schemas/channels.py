"""Schemas for channels and channel membership."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, constr

from app.models.enums import ChannelVisibility, MemberRole
from app.schemas.users import PublicUser


class ChannelCreate(BaseModel):
    """Payload for creating a channel."""

    name: constr(strip_whitespace=True, min_length=1, max_length=100)
    description: constr(strip_whitespace=True, max_length=1000) | None = None
    visibility: ChannelVisibility = ChannelVisibility.PUBLIC


class ChannelRead(BaseModel):
    """Serialized channel."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
    visibility: ChannelVisibility
    is_archived: bool = False
    created_by_id: int | None = None
    created_at: datetime


class ChannelListItem(ChannelRead):
    """Channel entry in the sidebar listing."""

    is_member: bool = False


class ChannelMemberAdd(BaseModel):
    """Payload for adding a user to a channel."""

    user_id: int


class ChannelMemberRead(BaseModel):
    """Channel member with a user summary."""

    user_id: int
    role: MemberRole
    joined_at: datetime
    user: PublicUser | None = None


class ChannelCreated(BaseModel):
    id: int


class UnreadCounts(BaseModel):
    """Unread counts keyed by channel or conversation id."""

    counts: dict[int, int] = Field(default_factory=dict)
