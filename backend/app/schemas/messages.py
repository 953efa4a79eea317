"""Schemas related to chat messages."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import MessageType
from app.schemas.users import PublicUser


class AttachmentPayload(BaseModel):
    """File reference produced by a previous upload."""

    url: str = Field(..., min_length=1, max_length=1024)
    name: str = Field(..., min_length=1, max_length=255)
    mime_type: str = Field(default="application/octet-stream", max_length=128)
    size: int | None = Field(default=None, ge=0)


class MessageCreate(BaseModel):
    """Payload for sending a message to a channel or conversation."""

    channel_id: int | None = None
    conversation_id: int | None = None
    content: str = ""
    parent_id: int | None = None
    attachment: AttachmentPayload | None = None


class MessageUpdate(BaseModel):
    content: str


class MessageCreated(BaseModel):
    id: int


class MessageReactionSummary(BaseModel):
    """Aggregated reaction information for a message."""

    emoji: str = Field(..., description="Emoji identifier, e.g. 👍 or :thumbsup:")
    count: int = Field(..., ge=0, description="Total reactions with the emoji")
    user_ids: list[int] = Field(
        default_factory=list,
        description="Identifiers of users who added this reaction, in reaction order",
    )
    reacted: bool = Field(
        default=False,
        description="Indicates whether the current user added this reaction",
    )


class MessageRead(BaseModel):
    """Serialized representation of an enriched chat message."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    channel_id: int | None = None
    conversation_id: int | None = None
    user_id: int
    user: PublicUser
    parent_id: int | None = None
    content: str
    type: MessageType = MessageType.TEXT
    is_edited: bool = False
    reply_count: int = Field(0, ge=0)
    file_url: str | None = None
    file_name: str | None = None
    file_mime_type: str | None = None
    file_size: int | None = None
    created_at: datetime
    updated_at: datetime | None = None
    reactions: list[MessageReactionSummary] = Field(default_factory=list)


class ReactionRequest(BaseModel):
    """Payload for toggling a reaction."""

    emoji: str = Field(..., min_length=1, max_length=64)


class ReactionToggleResult(BaseModel):
    action: Literal["added", "removed"]

