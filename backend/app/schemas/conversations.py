"""Schemas for direct conversations."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, constr

from app.models.enums import ConversationType
from app.schemas.users import PublicUser


class DirectConversationRequest(BaseModel):
    """Find-or-create a 1:1 conversation with another user."""

    user_id: int


class GroupConversationCreate(BaseModel):
    participant_ids: list[int] = Field(..., min_length=1)
    name: constr(strip_whitespace=True, min_length=1, max_length=100) | None = None


class ConversationCreated(BaseModel):
    id: int


class LastMessagePreview(BaseModel):
    id: int
    user_id: int
    content: str
    created_at: datetime


class ConversationRead(BaseModel):
    """Conversation entry with the other participants and latest message."""

    id: int
    type: ConversationType
    name: str | None = None
    participants: list[PublicUser] = Field(default_factory=list)
    last_message: LastMessagePreview | None = None
    updated_at: datetime
