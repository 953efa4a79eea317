"""Schemas for AI-assisted summaries and smart replies."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, model_validator


class AssistantRequest(BaseModel):
    channel_id: int | None = None
    conversation_id: int | None = None
    message_count: int | None = Field(default=None, ge=1, le=200)

    @model_validator(mode="after")
    def ensure_single_target(self) -> "AssistantRequest":
        if (self.channel_id is None) == (self.conversation_id is None):
            raise ValueError("Provide exactly one of channel_id or conversation_id")
        return self


class SummaryRead(BaseModel):
    status: Literal["ok", "empty", "unavailable"]
    summary: str | None = None


class SmartReplyRead(BaseModel):
    status: Literal["ok", "empty", "unavailable"]
    replies: list[str] = Field(default_factory=list)
