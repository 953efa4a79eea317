"""Pydantic schemas for API payloads."""

from .assistant import AssistantRequest, SmartReplyRead, SummaryRead
from .channels import (
    ChannelCreate,
    ChannelCreated,
    ChannelListItem,
    ChannelMemberAdd,
    ChannelMemberRead,
    ChannelRead,
    UnreadCounts,
)
from .conversations import (
    ConversationCreated,
    ConversationRead,
    DirectConversationRequest,
    GroupConversationCreate,
    LastMessagePreview,
)
from .messages import (
    AttachmentPayload,
    MessageCreate,
    MessageCreated,
    MessageReactionSummary,
    MessageRead,
    MessageUpdate,
    ReactionRequest,
    ReactionToggleResult,
)
from .files import UploadRead
from .search import SearchResults
from .users import PresenceUpdate, PublicUser, StatusUpdate, SuccessResponse, UserRead

__all__ = [
    "AssistantRequest",
    "SmartReplyRead",
    "SummaryRead",
    "UploadRead",
    "ChannelCreate",
    "ChannelCreated",
    "ChannelListItem",
    "ChannelMemberAdd",
    "ChannelMemberRead",
    "ChannelRead",
    "UnreadCounts",
    "ConversationCreated",
    "ConversationRead",
    "DirectConversationRequest",
    "GroupConversationCreate",
    "LastMessagePreview",
    "AttachmentPayload",
    "MessageCreate",
    "MessageCreated",
    "MessageReactionSummary",
    "MessageRead",
    "MessageUpdate",
    "ReactionRequest",
    "ReactionToggleResult",
    "SearchResults",
    "PresenceUpdate",
    "PublicUser",
    "StatusUpdate",
    "SuccessResponse",
    "UserRead",
]
