"""Application service helpers."""

from .assistant import AssistantClient, get_assistant
from .feed import FeedView, compose_transcript, enrich_messages, merge_feed
from .messages import Attachment, MessageTarget
from .reactions import aggregate_reactions, toggle_reaction
from .unread import count_unread, count_unread_conversations

__all__ = [
    "AssistantClient",
    "get_assistant",
    "FeedView",
    "compose_transcript",
    "enrich_messages",
    "merge_feed",
    "Attachment",
    "MessageTarget",
    "aggregate_reactions",
    "toggle_reaction",
    "count_unread",
    "count_unread_conversations",
]
