"""Unread counts derived from read cursors on every call."""

from __future__ import annotations

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from app.models import ChannelMembership, ConversationParticipant, Message


def count_unread(db: Session, user_id: int) -> dict[int, int]:
    """Map each channel the user belongs to onto its unread top-level message count."""

    stmt = (
        select(ChannelMembership.channel_id, func.count(Message.id))
        .select_from(ChannelMembership)
        .outerjoin(
            Message,
            and_(
                Message.channel_id == ChannelMembership.channel_id,
                Message.parent_id.is_(None),
                Message.created_at > ChannelMembership.last_read_at,
            ),
        )
        .where(ChannelMembership.user_id == user_id)
        .group_by(ChannelMembership.channel_id)
    )
    return {channel_id: count for channel_id, count in db.execute(stmt)}


def count_unread_conversations(db: Session, user_id: int) -> dict[int, int]:
    stmt = (
        select(ConversationParticipant.conversation_id, func.count(Message.id))
        .select_from(ConversationParticipant)
        .outerjoin(
            Message,
            and_(
                Message.conversation_id == ConversationParticipant.conversation_id,
                Message.parent_id.is_(None),
                Message.created_at > ConversationParticipant.last_read_at,
            ),
        )
        .where(ConversationParticipant.user_id == user_id)
        .group_by(ConversationParticipant.conversation_id)
    )
    return {conversation_id: count for conversation_id, count in db.execute(stmt)}
