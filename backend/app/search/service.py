"""Database-backed search over messages, channels and users."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models import Channel, ConversationParticipant, Message, User
from app.services.membership import visible_channel_ids

DIRECTORY_SEARCH_LIMIT = 10


@dataclass(frozen=True)
class MessageSearchFilters:
    """Optional filters that can be applied to message search queries."""

    channel_id: int | None = None
    author_id: int | None = None
    start_at: datetime | None = None
    end_at: datetime | None = None


@dataclass(frozen=True)
class MessageSearchResult:
    messages: list[Message]


@dataclass(frozen=True)
class GlobalSearchResult:
    messages: list[Message]
    channels: list[Channel]
    users: list[User]


def _escape_like(query: str) -> str:
    return query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class MessageSearchService:
    """Case-insensitive substring search limited to what the user can read."""

    def __init__(self, session: Session):
        self._session = session

    def search(
        self,
        user_id: int,
        query: str,
        *,
        limit: int | None = None,
        filters: MessageSearchFilters | None = None,
    ) -> MessageSearchResult:
        if filters is None:
            filters = MessageSearchFilters()
        if limit is None:
            limit = get_settings().search_default_limit

        query = query.strip()
        if not query:
            return MessageSearchResult(messages=[])

        participant_conversations = select(ConversationParticipant.conversation_id).where(
            ConversationParticipant.user_id == user_id
        )
        stmt = select(Message).where(
            or_(
                Message.channel_id.in_(visible_channel_ids(user_id)),
                Message.conversation_id.in_(participant_conversations),
            )
        )

        conditions: list = [self._build_matcher(query)]
        if filters.channel_id is not None:
            conditions.append(Message.channel_id == filters.channel_id)
        if filters.author_id is not None:
            conditions.append(Message.user_id == filters.author_id)
        if filters.start_at is not None:
            conditions.append(Message.created_at >= filters.start_at)
        if filters.end_at is not None:
            conditions.append(Message.created_at <= filters.end_at)

        stmt = (
            stmt.where(and_(*conditions))
            .order_by(Message.created_at.desc(), Message.id.desc())
            .limit(limit)
        )
        return MessageSearchResult(messages=list(self._session.execute(stmt).scalars()))

    def search_channels(
        self, query: str, *, user_id: int | None = None, limit: int = DIRECTORY_SEARCH_LIMIT
    ) -> list[Channel]:
        """Non-archived channels by name or description, limited to visible ones for a user."""

        query = query.strip()
        if not query:
            return []
        stmt = select(Channel)
        if user_id is not None:
            stmt = stmt.where(Channel.id.in_(visible_channel_ids(user_id)))
        stmt = (
            stmt
            .where(
                Channel.is_archived.is_(False),
                or_(
                    Channel.name.ilike(f"%{_escape_like(query)}%", escape="\\"),
                    Channel.description.ilike(f"%{_escape_like(query)}%", escape="\\"),
                ),
            )
            .order_by(Channel.name.asc())
            .limit(limit)
        )
        return list(self._session.execute(stmt).scalars())

    def search_users(self, query: str, *, limit: int = DIRECTORY_SEARCH_LIMIT) -> list[User]:
        query = query.strip()
        if not query:
            return []
        pattern = f"%{_escape_like(query)}%"
        stmt = (
            select(User)
            .where(or_(User.name.ilike(pattern, escape="\\"), User.email.ilike(pattern, escape="\\")))
            .order_by(User.name.asc(), User.id.asc())
            .limit(limit)
        )
        return list(self._session.execute(stmt).scalars())

    def global_search(
        self,
        user_id: int,
        query: str,
        *,
        filters: MessageSearchFilters | None = None,
    ) -> GlobalSearchResult:
        return GlobalSearchResult(
            messages=self.search(user_id, query, filters=filters).messages,
            channels=self.search_channels(query, user_id=user_id),
            users=self.search_users(query),
        )

    # Internal helpers -----------------------------------------------------

    def _build_matcher(self, query: str):
        return Message.content.ilike(f"%{_escape_like(query)}%", escape="\\")
