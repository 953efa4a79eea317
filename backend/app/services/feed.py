"""Timeline composition: enrichment, page/poll merging and the poll cursor."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Sequence, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models import Message, PresenceStatus, User
from app.schemas.messages import MessageRead
from app.schemas.users import PublicUser
from app.services.membership import effective_presence
from app.services.reactions import aggregate_reactions, load_reactions

logger = logging.getLogger(__name__)

UNKNOWN_AUTHOR_NAME = "Unknown"

T = TypeVar("T")


def public_user(user: User) -> PublicUser:
    return PublicUser(
        id=user.id,
        name=user.name,
        avatar_url=user.avatar_url,
        presence=effective_presence(user),
    )


def unknown_author(user_id: int) -> PublicUser:
    return PublicUser(
        id=user_id,
        name=UNKNOWN_AUTHOR_NAME,
        avatar_url=None,
        presence=PresenceStatus.OFFLINE,
    )


def enrich_messages(
    db: Session, messages: Sequence[Message], current_user_id: int | None = None
) -> list[MessageRead]:
    """Attach author summaries and reaction tallies to raw messages.

    Authors and reactions are each loaded with a single batched query. A
    missing author is replaced by a placeholder instead of failing the batch.
    """

    if not messages:
        return []

    author_ids = {message.user_id for message in messages}
    authors = {
        user.id: public_user(user)
        for user in db.execute(select(User).where(User.id.in_(author_ids))).scalars()
    }
    missing = author_ids - authors.keys()
    if missing:
        logger.warning("Messages reference unknown authors %s", sorted(missing))

    reactions = load_reactions(db, [message.id for message in messages])

    enriched: list[MessageRead] = []
    for message in messages:
        enriched.append(
            MessageRead(
                id=message.id,
                channel_id=message.channel_id,
                conversation_id=message.conversation_id,
                user_id=message.user_id,
                user=authors.get(message.user_id) or unknown_author(message.user_id),
                parent_id=message.parent_id,
                content=message.content,
                type=message.type,
                is_edited=message.is_edited,
                reply_count=message.reply_count,
                file_url=message.file_url,
                file_name=message.file_name,
                file_mime_type=message.file_mime_type,
                file_size=message.file_size,
                created_at=message.created_at,
                updated_at=message.updated_at,
                reactions=aggregate_reactions(reactions.get(message.id, []), current_user_id),
            )
        )
    return enriched


def _item_id(item: Any) -> int:
    if isinstance(item, Mapping):
        return int(item["id"])
    return int(item.id)


def merge_feed(base: Iterable[T], polled: Iterable[T]) -> list[T]:
    """Base items in order, then polled items whose id is not yet present."""

    merged = list(base)
    seen = {_item_id(item) for item in merged}
    for item in polled:
        item_id = _item_id(item)
        if item_id in seen:
            continue
        seen.add(item_id)
        merged.append(item)
    return merged


class FeedView:
    """Client-side view of one timeline converging with the server.

    ``last_seen_id`` is the cursor for the next poll: the largest id ever
    merged into the view. It never moves backwards.
    """

    def __init__(self) -> None:
        self.items: list[Any] = []
        self.last_seen_id: int = 0

    def load_page(self, items: Iterable[Any]) -> list[Any]:
        """Merge a history page, older or newer, into the messages already held.

        Ids grow with insertion order, so the view is kept sorted by id.
        """

        self.items = sorted(merge_feed(self.items, items), key=_item_id)
        self._advance_cursor()
        return self.items

    def apply_poll(self, items: Iterable[Any]) -> list[Any]:
        """Merge a poll batch and return only the items that were new."""

        before = len(self.items)
        self.items = merge_feed(self.items, items)
        self._advance_cursor()
        return self.items[before:]

    def _advance_cursor(self) -> None:
        if self.items:
            self.last_seen_id = max(self.last_seen_id, max(_item_id(item) for item in self.items))


def compose_transcript(messages: Iterable[MessageRead]) -> str:
    lines = []
    for message in messages:
        author = message.user.name or UNKNOWN_AUTHOR_NAME
        lines.append(f"{author}: {message.content}")
    return "\n".join(lines)
