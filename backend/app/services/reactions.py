"""Emoji reactions: atomic toggle and tallies derived from reaction rows."""

from __future__ import annotations

import logging
from typing import Iterable, Literal

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models import Message, Reaction
from app.schemas.messages import MessageReactionSummary

logger = logging.getLogger(__name__)

MAX_TOGGLE_ATTEMPTS = 3

ToggleAction = Literal["added", "removed"]


def toggle_reaction(db: Session, message_id: int, user_id: int, emoji: str) -> ToggleAction:
    """Remove the user's reaction if present, otherwise add it."""

    emoji = (emoji or "").strip()
    if not emoji:
        raise ValidationError("Emoji is required")
    if len(emoji) > 64:
        raise ValidationError("Emoji is too long")
    if db.get(Message, message_id) is None:
        raise NotFoundError("Message not found")

    for attempt in range(1, MAX_TOGGLE_ATTEMPTS + 1):
        removed = db.execute(
            delete(Reaction).where(
                Reaction.message_id == message_id,
                Reaction.user_id == user_id,
                Reaction.emoji == emoji,
            )
        )
        if removed.rowcount:
            db.commit()
            return "removed"

        db.add(Reaction(message_id=message_id, user_id=user_id, emoji=emoji))
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(
                "Concurrent reaction toggle on message %s (attempt %s)", message_id, attempt
            )
            continue
        return "added"

    raise ConflictError("Reaction is being modified concurrently, try again")


def load_reactions(db: Session, message_ids: Iterable[int]) -> dict[int, list[Reaction]]:
    """Reaction rows grouped by message, in reaction order."""

    ids = list(message_ids)
    grouped: dict[int, list[Reaction]] = {message_id: [] for message_id in ids}
    if not ids:
        return grouped
    stmt = (
        select(Reaction)
        .where(Reaction.message_id.in_(ids))
        .order_by(Reaction.created_at.asc(), Reaction.id.asc())
    )
    for reaction in db.execute(stmt).scalars():
        grouped[reaction.message_id].append(reaction)
    return grouped


def aggregate_reactions(
    rows: Iterable[Reaction], current_user_id: int | None = None
) -> list[MessageReactionSummary]:
    buckets: dict[str, list[int]] = {}
    for row in rows:
        buckets.setdefault(row.emoji, []).append(row.user_id)
    return [
        MessageReactionSummary(
            emoji=emoji,
            count=len(user_ids),
            user_ids=user_ids,
            reacted=current_user_id is not None and current_user_id in user_ids,
        )
        for emoji, user_ids in buckets.items()
    ]
