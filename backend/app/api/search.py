"""Global search endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.database import get_db
from app.models import User
from app.schemas import ChannelRead, SearchResults
from app.search import MessageSearchFilters, MessageSearchService
from app.services.feed import enrich_messages, public_user

router = APIRouter(prefix="/search", tags=["search"])


@router.get("", response_model=SearchResults)
def search(
    query: str = Query(..., min_length=1, max_length=200),
    channel_id: int | None = Query(default=None),
    from_user_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> SearchResults:
    """Search messages the caller can read, plus channel and user directories."""

    filters = MessageSearchFilters(channel_id=channel_id, author_id=from_user_id)
    result = MessageSearchService(db).global_search(current_user.id, query, filters=filters)
    return SearchResults(
        messages=enrich_messages(db, result.messages, current_user.id),
        channels=[ChannelRead.model_validate(channel) for channel in result.channels],
        users=[public_user(user) for user in result.users],
    )
