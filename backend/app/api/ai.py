"""AI-assisted summaries and reply suggestions."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, require_read_access
from app.config import get_settings
from app.core.errors import UpstreamError
from app.database import get_db
from app.models import User
from app.schemas import AssistantRequest, SmartReplyRead, SummaryRead
from app.services import messages as message_store
from app.services.assistant import AssistantClient, get_assistant
from app.services.feed import compose_transcript, enrich_messages
from app.services.messages import MessageTarget

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["ai"])

settings = get_settings()


def _load_transcript(
    payload: AssistantRequest, message_count: int, user_id: int, db: Session
) -> str:
    target = MessageTarget(channel_id=payload.channel_id, conversation_id=payload.conversation_id)
    require_read_access(target, user_id, db)
    page = message_store.get_page(db, target, limit=message_count)
    return compose_transcript(enrich_messages(db, page, user_id))


@router.post("/summarize", response_model=SummaryRead)
async def summarize(
    payload: AssistantRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    assistant: AssistantClient = Depends(get_assistant),
) -> SummaryRead:
    """Summarize the latest messages of a channel or conversation."""

    count = payload.message_count or settings.summary_default_message_count
    transcript = await run_in_threadpool(_load_transcript, payload, count, current_user.id, db)
    if not transcript:
        return SummaryRead(status="empty")
    try:
        summary = await assistant.summarize(transcript)
    except UpstreamError:
        logger.warning("Summary unavailable for user %s", current_user.id)
        return SummaryRead(status="unavailable")
    return SummaryRead(status="ok", summary=summary)


@router.post("/smart-reply", response_model=SmartReplyRead)
async def smart_reply(
    payload: AssistantRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    assistant: AssistantClient = Depends(get_assistant),
) -> SmartReplyRead:
    """Suggest up to three short replies to the latest messages."""

    count = payload.message_count or settings.smart_reply_context_size
    transcript = await run_in_threadpool(_load_transcript, payload, count, current_user.id, db)
    if not transcript:
        return SmartReplyRead(status="empty")
    try:
        replies = await assistant.suggest_replies(transcript)
    except UpstreamError:
        logger.warning("Smart replies unavailable for user %s", current_user.id)
        return SmartReplyRead(status="unavailable")
    return SmartReplyRead(status="ok", replies=replies)
