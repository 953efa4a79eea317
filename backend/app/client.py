"""HTTP client that keeps a local timeline in sync by polling the feed API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from app.services.feed import FeedView

logger = logging.getLogger(__name__)


class FeedClient:
    """Loads a history page once, then merges poll batches into a :class:`FeedView`."""

    def __init__(
        self,
        client: httpx.Client,
        *,
        channel_id: int | None = None,
        conversation_id: int | None = None,
        page_size: int = 50,
    ) -> None:
        if (channel_id is None) == (conversation_id is None):
            raise ValueError("Provide exactly one of channel_id or conversation_id")
        self._client = client
        self._target = (
            {"channel_id": channel_id}
            if channel_id is not None
            else {"conversation_id": conversation_id}
        )
        self.page_size = page_size
        self.view = FeedView()

    def _get(self, path: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        response = self._client.get(path, params={**self._target, **params})
        response.raise_for_status()
        return response.json()

    def load(self) -> list[dict[str, Any]]:
        page = self._get("/api/messages", {"limit": self.page_size})
        items = self.view.load_page(page)
        logger.debug("Loaded %s messages, cursor at %s", len(page), self.view.last_seen_id)
        return items

    def load_older(self) -> list[dict[str, Any]]:
        """Fetch the page preceding the oldest message held."""

        if not self.view.items:
            return self.load()
        oldest = min(int(item["id"]) for item in self.view.items)
        page = self._get("/api/messages", {"limit": self.page_size, "before": oldest})
        return self.view.load_page(page)

    def poll(self) -> list[dict[str, Any]]:
        """Return the messages that were not in the view before this poll."""

        batch = self._get("/api/messages/poll", {"after": self.view.last_seen_id})
        fresh = self.view.apply_poll(batch)
        if fresh:
            logger.debug("Received %s new messages, cursor at %s", len(fresh), self.view.last_seen_id)
        return fresh
