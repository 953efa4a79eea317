"""Typed failures raised by the chat services."""

from __future__ import annotations

from fastapi import status


class ChatError(Exception):
    """Base class for service failures with the HTTP status used to surface them."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ValidationError(ChatError):
    """Malformed input; nothing was changed."""

    status_code = status.HTTP_400_BAD_REQUEST


class PermissionDeniedError(ChatError):
    """The caller may not access the referenced channel, conversation or message."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ChatError):
    """A referenced entity does not exist where the operation requires it."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ChatError):
    """A uniqueness violation that cannot be absorbed."""

    status_code = status.HTTP_409_CONFLICT


class UpstreamError(ChatError):
    """An external collaborator (language model, object storage) is unavailable."""

    status_code = status.HTTP_502_BAD_GATEWAY
