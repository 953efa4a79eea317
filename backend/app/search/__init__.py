"""Search service interfaces."""

from .service import (
    GlobalSearchResult,
    MessageSearchFilters,
    MessageSearchResult,
    MessageSearchService,
)

__all__ = [
    "GlobalSearchResult",
    "MessageSearchFilters",
    "MessageSearchResult",
    "MessageSearchService",
]
