"""Utility helpers for normalizing channel names."""

from __future__ import annotations

import re
import unicodedata

MAX_CHANNEL_NAME_LENGTH = 100


def normalize_channel_name(value: str) -> str:
    """Lowercase and hyphenate a channel name.

    Returns an empty string when nothing usable remains; callers decide
    whether that is an error.
    """

    normalized = unicodedata.normalize("NFKC", value).strip()
    if not normalized:
        return ""
    lowered = normalized.casefold()
    slug = re.sub(r"[^\w]+", "-", lowered, flags=re.UNICODE)
    slug = slug.replace("_", "-")
    slug = re.sub(r"-+", "-", slug).strip("-")
    if len(slug) > MAX_CHANNEL_NAME_LENGTH:
        slug = slug[:MAX_CHANNEL_NAME_LENGTH].rstrip("-")
    return slug
