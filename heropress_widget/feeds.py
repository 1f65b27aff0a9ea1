"""Feed fetching for the recent essays widget."""

from __future__ import annotations

import calendar
import logging
import time
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence

import feedparser
import requests

from .models import MAX_ITEM_COUNT, FeedItem, WidgetSettings

logger = logging.getLogger(__name__)

HEROPRESS_FEED_URL = "http://heropress.com/essays/feed/"
DEFAULT_TIMEOUT = 10.0

_IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg")


class FeedUnavailable(Exception):
    """Raised when the remote feed cannot be fetched or parsed."""


def to_datetime(value: Optional[time.struct_time]) -> Optional[datetime]:
    """Convert feedparser's UTC struct_time to an aware datetime."""
    if value is None:
        return None
    return datetime.fromtimestamp(calendar.timegm(value), tz=timezone.utc)


def _get(entry: Any, key: str, default: Any = None) -> Any:
    if isinstance(entry, dict):
        return entry.get(key, default)
    return getattr(entry, key, default)


def _entry_authors(entry: Any) -> List[str]:
    names = []
    for author in _get(entry, "authors") or []:
        name = _get(author, "name")
        if name:
            names.append(name)
    if not names:
        single = _get(entry, "author")
        if single:
            names.append(single)
    return names


def _looks_like_image(enclosure: Any) -> bool:
    kind = _get(enclosure, "type") or _get(enclosure, "medium") or ""
    if kind.startswith("image"):
        return True
    url = (_get(enclosure, "href") or _get(enclosure, "url") or "").lower()
    return url.split("?", 1)[0].endswith(_IMAGE_EXTENSIONS)


def _entry_enclosure(entry: Any) -> Optional[str]:
    """Return the URL of the entry's first (preferably image) enclosure."""
    for key in ("enclosures", "media_content", "media_thumbnail"):
        candidates = [c for c in _get(entry, key) or [] if _get(c, "href") or _get(c, "url")]
        if not candidates:
            continue
        chosen = next((c for c in candidates if _looks_like_image(c)), candidates[0])
        return _get(chosen, "href") or _get(chosen, "url")
    return None


def _entry_published(entry: Any) -> Optional[datetime]:
    for attr in ("published_parsed", "updated_parsed", "created_parsed"):
        value = _get(entry, attr)
        if value:
            return to_datetime(value)
    return None


def to_feed_item(entry: Any) -> FeedItem:
    """Convert a feedparser entry into a FeedItem."""
    return FeedItem(
        title=_get(entry, "title") or "",
        permalink=_get(entry, "link") or "",
        authors=_entry_authors(entry),
        published=_entry_published(entry),
        enclosure_url=_entry_enclosure(entry),
    )


class FeedHandle:
    """Parsed feed with positional access to its items."""

    def __init__(self, url: str, entries: Sequence[Any]):
        self.url = url
        self._entries = list(entries)

    def get_item_quantity(self, limit: int = 0) -> int:
        """Number of available items, capped at limit (0 means no cap)."""
        total = len(self._entries)
        if limit <= 0:
            return total
        return min(limit, total)

    def get_items(self, start: int = 0, length: int = 0) -> List[FeedItem]:
        """Items in feed order starting at start; length 0 means all remaining."""
        end = None if length <= 0 else start + length
        return [to_feed_item(entry) for entry in self._entries[start:end]]


def fetch_feed(url: str, timeout: float = DEFAULT_TIMEOUT) -> FeedHandle:
    """Download and parse a feed, raising FeedUnavailable on failure."""
    logger.info("Fetching feed %s", url)
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise FeedUnavailable(f"Failed to fetch feed {url}: {exc}") from exc

    parsed = feedparser.parse(response.content)
    entries = getattr(parsed, "entries", None) or []
    if getattr(parsed, "bozo", False) and not entries:
        reason = getattr(parsed, "bozo_exception", "malformed feed")
        raise FeedUnavailable(f"Failed to parse feed {url}: {reason}")

    logger.debug("Parsed %d entries from %s", len(entries), url)
    return FeedHandle(url, entries)


def resolve_item_limit(settings: WidgetSettings) -> int:
    """Clamp the configured item count to [1, MAX_ITEM_COUNT]; 0 means the maximum."""
    count = settings.item_count
    if count <= 0:
        return MAX_ITEM_COUNT
    return min(count, MAX_ITEM_COUNT)


def fetch_feed_items(
    settings: WidgetSettings,
    url: str = HEROPRESS_FEED_URL,
    timeout: float = DEFAULT_TIMEOUT,
) -> List[FeedItem]:
    """Return up to the configured number of items, or [] if the feed is unavailable."""
    limit = resolve_item_limit(settings)
    try:
        handle = fetch_feed(url, timeout=timeout)
    except FeedUnavailable as exc:
        logger.warning("%s", exc)
        return []

    quantity = handle.get_item_quantity(limit)
    items = handle.get_items(0, quantity)
    logger.info("Selected %d items from %s (requested %d)", len(items), url, limit)
    return items
