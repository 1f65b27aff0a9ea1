"""Shared data models for heropress_widget."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

MAX_ITEM_COUNT = 5

TITLE_FIELD = "title"
COUNT_FIELD = "essay-count"
BANNER_FIELD = "show-banner"
SHOW_TITLE_FIELD = "show-title"
AUTHOR_FIELD = "show-author"
PUBDATE_FIELD = "show-pubdate"

FLAG_FIELDS = (BANNER_FIELD, SHOW_TITLE_FIELD, AUTHOR_FIELD, PUBDATE_FIELD)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

SettingsRecord = Dict[str, Any]


def absint(value: Any) -> int:
    """Coerce form input to a non-negative integer.

    Strings contribute their leading integer ("3 items" -> 3), anything that
    does not start with a number becomes 0.
    """
    if value is None or isinstance(value, bool):
        return int(bool(value))
    if isinstance(value, int):
        return abs(value)
    if isinstance(value, float):
        return abs(int(value))
    match = _LEADING_INT.match(str(value))
    if not match:
        return 0
    return abs(int(match.group(1)))


@dataclass
class WidgetSettings:
    """Typed view over a widget instance's settings record."""

    title: str = ""
    item_count: int = MAX_ITEM_COUNT
    show_banner: bool = True
    show_title: bool = True
    show_author: bool = True
    show_pubdate: bool = True

    @classmethod
    def from_record(cls, record: Optional[Mapping[str, Any]]) -> "WidgetSettings":
        """Build settings from a stored record; a flag is on only when it is 1."""
        record = record or {}
        return cls(
            title=str(record.get(TITLE_FIELD) or ""),
            item_count=absint(record.get(COUNT_FIELD)),
            show_banner=absint(record.get(BANNER_FIELD)) == 1,
            show_title=absint(record.get(SHOW_TITLE_FIELD)) == 1,
            show_author=absint(record.get(AUTHOR_FIELD)) == 1,
            show_pubdate=absint(record.get(PUBDATE_FIELD)) == 1,
        )

    def to_record(self) -> SettingsRecord:
        return {
            TITLE_FIELD: self.title,
            COUNT_FIELD: self.item_count,
            BANNER_FIELD: int(self.show_banner),
            SHOW_TITLE_FIELD: int(self.show_title),
            AUTHOR_FIELD: int(self.show_author),
            PUBDATE_FIELD: int(self.show_pubdate),
        }


def default_settings() -> WidgetSettings:
    """Settings applied to a freshly placed widget instance."""
    return WidgetSettings()


@dataclass
class FeedItem:
    """Simplified feed entry rendered by the widget."""

    title: str
    permalink: str
    authors: List[str] = field(default_factory=list)
    published: Optional[datetime] = None
    enclosure_url: Optional[str] = None

    @property
    def author(self) -> Optional[str]:
        return self.authors[0] if self.authors else None
