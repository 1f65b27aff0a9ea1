"""The recent essays widget and its registration with a host."""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Type
from urllib.parse import parse_qs

from bs4 import BeautifulSoup

from .feeds import DEFAULT_TIMEOUT, HEROPRESS_FEED_URL, fetch_feed_items
from .models import (
    COUNT_FIELD,
    FLAG_FIELDS,
    TITLE_FIELD,
    FeedItem,
    SettingsRecord,
    WidgetSettings,
    absint,
)
from .renderers import render_form, render_widget

logger = logging.getLogger(__name__)

Fetcher = Callable[..., List[FeedItem]]


def strip_tags(value: str) -> str:
    """Remove markup from a string, keeping its text.

    Entities decoded by the parser are re-encoded so that escaped markup such
    as "&lt;b&gt;" cannot come back as a live tag.
    """
    text = BeautifulSoup(value, "html.parser").get_text()
    return text.replace("<", "&lt;").replace(">", "&gt;")


class RecentEssaysWidget:
    """Renders the most recent essays from HeroPress.com."""

    id_base = "heropress-recent-essays-widget"
    name = "HeroPress Most Recent Essay"
    description = "Renders recent essays from HeroPress.com."

    def __init__(
        self,
        feed_url: str = HEROPRESS_FEED_URL,
        timeout: float = DEFAULT_TIMEOUT,
        fetcher: Fetcher = fetch_feed_items,
    ):
        self.feed_url = feed_url
        self.timeout = timeout
        self._fetcher = fetcher

    def get_field_id(self, number: int, field: str) -> str:
        return f"widget-{self.id_base}-{number}-{field}"

    def get_field_name(self, number: int, field: str) -> str:
        return f"widget-{self.id_base}[{number}][{field}]"

    def render(
        self, record: Mapping[str, Any], args: Optional[Mapping[str, str]] = None
    ) -> str:
        """Front-end HTML for one widget instance."""
        settings = WidgetSettings.from_record(record)
        items = self._fetcher(settings, url=self.feed_url, timeout=self.timeout)
        return render_widget(items, settings, args)

    def render_form(self, record: Mapping[str, Any], number: int = 1) -> str:
        """Admin form HTML for one widget instance."""
        return render_form(
            record,
            field_id=lambda field: self.get_field_id(number, field),
            field_name=lambda field: self.get_field_name(number, field),
        )

    def update(
        self, new_record: Mapping[str, Any], old_record: Optional[Mapping[str, Any]]
    ) -> SettingsRecord:
        """Sanitize submitted form values into the record to persist."""
        record: SettingsRecord = dict(old_record or {})
        title = new_record.get(TITLE_FIELD)
        record[TITLE_FIELD] = strip_tags(str(title)) if title else ""
        record[COUNT_FIELD] = absint(new_record.get(COUNT_FIELD))
        for field in FLAG_FIELDS:
            record[field] = absint(new_record.get(field))
        logger.debug("Updated %s settings: %s", self.id_base, record)
        return record

    def parse_form_submission(self, body: str, number: int) -> Dict[str, str]:
        """Extract one instance's fields from an urlencoded admin POST body."""
        pattern = re.compile(
            r"^widget-" + re.escape(self.id_base) + r"\[" + str(number) + r"\]\[([^\]]+)\]$"
        )
        fields: Dict[str, str] = {}
        for key, values in parse_qs(body, keep_blank_values=True).items():
            match = pattern.match(key)
            if match and values:
                fields[match.group(1)] = values[-1]
        return fields


class WidgetRegistry:
    """Widget types known to a host, keyed by id_base."""

    def __init__(self) -> None:
        self._widgets: Dict[str, Any] = {}

    def register(self, widget_cls: Type[Any], **kwargs: Any) -> Any:
        id_base = widget_cls.id_base
        if id_base in self._widgets:
            raise ValueError(f"Widget already registered: {id_base}")
        widget = widget_cls(**kwargs)
        self._widgets[id_base] = widget
        logger.info("Registered widget '%s'", id_base)
        return widget

    def get(self, id_base: str) -> Any:
        try:
            return self._widgets[id_base]
        except KeyError:
            raise KeyError(f"Unknown widget: {id_base}") from None

    def __contains__(self, id_base: str) -> bool:
        return id_base in self._widgets

    def __iter__(self) -> Iterator[Any]:
        return iter(self._widgets.values())

    def __len__(self) -> int:
        return len(self._widgets)


def register_widgets(registry: WidgetRegistry, **kwargs: Any) -> RecentEssaysWidget:
    """Register the recent essays widget; called from the host's startup."""
    return registry.register(RecentEssaysWidget, **kwargs)
