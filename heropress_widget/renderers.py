"""Rendering helpers for the widget front end and admin form."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional, Sequence

import bleach
from markupsafe import escape

from .models import (
    AUTHOR_FIELD,
    BANNER_FIELD,
    COUNT_FIELD,
    MAX_ITEM_COUNT,
    PUBDATE_FIELD,
    SHOW_TITLE_FIELD,
    TITLE_FIELD,
    FeedItem,
    WidgetSettings,
    absint,
)
from .templating import get_environment

logger = logging.getLogger(__name__)

# Tags and attributes allowed in rendered widget markup, including whatever the
# host wraps around it.
ALLOWED_TAGS = [
    "a", "aside", "div", "h1", "h2", "h3", "h4", "h5", "h6", "img",
    "li", "p", "section", "span", "ul",
]
ALLOWED_ATTRIBUTES = {
    "*": ["class", "id"],
    "a": ["class", "href", "id", "title"],
    "img": ["alt", "class", "src"],
}

FLAG_LABELS = (
    (BANNER_FIELD, "Image"),
    (SHOW_TITLE_FIELD, "Title"),
    (AUTHOR_FIELD, "Author"),
    (PUBDATE_FIELD, "Publish Date"),
)


def render_items(items: Sequence[FeedItem], settings: WidgetSettings) -> str:
    """Render feed items as an unordered list; no items renders nothing."""
    if not items:
        return ""
    template = get_environment().get_template("essays.html.j2")
    return template.render(items=items, settings=settings)


def sanitize_markup(markup: str) -> str:
    """Strip anything outside the post-content allow-list."""
    return bleach.clean(
        markup, tags=ALLOWED_TAGS, attributes=ALLOWED_ATTRIBUTES, strip=True
    )


def render_widget(
    items: Sequence[FeedItem],
    settings: WidgetSettings,
    args: Optional[Mapping[str, str]] = None,
) -> str:
    """Wrap the item list in the host's widget chrome and sanitize the result."""
    args = args or {}
    parts = [args.get("before_widget", "")]
    if settings.title:
        parts.append(args.get("before_title", ""))
        parts.append(str(escape(settings.title)))
        parts.append(args.get("after_title", ""))
    parts.append(render_items(items, settings))
    parts.append(args.get("after_widget", ""))
    return sanitize_markup("".join(parts))


def _flag_checked(value: Any) -> bool:
    if value is None or value == "":
        return True
    return absint(value) == 1


def render_form(
    record: Mapping[str, Any],
    field_id: Callable[[str], str],
    field_name: Callable[[str], str],
) -> str:
    """Render the admin settings form for one widget instance."""
    count = record.get(COUNT_FIELD)
    selected_count = None if count is None or count == "" else absint(count)
    flags = [
        {"field": field, "label": label, "checked": _flag_checked(record.get(field))}
        for field, label in FLAG_LABELS
    ]
    template = get_environment().get_template("form.html.j2")
    return template.render(
        title=record.get(TITLE_FIELD) or "",
        counts=range(1, MAX_ITEM_COUNT + 1),
        selected_count=selected_count,
        flags=flags,
        field_id=field_id,
        field_name=field_name,
    )
