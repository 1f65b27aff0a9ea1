import types

import pytest
import requests

from heropress_widget import feeds
from heropress_widget.widget import (
    RecentEssaysWidget,
    WidgetRegistry,
    register_widgets,
    strip_tags,
)


def _widget_with_items(items):
    captured = {}

    def fetcher(settings, url, timeout):
        captured.update(settings=settings, url=url, timeout=timeout)
        return items[: feeds.resolve_item_limit(settings)]

    return RecentEssaysWidget(fetcher=fetcher), captured


def test_update_strips_markup_from_title():
    record = RecentEssaysWidget().update({"title": "<b>Hi</b>"}, {})

    assert record["title"] == "Hi"


def test_update_keeps_escaped_markup_escaped():
    record = RecentEssaysWidget().update({"title": "&lt;b&gt;Hi&lt;/b&gt; &amp; more"}, {})

    assert "<" not in record["title"]
    assert record["title"] == "&lt;b&gt;Hi&lt;/b&gt; & more"


def test_update_coerces_counts_and_flags():
    record = RecentEssaysWidget().update(
        {
            "title": "",
            "essay-count": "3",
            "show-banner": "1",
            "show-title": "yes",
            "show-pubdate": "1",
        },
        {"title": "Old"},
    )

    assert record == {
        "title": "",
        "essay-count": 3,
        "show-banner": 1,
        "show-title": 0,
        "show-author": 0,
        "show-pubdate": 1,
    }


@pytest.mark.parametrize("submitted, stored", [("9", 9), ("0", 0), ("-2", 2)])
def test_update_does_not_clamp_item_count(submitted, stored):
    record = RecentEssaysWidget().update({"essay-count": submitted}, {})

    assert record["essay-count"] == stored


def test_update_keeps_unrelated_keys_from_old_record():
    record = RecentEssaysWidget().update({}, {"legacy": "value"})

    assert record["legacy"] == "value"


def test_strip_tags_keeps_text():
    assert strip_tags("<p>Hello <em>there</em></p>") == "Hello there"


def test_render_uses_settings_from_record(sample_items):
    widget, captured = _widget_with_items(sample_items)

    html = widget.render({"title": "Latest", "essay-count": 2, "show-title": 1})

    assert captured["url"] == "http://heropress.com/essays/feed/"
    assert captured["settings"].item_count == 2
    assert html.count("<li>") == 2
    assert "Latest" in html
    assert "<img" not in html
    assert ">Essay 1</a>" in html


def test_render_with_fetch_failure_renders_empty_string(monkeypatch):
    def failing_get(url, timeout=None):
        raise requests.Timeout("timed out")

    monkeypatch.setattr(feeds.requests, "get", failing_get)

    html = RecentEssaysWidget().render({"essay-count": 5, "show-title": 1})

    assert html == ""


def test_render_with_unavailable_feed_still_shows_chrome(monkeypatch):
    monkeypatch.setattr(
        feeds.requests,
        "get",
        lambda url, timeout=None: types.SimpleNamespace(
            content=b"", raise_for_status=lambda: None
        ),
    )
    monkeypatch.setattr(
        feeds.feedparser,
        "parse",
        lambda content: types.SimpleNamespace(entries=[], bozo=True, bozo_exception="x"),
    )

    html = RecentEssaysWidget().render(
        {"title": "Essays"},
        {"before_title": "<h2>", "after_title": "</h2>"},
    )

    assert html == "<h2>Essays</h2>"


def test_render_form_uses_instance_field_names():
    html = RecentEssaysWidget().render_form({}, number=4)

    assert 'id="widget-heropress-recent-essays-widget-4-title"' in html
    assert 'name="widget-heropress-recent-essays-widget[4][show-author]"' in html


def test_parse_form_submission_extracts_one_instance():
    body = (
        "widget-heropress-recent-essays-widget%5B2%5D%5Btitle%5D=Recent"
        "&widget-heropress-recent-essays-widget%5B2%5D%5Bessay-count%5D=4"
        "&widget-heropress-recent-essays-widget%5B2%5D%5Bshow-title%5D=1"
        "&widget-heropress-recent-essays-widget%5B3%5D%5Btitle%5D=Other"
        "&widget-id=heropress-recent-essays-widget-2"
    )

    fields = RecentEssaysWidget().parse_form_submission(body, 2)

    assert fields == {"title": "Recent", "essay-count": "4", "show-title": "1"}


def test_submitted_form_round_trips_through_update():
    widget = RecentEssaysWidget()
    body = (
        "widget-heropress-recent-essays-widget%5B1%5D%5Btitle%5D=%3Cb%3EHi%3C%2Fb%3E"
        "&widget-heropress-recent-essays-widget%5B1%5D%5Bessay-count%5D=2"
    )

    record = widget.update(widget.parse_form_submission(body, 1), {})

    assert record["title"] == "Hi"
    assert record["essay-count"] == 2
    assert record["show-banner"] == 0


def test_register_widgets_adds_widget_once():
    registry = WidgetRegistry()

    widget = register_widgets(registry, timeout=2.5)

    assert "heropress-recent-essays-widget" in registry
    assert registry.get("heropress-recent-essays-widget") is widget
    assert widget.timeout == 2.5
    assert list(registry) == [widget]

    with pytest.raises(ValueError):
        register_widgets(registry)


def test_registry_get_unknown_widget_raises():
    with pytest.raises(KeyError):
        WidgetRegistry().get("missing")


def test_new_registry_is_empty():
    assert len(WidgetRegistry()) == 0
