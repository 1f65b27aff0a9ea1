import logging
from datetime import datetime, timezone

import pytest

from heropress_widget.models import FeedItem


def make_item(number: int = 1, **overrides) -> FeedItem:
    values = {
        "title": f"Essay {number}",
        "permalink": f"https://heropress.com/essays/{number}/",
        "authors": [f"Author {number}"],
        "published": datetime(2021, 3, number, tzinfo=timezone.utc),
        "enclosure_url": f"https://heropress.com/images/{number}.png",
    }
    values.update(overrides)
    return FeedItem(**values)


@pytest.fixture
def sample_items():
    return [make_item(n) for n in range(1, 6)]


@pytest.fixture
def test_essay():
    return FeedItem(
        title="Test Essay",
        permalink="https://x/1",
        authors=["Jane"],
        published=datetime(2021, 3, 4, tzinfo=timezone.utc),
        enclosure_url="https://x/1.png",
    )


@pytest.fixture
def restore_root_logger():
    """Put the root logger's handlers back after a test reconfigures logging."""
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    try:
        yield root
    finally:
        for handler in root.handlers[:]:
            root.removeHandler(handler)
            handler.close()
        for handler in original_handlers:
            root.addHandler(handler)
        root.setLevel(original_level)
