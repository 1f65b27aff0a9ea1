import pytest

from heropress_widget.models import WidgetSettings, absint, default_settings


@pytest.mark.parametrize(
    "value, expected",
    [
        ("3", 3),
        ("-4", 4),
        ("2.7", 2),
        ("7 essays", 7),
        ("abc", 0),
        ("", 0),
        (None, 0),
        (True, 1),
        (-9, 9),
        (1.9, 1),
    ],
)
def test_absint_coerces_to_non_negative_int(value, expected):
    assert absint(value) == expected


def test_default_settings_show_everything():
    settings = default_settings()

    assert settings.title == ""
    assert settings.item_count == 5
    assert settings.show_banner and settings.show_title
    assert settings.show_author and settings.show_pubdate


def test_from_record_treats_only_one_as_enabled():
    settings = WidgetSettings.from_record(
        {
            "title": "Recent",
            "essay-count": "3",
            "show-banner": "1",
            "show-title": 2,
            "show-author": 0,
        }
    )

    assert settings.title == "Recent"
    assert settings.item_count == 3
    assert settings.show_banner is True
    assert settings.show_title is False
    assert settings.show_author is False
    assert settings.show_pubdate is False


def test_record_conversion_keeps_values():
    settings = WidgetSettings(title="T", item_count=2, show_author=False)

    record = settings.to_record()

    assert record == {
        "title": "T",
        "essay-count": 2,
        "show-banner": 1,
        "show-title": 1,
        "show-author": 0,
        "show-pubdate": 1,
    }
    assert WidgetSettings.from_record(record) == settings
