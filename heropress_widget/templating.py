"""Jinja2 environment for heropress_widget templates."""

from __future__ import annotations

from datetime import datetime
from importlib import resources
from urllib.parse import quote, urlsplit

from jinja2 import Environment, FileSystemLoader, select_autoescape

_ENV: Environment | None = None

ALLOWED_URL_SCHEMES = ("http", "https")

# Characters left as-is when percent-encoding a URL.
_URL_SAFE_CHARS = ":/?#[]@!$&'()*+,;=%~"


def _safe_url(value: str | None) -> str:
    """Return the URL percent-encoded if its scheme is allowed, otherwise ""."""
    if not value:
        return ""
    url = "".join(ch for ch in value.strip() if ch.isprintable())
    if not url:
        return ""
    try:
        scheme = urlsplit(url).scheme
    except ValueError:
        return ""
    if scheme and scheme.lower() not in ALLOWED_URL_SCHEMES:
        return ""
    return quote(url, safe=_URL_SAFE_CHARS)


def _pubdate(value: datetime | None) -> str:
    """Format a publish date as "4 March 2021"."""
    if value is None:
        return ""
    return f"{value.day} {value:%B} {value.year}"


def get_environment() -> Environment:
    """Return a cached Jinja environment configured for package templates."""
    global _ENV
    if _ENV is None:
        template_dir = resources.files(__package__) / "templates"
        loader = FileSystemLoader(str(template_dir))
        _ENV = Environment(
            loader=loader,
            autoescape=select_autoescape(["html", "html.j2", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        _ENV.filters["safe_url"] = _safe_url
        _ENV.filters["pubdate"] = _pubdate
    return _ENV
