"""Text, URL and date-string cleanup shared by the extractors."""

from __future__ import annotations

import re
from urllib.parse import urljoin, urlparse

from friendcircle.errors import UrlError
from friendcircle.services.timeparse import Clock, beijing_now, now_string

__all__ = ["clean_time_string", "decode_entities", "resolve_url"]

# Only the five named entities; numeric references are left alone.
_ENTITIES = (
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&amp;", "&"),
    ("&quot;", '"'),
    ("&#39;", "'"),
)

_TIME_SEPARATORS = re.compile(r"[\s:：]+")


def decode_entities(text: str) -> str:
    """Replace the standard named HTML entities in ``text``."""

    for entity, char in _ENTITIES:
        text = text.replace(entity, char)
    return text


def resolve_url(candidate: str, base_url: str) -> str:
    """Return ``candidate`` as an absolute URL, joining it onto ``base_url`` if needed."""

    if candidate.startswith(("http://", "https://")):
        return candidate

    parsed_base = urlparse(base_url)
    if parsed_base.scheme not in {"http", "https"} or not parsed_base.netloc:
        raise UrlError(f"Cannot resolve {candidate!r}: base {base_url!r} is not an absolute URL")

    try:
        return urljoin(base_url, candidate.strip())
    except ValueError as exc:
        raise UrlError(f"Cannot resolve {candidate!r} against {base_url!r}") from exc


def clean_time_string(raw: str, clock: Clock = beijing_now) -> str:
    """Best-effort normalization of a date scraped from page text.

    Whitespace and colons become single ``-`` separators. Ten or more
    characters are read as ``YYYY?MM?DD`` and formatted as midnight of that
    day; eight or nine characters are returned as cleaned; anything shorter
    falls back to the current time.
    """

    cleaned = _TIME_SEPARATORS.sub("-", raw).strip("-")

    if len(cleaned) >= 10:
        return f"{cleaned[0:4]}-{cleaned[5:7]}-{cleaned[8:10]} 00:00:00"
    if len(cleaned) >= 8:
        return cleaned
    return now_string(clock)
