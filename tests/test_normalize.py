from __future__ import annotations

import pytest

from friendcircle.errors import UrlError
from friendcircle.services.normalize import clean_time_string, decode_entities, resolve_url

from support import FIXED_NOW_STRING, fixed_clock


def test_decode_entities_replaces_named_entities() -> None:
    text = "&lt;b&gt;Tom &amp; Jerry&lt;/b&gt; said &quot;hi&quot; &#39;twice&#39;"

    assert decode_entities(text) == "<b>Tom & Jerry</b> said \"hi\" 'twice'"


def test_decode_entities_leaves_numeric_entities() -> None:
    assert decode_entities("a&#160;b &#x27;") == "a&#160;b &#x27;"


def test_decode_entities_is_idempotent_without_entities() -> None:
    text = "plain <b>text</b> & more"

    assert decode_entities(decode_entities(text)) == decode_entities(text) == text


@pytest.mark.parametrize(
    "candidate",
    ["https://other.example.com/post/", "http://plain.example.com/?a=1"],
)
def test_resolve_url_keeps_absolute_urls(candidate: str) -> None:
    assert resolve_url(candidate, "not a base url") == candidate


def test_resolve_url_joins_relative_paths() -> None:
    base = "https://blog.example.com/archives/"

    assert resolve_url("/posts/1/", base) == "https://blog.example.com/posts/1/"
    assert resolve_url("posts/2/", base) == "https://blog.example.com/archives/posts/2/"
    assert resolve_url("//cdn.example.com/a.png", base) == "https://cdn.example.com/a.png"


def test_resolve_url_rejects_relative_base() -> None:
    with pytest.raises(UrlError):
        resolve_url("/posts/1/", "blog.example.com/archives")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2024-01-05", "2024-01-05 00:00:00"),
        ("  2023-12-31 10:20  ", "2023-12-31 00:00:00"),
        ("2024年01月05日", "2024-01-05 00:00:00"),
        ("2024/1/5", "2024/1/5"),
        ("24-1-5 9", "24-1-5-9"),
    ],
)
def test_clean_time_string(raw: str, expected: str) -> None:
    assert clean_time_string(raw, fixed_clock) == expected


@pytest.mark.parametrize("raw", ["", "  ", "Jan 5", "::"])
def test_clean_time_string_falls_back_to_now(raw: str) -> None:
    assert clean_time_string(raw, fixed_clock) == FIXED_NOW_STRING
