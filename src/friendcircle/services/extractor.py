"""Theme-based extraction of friends and posts from HTML pages.

Rule-sets are tried in configuration order and the first one whose primary
selector matches anything is used exclusively. Its selectors are evaluated
independently and the resulting node lists are zipped by position, so the
i-th title is paired with the i-th link and the i-th date. Pages whose
markup yields lists of different lengths get default values in the gaps
and may pair fields from different entries.
"""

from __future__ import annotations

import logging
from typing import List, Mapping, Optional, Sequence, Tuple, TypeVar

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from friendcircle.config import LinkPageRule, PostPageRule
from friendcircle.errors import UrlError
from friendcircle.models import ArticleRecord, Friend
from friendcircle.services.normalize import clean_time_string, decode_entities, resolve_url
from friendcircle.services.timeparse import Clock, beijing_now, now_string

__all__ = ["extract_friends", "extract_posts", "match_rule_set"]

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"
AVATAR_ATTRIBUTES = ("src", "data-lazy-src", "data-src")

RuleT = TypeVar("RuleT", LinkPageRule, PostPageRule)


def _select(document: BeautifulSoup | Tag, selector: str) -> List[Tag]:
    try:
        return document.select(selector)
    except SelectorSyntaxError as exc:
        logger.warning("Invalid selector %r: %s", selector, exc)
        return []


def match_rule_set(
    document: BeautifulSoup, rule_sets: Mapping[str, RuleT], primary: str
) -> Optional[Tuple[str, RuleT, List[Tag]]]:
    """Return the first ``(theme, rules, nodes)`` whose ``primary`` selector matches."""

    for theme, rules in rule_sets.items():
        nodes = _select(document, getattr(rules, primary))
        if nodes:
            return theme, rules, nodes
    return None


def _texts(nodes: Sequence[Tag]) -> List[Optional[str]]:
    return [decode_entities(node.get_text().strip()) for node in nodes]


def _urls(nodes: Sequence[Tag], attributes: Sequence[str], base_url: str) -> List[Optional[str]]:
    urls: List[Optional[str]] = []
    for node in nodes:
        value = next((node.get(name) for name in attributes if node.get(name)), None)
        if not value:
            urls.append(None)
            continue
        try:
            urls.append(resolve_url(value, base_url))
        except UrlError as exc:
            logger.debug("Dropping unresolvable URL: %s", exc)
            urls.append(None)
    return urls


def _span(*columns: Sequence[Optional[str]]) -> int:
    """Number of records: the longest column, counting only cells that hold a value."""

    return max(sum(1 for value in column if value is not None) for column in columns)


def _at(values: Sequence[Optional[str]], index: int, default: str) -> str:
    if index < len(values) and values[index] is not None:
        return values[index]
    return default


def extract_friends(
    document: BeautifulSoup,
    base_url: str,
    rule_sets: Mapping[str, LinkPageRule],
    clock: Clock = beijing_now,
) -> List[Friend]:
    """Extract friend entries from a link page."""

    matched = match_rule_set(document, rule_sets, "author")
    if matched is None:
        logger.info("No link page theme matched %s", base_url)
        return []

    theme, rules, author_nodes = matched
    logger.debug("Link page %s matched theme %s", base_url, theme)

    names = _texts(author_nodes)
    links = _urls(_select(document, rules.link), ("href",), base_url)
    avatars = _urls(_select(document, rules.avatar), AVATAR_ATTRIBUTES, base_url)
    discovered_at = now_string(clock)

    return [
        Friend(
            name=_at(names, index, UNKNOWN),
            link=_at(links, index, base_url),
            avatar=_at(avatars, index, ""),
            discovered_at=discovered_at,
        )
        for index in range(_span(names, links, avatars))
    ]


def extract_posts(
    document: BeautifulSoup,
    base_url: str,
    rule_sets: Mapping[str, PostPageRule],
    max_count: int = 0,
    clock: Clock = beijing_now,
) -> List[ArticleRecord]:
    """Extract article entries from a blog's HTML page.

    When ``max_count`` is positive the result is truncated to that many
    records, keeping page order.
    """

    matched = match_rule_set(document, rule_sets, "title")
    if matched is None:
        logger.info("No post page theme matched %s", base_url)
        return []

    theme, rules, title_nodes = matched
    logger.debug("Post page %s matched theme %s", base_url, theme)

    titles = _texts(title_nodes)
    links = _urls(_select(document, rules.link), ("href",), base_url)
    dates: List[Optional[str]] = [
        clean_time_string(node.get_text().strip(), clock) for node in _select(document, rules.created)
    ]

    posts = []
    for index in range(_span(titles, links, dates)):
        created = _at(dates, index, "") or now_string(clock)
        posts.append(
            ArticleRecord(
                title=_at(titles, index, UNKNOWN),
                link=_at(links, index, base_url),
                created=created,
                updated=created,
            )
        )

    if max_count > 0:
        posts = posts[:max_count]
    return posts
