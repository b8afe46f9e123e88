"""Extraction of articles from RSS and Atom documents."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from bs4 import BeautifulSoup, Tag

from friendcircle.errors import UrlError
from friendcircle.models import ArticleRecord
from friendcircle.services.normalize import decode_entities, resolve_url
from friendcircle.services.timeparse import Clock, beijing_now, now_string, parse_feed_time

__all__ = ["extract_feed", "parse_feed_document"]

logger = logging.getLogger(__name__)

RSS_TIME_TAGS = ("pubDate", "date", "dc:date")
RSS_CONTENT_TAGS = ("content:encoded", "description")
ATOM_TIME_TAGS = RSS_TIME_TAGS + ("published", "updated")
ATOM_CONTENT_TAGS = RSS_CONTENT_TAGS + ("content", "summary")


def parse_feed_document(content: bytes | str) -> BeautifulSoup:
    return BeautifulSoup(content, "xml")


def _qualified_name(tag: Tag) -> str:
    if tag.prefix and not tag.name.startswith(f"{tag.prefix}:"):
        return f"{tag.prefix}:{tag.name}"
    return tag.name


def _child(item: Tag, name: str) -> Optional[Tag]:
    return item.find(lambda tag: _qualified_name(tag) == name, recursive=False)


def _child_text(item: Tag, name: str) -> str:
    node = _child(item, name)
    return node.get_text().strip() if node is not None else ""


def _first_time(item: Tag, names: Sequence[str]) -> str:
    for name in names:
        created = parse_feed_time(_child_text(item, name))
        if created:
            return created
    return ""


def _first_content(item: Tag, names: Sequence[str]) -> str:
    for name in names:
        content = decode_entities(_child_text(item, name))
        if content:
            return content
    return ""


def _entry_link(entry: Tag) -> str:
    text = _child_text(entry, "link")
    if text:
        return text
    for node in entry.find_all(lambda tag: _qualified_name(tag) == "link", recursive=False):
        if node.get("rel") in (None, "alternate") and node.get("href"):
            return node["href"].strip()
    return ""


def extract_feed(
    document: BeautifulSoup, feed_url: str, clock: Clock = beijing_now
) -> List[ArticleRecord]:
    """Return one record per ``item`` (or Atom ``entry``) in ``document``.

    Items whose link cannot be made absolute are skipped. No cap is applied.
    """

    items = document.find_all("item")
    time_tags, content_tags = RSS_TIME_TAGS, RSS_CONTENT_TAGS
    atom = not items
    if atom:
        items = document.find_all("entry")
        time_tags, content_tags = ATOM_TIME_TAGS, ATOM_CONTENT_TAGS

    posts = []
    for item in items:
        try:
            link = resolve_url(_entry_link(item), feed_url)
        except UrlError as exc:
            logger.debug("Skipping feed item: %s", exc)
            continue

        created = _first_time(item, time_tags) or now_string(clock)
        updated = created
        if atom:
            updated = parse_feed_time(_child_text(item, "updated")) or created
        posts.append(
            ArticleRecord(
                title=decode_entities(_child_text(item, "title")),
                link=link,
                created=created,
                updated=updated,
                content=_first_content(item, content_tags),
            )
        )
    return posts
