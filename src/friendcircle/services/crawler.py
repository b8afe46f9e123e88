"""Fetching and per-source strategy selection for friends and their posts."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List

import requests
from bs4 import BeautifulSoup
from requests.adapters import HTTPAdapter

from friendcircle.config import CssRules, FcSettings
from friendcircle.errors import FetchError, ParseError
from friendcircle.models import ArticleRecord, AuthoredArticle, Friend
from friendcircle.services.extractor import extract_friends, extract_posts
from friendcircle.services.feed import extract_feed, parse_feed_document
from friendcircle.services.timeparse import Clock, beijing_now, now_string

__all__ = ["DEFAULT_HEADERS", "FriendCircleCrawler", "build_session", "is_feed_url"]

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/129.0.0.0 Safari/537.36"
    ),
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,"
        "application/rss+xml,application/atom+xml,*/*;q=0.8"
    ),
    "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
    "Connection": "keep-alive",
}


def build_session(pool_size: int = 10) -> requests.Session:
    """Return a session whose connection pool can serve ``pool_size`` workers.

    Requests are never retried.
    """

    session = requests.Session()
    session.headers.update(DEFAULT_HEADERS)
    adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size, max_retries=0)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def is_feed_url(link: str) -> bool:
    """Return ``True`` when ``link`` looks like an RSS or Atom document."""

    return link.endswith((".xml", ".rss")) or "feed" in link


def _friends_from_payload(payload: Any, discovered_at: str) -> List[Friend]:
    entries = payload.get("friends") if isinstance(payload, dict) else payload
    if not isinstance(entries, list):
        raise ParseError("JSON friend source must be a list or contain a 'friends' list")

    friends = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        name, link = entry.get("name"), entry.get("link")
        if not isinstance(name, str) or not isinstance(link, str):
            continue
        avatar = entry.get("avatar")
        friends.append(
            Friend(
                name=name,
                link=link,
                avatar=avatar if isinstance(avatar, str) else "",
                discovered_at=discovered_at,
            )
        )
    return friends


class FriendCircleCrawler:
    """Crawls link pages, JSON friend lists and each friend's posts.

    One instance is shared by every worker thread; it holds only read-only
    settings, rules and the HTTP session.
    """

    def __init__(
        self,
        settings: FcSettings,
        css_rules: CssRules,
        session: requests.Session | None = None,
        clock: Clock = beijing_now,
    ) -> None:
        self._settings = settings
        self._css_rules = css_rules
        self._session = session or build_session(settings.max_workers)
        self._clock = clock

    @property
    def settings(self) -> FcSettings:
        return self._settings

    @property
    def clock(self) -> Clock:
        return self._clock

    def fetch(self, url: str) -> bytes:
        """Return the body of ``url`` or raise :class:`FetchError`."""

        try:
            response = self._session.get(url, timeout=self._settings.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise FetchError(url, exc) from exc
        return response.content

    def crawl_link_page(self, link_page: str) -> List[Friend]:
        """Fetch one link page and extract the friends it lists."""

        document = BeautifulSoup(self.fetch(link_page), "lxml")
        return extract_friends(document, link_page, self._css_rules.link_page_rules, self._clock)

    def crawl_link_pages(self) -> List[Friend]:
        """Discover friends from every configured link page, one page at a time.

        A page that cannot be fetched contributes no friends; blocked friends
        are dropped.
        """

        if not self._settings.enable_link_page:
            return []

        friends: List[Friend] = []
        for link_page in self._settings.link_page_urls:
            try:
                discovered = self.crawl_link_page(link_page)
            except FetchError as exc:
                logger.warning("Failed to crawl link page %s: %s", link_page, exc)
                continue
            allowed = [friend for friend in discovered if not self._settings.is_blocked(friend.link)]
            logger.info(
                "Found %d friends on %s (%d blocked)",
                len(allowed),
                link_page,
                len(discovered) - len(allowed),
            )
            friends.extend(allowed)
        return friends

    def load_json_friends(self, source: str) -> List[Friend]:
        """Load friends from a JSON URL or a local JSON file."""

        if source.startswith("http"):
            raw = self.fetch(source)
        else:
            try:
                raw = Path(source).read_bytes()
            except OSError as exc:
                raise FetchError(source, exc) from exc

        try:
            payload = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ParseError(f"Invalid JSON in friend source: {source}") from exc
        return _friends_from_payload(payload, now_string(self._clock))

    def crawl_feed(self, feed_url: str) -> List[ArticleRecord]:
        document = parse_feed_document(self.fetch(feed_url))
        return extract_feed(document, feed_url, self._clock)

    def crawl_post_page(self, link: str, feed_url: str = "") -> List[ArticleRecord]:
        """Collect the posts of one blog.

        An explicit ``feed_url`` wins; otherwise ``link`` is read as a feed
        when it looks like one, and as an HTML page matched against the post
        page themes when it does not. Only HTML results are capped.
        """

        if self._settings.is_blocked(link):
            logger.info("Skipping blocked site %s", link)
            return []

        if feed_url:
            return self.crawl_feed(feed_url)
        if is_feed_url(link):
            return self.crawl_feed(link)

        document = BeautifulSoup(self.fetch(link), "lxml")
        return extract_posts(
            document,
            link,
            self._css_rules.post_page_rules,
            self._settings.max_posts_num,
            self._clock,
        )

    def crawl_friend(self, friend: Friend) -> List[AuthoredArticle]:
        """Crawl one friend's posts and attribute them to that friend."""

        records = self.crawl_post_page(friend.link, friend.feed)
        recorded_at = now_string(self._clock)
        return [AuthoredArticle.from_friend(record, friend, recorded_at) for record in records]
