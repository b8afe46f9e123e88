"""Friend set assembly, concurrent post crawling and report building."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import timedelta
from itertools import chain
from typing import Callable, Iterable, List, Optional, Sequence

from friendcircle.config import CssRules, FcSettings, StaticFriend
from friendcircle.errors import FetchError, ParseError, UrlError
from friendcircle.models import AuthoredArticle, CrawlReport, Friend
from friendcircle.services.crawler import FriendCircleCrawler
from friendcircle.services.normalize import resolve_url
from friendcircle.services.timeparse import (
    Clock,
    beijing_now,
    format_timestamp,
    now_string,
    parse_timestamp,
)

__all__ = [
    "CrawlOutcome",
    "build_report",
    "collect_friends",
    "crawl_friends",
    "drop_outdated",
    "merge_friends",
    "run",
    "static_friends",
]

logger = logging.getLogger(__name__)


@dataclass
class CrawlOutcome:
    """Articles and counters gathered from every per-friend task.

    ``friends`` holds a copy of every crawled friend with ``reachable`` set
    from the outcome of its task.
    """

    articles: List[AuthoredArticle] = field(default_factory=list)
    friends: List[Friend] = field(default_factory=list)
    active_num: int = 0
    error_num: int = 0


def merge_friends(
    groups: Iterable[Iterable[Friend]],
    is_blocked: Optional[Callable[[str], bool]] = None,
) -> List[Friend]:
    """Merge friend lists into one list sorted and unique by ``link``.

    Among friends sharing a link, the one from the earliest group wins.
    """

    merged = sorted(chain.from_iterable(groups), key=lambda friend: friend.link)
    friends: List[Friend] = []
    for friend in merged:
        if friends and friends[-1].link == friend.link:
            continue
        if is_blocked is not None and is_blocked(friend.link):
            continue
        friends.append(friend)
    return friends


def static_friends(rows: Sequence[StaticFriend], discovered_at: str) -> List[Friend]:
    """Convert configured rows, resolving relative feed suffixes against the friend link."""

    friends = []
    for row in rows:
        feed = row.feed
        if feed:
            try:
                feed = resolve_url(feed, row.link)
            except UrlError as exc:
                logger.warning("Ignoring feed override for %s: %s", row.name, exc)
                feed = ""
        friends.append(
            Friend(
                name=row.name,
                link=row.link,
                avatar=row.avatar,
                discovered_at=discovered_at,
                feed=feed,
            )
        )
    return friends


def collect_friends(crawler: FriendCircleCrawler) -> List[Friend]:
    """Build the run's friend set from link pages, a JSON source and static rows.

    Link pages are crawled sequentially and finish before any post crawling.
    """

    settings = crawler.settings
    discovered = crawler.crawl_link_pages()
    logger.info("Crawled %d friends from link pages", len(discovered))

    from_json: List[Friend] = []
    configured: List[Friend] = []
    friends_links = settings.settings_friends_links
    if friends_links.enable:
        if friends_links.json_api_or_path:
            try:
                from_json = crawler.load_json_friends(friends_links.json_api_or_path)
            except (FetchError, ParseError) as exc:
                logger.warning("Failed to load friends from %s: %s", friends_links.json_api_or_path, exc)
            else:
                logger.info("Loaded %d friends from JSON source", len(from_json))
        configured = static_friends(friends_links.static_friends(), now_string(crawler.clock))

    friends = merge_friends([discovered, from_json, configured], settings.is_blocked)
    logger.info("Total friends after merging: %d", len(friends))
    return friends


def _crawl_one(crawler: FriendCircleCrawler, friend: Friend) -> List[AuthoredArticle]:
    try:
        return crawler.crawl_friend(friend)
    except (FetchError, ParseError) as exc:
        logger.error("Failed to crawl posts from %s: %s", friend.name, exc)
        return []


def crawl_friends(
    crawler: FriendCircleCrawler, friends: Sequence[Friend], max_workers: int = 10
) -> CrawlOutcome:
    """Crawl every friend on a thread pool and join all results.

    A friend counts as active when its task returned at least one article and
    as an error otherwise, including when the task raised.
    """

    outcome = CrawlOutcome()
    if not friends:
        return outcome

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [(friend, executor.submit(_crawl_one, crawler, friend)) for friend in friends]

    for friend, future in futures:
        try:
            articles = future.result()
        except Exception as exc:  # noqa: BLE001 - one friend must not abort the run
            outcome.error_num += 1
            outcome.friends.append(friend.model_copy(update={"reachable": False}))
            logger.error("Task for %s failed: %s", friend.name, exc)
            continue

        outcome.friends.append(friend.model_copy(update={"reachable": bool(articles)}))
        if articles:
            outcome.active_num += 1
            outcome.articles.extend(articles)
            logger.info("Crawled %d posts from %s", len(articles), friend.name)
        else:
            outcome.error_num += 1
            logger.warning("No posts found for %s", friend.name)
    return outcome


def drop_outdated(
    articles: Sequence[AuthoredArticle], days: int, clock: Clock = beijing_now
) -> List[AuthoredArticle]:
    """Remove articles updated more than ``days`` days ago; ``0`` keeps everything."""

    if days <= 0:
        return list(articles)

    cutoff = format_timestamp(clock() - timedelta(days=days))
    kept = [
        article
        for article in articles
        if parse_timestamp(article.meta.updated) is None or article.meta.updated >= cutoff
    ]
    if len(kept) != len(articles):
        logger.info("Dropped %d articles older than %d days", len(articles) - len(kept), days)
    return kept


def build_report(
    friends_num: int,
    outcome: CrawlOutcome,
    *,
    outdate_clean: int = 0,
    start_offset: int = 0,
    clock: Clock = beijing_now,
) -> CrawlReport:
    """Sort collected articles newest first and assemble the report."""

    articles = drop_outdated(outcome.articles, outdate_clean, clock)
    articles = sorted(articles, key=lambda article: article.meta.updated, reverse=True)
    return CrawlReport.build(
        friends_num=friends_num,
        active_num=outcome.active_num,
        error_num=outcome.error_num,
        last_updated_time=now_string(clock),
        articles=articles,
        start_offset=start_offset,
    )


def run(
    settings: FcSettings,
    css_rules: CssRules,
    *,
    crawler: FriendCircleCrawler | None = None,
    clock: Clock = beijing_now,
) -> CrawlReport:
    """Execute a full crawl and return its report."""

    crawler = crawler or FriendCircleCrawler(settings, css_rules, clock=clock)
    friends = collect_friends(crawler)

    logger.info("Starting to crawl articles")
    outcome = crawl_friends(crawler, friends, settings.max_workers)
    unreachable = [friend.link for friend in outcome.friends if not friend.reachable]
    if unreachable:
        logger.info("Unreachable friends: %s", ", ".join(unreachable))

    return build_report(
        len(friends),
        outcome,
        outdate_clean=settings.outdate_clean,
        clock=clock,
    )
