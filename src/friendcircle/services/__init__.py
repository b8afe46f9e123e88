"""Service layer entry points for the friend circle crawler."""

from __future__ import annotations

from .aggregator import CrawlOutcome, build_report, run  # noqa: F401
from .crawler import FriendCircleCrawler  # noqa: F401

__all__ = ["CrawlOutcome", "FriendCircleCrawler", "build_report", "run"]
