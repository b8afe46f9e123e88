"""Friend circle crawler package exposing configuration, models and services."""

from __future__ import annotations

from .config import CssRules, FcSettings  # noqa: F401
from .models import CrawlReport, Friend  # noqa: F401

__all__ = ["CrawlReport", "CssRules", "FcSettings", "Friend"]
