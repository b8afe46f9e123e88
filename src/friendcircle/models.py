"""Domain models used across the application."""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

from pydantic import BaseModel, ConfigDict, Field


class Friend(BaseModel):
    """A blog in the circle, identified by its ``link``."""

    model_config = ConfigDict(frozen=True)

    name: str
    link: str
    avatar: str = ""
    reachable: bool = True
    discovered_at: str = ""
    feed: str = Field(default="", description="Explicit feed location overriding detection")


class ArticleRecord(BaseModel):
    """Normalized article metadata extracted from a page or feed."""

    title: str
    link: str
    created: str
    updated: str
    content: str = ""


class AuthoredArticle(BaseModel):
    """An :class:`ArticleRecord` joined with the friend that published it."""

    meta: ArticleRecord
    author: str
    avatar: str = ""
    recorded_at: str = ""

    @classmethod
    def from_friend(
        cls, record: ArticleRecord, friend: Friend, recorded_at: str
    ) -> "AuthoredArticle":
        return cls(meta=record, author=friend.name, avatar=friend.avatar, recorded_at=recorded_at)


class ArticleData(BaseModel):
    """One ranked article in the output report."""

    floor: int
    title: str
    created: str
    updated: str
    link: str
    author: str
    avatar: str
    content: str


class StatisticalData(BaseModel):
    """Counters summarising a crawl run."""

    friends_num: int
    active_num: int
    error_num: int
    article_num: int
    last_updated_time: str


class CrawlReport(BaseModel):
    """Final output of a crawl run."""

    statistical_data: StatisticalData
    article_data: List[ArticleData] = Field(default_factory=list)

    @classmethod
    def build(
        cls,
        *,
        friends_num: int,
        active_num: int,
        error_num: int,
        last_updated_time: str,
        articles: Sequence[AuthoredArticle],
        start_offset: int = 0,
    ) -> "CrawlReport":
        """Assemble a report from articles already in their final order.

        ``floor`` is the 1-based position of each article, shifted by
        ``start_offset`` when the report is one page of a longer listing.
        """

        article_data = [
            ArticleData(
                floor=index + start_offset + 1,
                title=article.meta.title,
                created=article.meta.created,
                updated=article.meta.updated,
                link=article.meta.link,
                author=article.author,
                avatar=article.avatar,
                content=article.meta.content,
            )
            for index, article in enumerate(articles)
        ]
        return cls(
            statistical_data=StatisticalData(
                friends_num=friends_num,
                active_num=active_num,
                error_num=error_num,
                article_num=len(article_data),
                last_updated_time=last_updated_time,
            ),
            article_data=article_data,
        )

    def dump(self, path: Path | str) -> None:
        """Write the report as indented UTF-8 JSON."""

        report_path = Path(path)
        report_path.parent.mkdir(parents=True, exist_ok=True)
        report_path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
