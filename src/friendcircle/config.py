"""Configuration models and helpers for the friend circle crawler."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from friendcircle.errors import ParseError

__all__ = [
    "CSS_RULES_FILE",
    "CssRules",
    "SETTINGS_FILE",
    "default_config_dir",
    "FcSettings",
    "FriendsLinksConfig",
    "LinkPage",
    "LinkPageRule",
    "PostPageRule",
    "StaticFriend",
]

CSS_RULES_FILE = "css_rules.yaml"
SETTINGS_FILE = "settings.yaml"


def default_config_dir() -> Path:
    """Return the ``config`` directory under the current working directory."""

    return Path.cwd() / "config"


def _load_yaml(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as file:
            return yaml.safe_load(file)
    except FileNotFoundError as exc:
        raise FileNotFoundError(f"Configuration file not found: {path}") from exc
    except yaml.YAMLError as exc:
        raise ParseError(f"Invalid YAML in configuration file: {path}") from exc


class LinkPageRule(BaseModel):
    """Selectors locating friend entries on one link page theme."""

    author: str = Field(..., description="Primary selector; matches one node per friend name")
    link: str = Field(default=".friend-name a", description="Selector for nodes carrying ``href``")
    avatar: str = Field(default=".avatar img", description="Selector for nodes carrying ``src``")


class PostPageRule(BaseModel):
    """Selectors locating article entries on one blog theme."""

    title: str = Field(..., description="Primary selector; matches one node per article title")
    link: str = Field(default=".article-title a", description="Selector for nodes carrying ``href``")
    created: str = Field(default=".article-date", description="Selector for the publish date text")


class CssRules(BaseModel):
    """Ordered rule-sets per extraction mode.

    Mapping order is significant: the first theme whose primary selector
    matches wins, so the YAML order is kept as-is.
    """

    link_page_rules: Dict[str, LinkPageRule] = Field(default_factory=dict)
    post_page_rules: Dict[str, PostPageRule] = Field(default_factory=dict)

    @classmethod
    def from_file(cls, path: Path | str | None = None) -> "CssRules":
        """Load rule-sets from a YAML file."""

        rules_path = Path(path) if path else default_config_dir() / CSS_RULES_FILE
        data = _load_yaml(rules_path) or {}
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ParseError(f"Rule file is invalid: {rules_path}\n{exc}") from exc


class LinkPage(BaseModel):
    """A page listing friend entries."""

    name: str = ""
    link: str


class StaticFriend(BaseModel):
    """A friend configured by hand, optionally with its own feed location."""

    name: str
    link: str
    avatar: str = ""
    feed: str = ""


class FriendsLinksConfig(BaseModel):
    """Friends supplied outside of link-page discovery."""

    model_config = ConfigDict(populate_by_name=True)

    enable: bool = False
    json_api_or_path: str = Field(
        default="",
        description="URL (``http...``) or local path of a JSON friend list",
    )
    rows: List[List[str]] = Field(
        default_factory=list,
        alias="list",
        description="Rows of ``[name, link, avatar, feed?]``",
    )

    @field_validator("rows", mode="before")
    @classmethod
    def _stringify_rows(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        rows = []
        for row in value:
            if isinstance(row, (list, tuple)):
                rows.append(["" if cell is None else str(cell) for cell in row])
        return rows

    def static_friends(self) -> List[StaticFriend]:
        """Return configured rows that carry at least a name, link and avatar."""

        friends = []
        for row in self.rows:
            if len(row) < 3:
                continue
            feed = row[3] if len(row) > 3 else ""
            friends.append(StaticFriend(name=row[0], link=row[1], avatar=row[2], feed=feed))
        return friends


class FcSettings(BaseModel):
    """Run settings for a single crawl."""

    model_config = ConfigDict(populate_by_name=True)

    enable_link_page: bool = Field(default=True, alias="ENABLE_LINK_PAGE")
    link_pages: List[LinkPage] = Field(default_factory=list, alias="LINK")
    settings_friends_links: FriendsLinksConfig = Field(
        default_factory=FriendsLinksConfig, alias="SETTINGS_FRIENDS_LINKS"
    )
    block_sites: List[str] = Field(default_factory=list, alias="BLOCK_SITE")
    max_posts_num: int = Field(
        default=0,
        ge=0,
        alias="MAX_POSTS_NUM",
        description="Cap on posts taken from one HTML page; 0 disables the cap",
    )
    outdate_clean: int = Field(
        default=0,
        ge=0,
        alias="OUTDATE_CLEAN",
        description="Drop articles older than this many days; 0 keeps everything",
    )
    max_workers: int = Field(default=10, ge=1, alias="MAX_WORKERS")
    request_timeout: float = Field(default=10, gt=0, alias="REQUEST_TIMEOUT")
    connect_timeout: float = Field(default=5, gt=0, alias="CONNECT_TIMEOUT")
    output_file: str = Field(default="rss.json", alias="OUTPUT_FILE")

    @field_validator("block_sites", mode="before")
    @classmethod
    def _drop_empty_blocks(cls, value: Any) -> Any:
        # an empty substring would block every site
        if isinstance(value, list):
            return [str(item) for item in value if item is not None and str(item)]
        return value or []

    @classmethod
    def from_file(cls, path: Path | str | None = None) -> "FcSettings":
        """Load run settings from a YAML file."""

        settings_path = Path(path) if path else default_config_dir() / SETTINGS_FILE
        data = _load_yaml(settings_path) or {}
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ParseError(f"Settings file is invalid: {settings_path}\n{exc}") from exc

    @property
    def link_page_urls(self) -> List[str]:
        return [page.link for page in self.link_pages]

    @property
    def timeout(self) -> tuple[float, float]:
        """``(connect, read)`` timeout applied to every request."""

        return (self.connect_timeout, self.request_timeout)

    def is_blocked(self, link: str) -> bool:
        """Return ``True`` when ``link`` contains any blocked substring."""

        return any(block in link for block in self.block_sites)
