from __future__ import annotations

from datetime import datetime

import requests

from friendcircle.services.timeparse import BEIJING_TZ

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=BEIJING_TZ)
FIXED_NOW_STRING = "2024-05-01 12:00:00"


def fixed_clock() -> datetime:
    return FIXED_NOW


class DummyResponse:
    def __init__(self, content: bytes | str, status_code: int = 200) -> None:
        self.content = content.encode("utf-8") if isinstance(content, str) else content
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")
