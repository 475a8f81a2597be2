"""Origin allow-list shared by CORS and the MCP endpoint.

Entries are either full origins (``https://app.example.com``) or bare host
names (``localhost``), which match any scheme and port. ``*`` allows all.
"""

import re
from typing import Iterable

from .exceptions import OriginNotAllowedError


def _entry_pattern(entry: str) -> str:
    if "://" in entry:
        return re.escape(entry.rstrip("/"))
    return rf"https?://{re.escape(entry)}(?::\d+)?"


class OriginPolicy:
    """Decides which browser origins may call the gateway.

    Requests without an Origin header are server-to-server calls and are
    always allowed.
    """

    def __init__(self, entries: Iterable[str]):
        self.entries = tuple(e.strip() for e in entries if e.strip())
        self.allow_all = "*" in self.entries
        if self.allow_all or not self.entries:
            self.pattern: str | None = None
        else:
            self.pattern = "(?i:" + "|".join(_entry_pattern(e) for e in self.entries) + ")"
        self._regex = re.compile(self.pattern) if self.pattern else None

    def is_allowed(self, origin: str | None) -> bool:
        if origin is None or self.allow_all:
            return True
        return self._regex is not None and self._regex.fullmatch(origin) is not None

    def check(self, origin: str | None) -> None:
        """Raise OriginNotAllowedError for a browser origin outside the allow-list."""
        if not self.is_allowed(origin):
            raise OriginNotAllowedError(origin or "")
