from __future__ import annotations

from typing import Dict, List, Optional
from urllib.parse import parse_qs, urlsplit


class UrlReader:
    def query(self, name: str) -> Optional[str]:
        raise NotImplementedError


class QueryStringReader(UrlReader):
    """
    Reads query parameters from a URL (or a bare query string).
    First value wins for repeated parameters.
    """

    def __init__(self, url: str = ""):
        self.url = url or ""
        self._params: Dict[str, List[str]] = self._parse(self.url)

    @staticmethod
    def _parse(url: str) -> Dict[str, List[str]]:
        qs = urlsplit(url).query if ("?" in url or "://" in url) else url.lstrip("?")
        return parse_qs(qs, keep_blank_values=True)

    def query(self, name: str) -> Optional[str]:
        values = self._params.get(name)
        if not values:
            return None
        return values[0]
