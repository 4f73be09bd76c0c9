from __future__ import annotations

import requests

from article_reader.domain.errors import FetchFailed

DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    ),
    "Accept-Language": "en-US,en;q=0.9",
}


class RequestsDocumentFetcher:
    def __init__(self, timeout_seconds: float = 20.0, session: requests.Session | None = None) -> None:
        self._timeout_seconds = timeout_seconds
        self._session = session or requests.Session()

    def fetch(self, url: str) -> str:
        try:
            response = self._session.get(url, headers=DEFAULT_HEADERS, timeout=self._timeout_seconds)
            response.raise_for_status()
        except requests.Timeout as exc:
            raise FetchFailed("Extraction failed", details=f"timed out after {self._timeout_seconds:g}s") from exc
        except requests.RequestException as exc:
            raise FetchFailed("Extraction failed", details=str(exc)) from exc
        return response.text
