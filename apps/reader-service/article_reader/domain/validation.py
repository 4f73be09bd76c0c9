from __future__ import annotations

from typing import Iterable
from urllib.parse import urlparse

from article_reader.domain.entities import ExtractionRequest, SummaryMode
from article_reader.domain.errors import InvalidInput, UnsupportedSource

_SOURCE_LABELS = {
    "twitter.com": "Twitter/X",
    "x.com": "Twitter/X",
    "facebook.com": "Facebook",
    "instagram.com": "Instagram",
    "linkedin.com": "LinkedIn",
}


def validate_request(
    url: object,
    blocked_domains: Iterable[str],
    summary_mode: SummaryMode | None = None,
) -> ExtractionRequest:
    if not isinstance(url, str) or not url.strip():
        raise InvalidInput("Invalid URL")

    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise InvalidInput("Invalid URL")

    # Substring match on the whole URL, same as the denylist semantics clients rely on.
    lowered = url.lower()
    for domain in blocked_domains:
        domain = domain.strip().lower()
        if domain and domain in lowered:
            label = _SOURCE_LABELS.get(domain, domain)
            raise UnsupportedSource(f"{label} links not supported.")

    return ExtractionRequest(url=url, summary_mode=summary_mode)
