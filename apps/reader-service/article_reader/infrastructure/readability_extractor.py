from __future__ import annotations

import re

from bs4 import BeautifulSoup
from lxml.etree import ParserError
from readability import Document
from readability.readability import Unparseable

from article_reader.domain.ports import ParsedArticle

_NO_TITLE = "[no-title]"


class ReadabilityContentExtractor:
    def extract(self, html: str, url: str) -> ParsedArticle | None:
        if not html or not html.strip():
            return None

        try:
            document = Document(html, url=url)
            fragment = document.summary(html_partial=True)
            title = document.short_title()
        except (Unparseable, ParserError):
            return None

        text = self._to_text(fragment)
        if not text:
            return None

        title = (title or "").strip()
        return ParsedArticle(url=url, title=title if title and title != _NO_TITLE else None, text=text)

    @staticmethod
    def _to_text(fragment: str) -> str:
        soup = BeautifulSoup(fragment, "html.parser")
        text = soup.get_text(" ", strip=True)
        return re.sub(r"\s+", " ", text).strip()
