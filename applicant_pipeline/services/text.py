"""
Text helpers shared by the classifier, field extractor, and contact resolver.
"""

import re

from bs4 import BeautifulSoup

_BLANK_LINES = re.compile(r"\n\s*\n+")


def html_to_text(html: str, separator: str = "\n") -> str:
    """
    Convert HTML to plain text using BeautifulSoup.

    Block and inline elements are joined with ``separator`` so that the
    line-oriented extraction patterns still see one logical field per line.
    Script and style content is dropped.
    """
    if not html:
        return ""

    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "head"]):
        tag.decompose()
    text = soup.get_text(separator=separator, strip=True)
    return _BLANK_LINES.sub("\n", text)


def collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def truncate(text: str, limit: int) -> str:
    if not text or len(text) <= limit:
        return text or ""
    return text[:limit]
