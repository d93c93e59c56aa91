"""
HTML Text Adapter

Implements the HTMLTextExtractor port with BeautifulSoup on the lxml parser.
"""
from bs4 import BeautifulSoup

from ..core.ports import HTMLTextExtractor

_DROP_TAGS = ["script", "style", "head", "title"]


def normalize_whitespace(text: str) -> str:
    """Trim every line and keep at most two blank lines in a row."""
    lines = [line.strip() for line in text.replace("\r", "").split("\n")]

    result = []
    empty_count = 0
    for line in lines:
        if line:
            empty_count = 0
            result.append(line)
            continue
        empty_count += 1
        if empty_count <= 2:
            result.append("")
    return "\n".join(result)


class SoupTextExtractor(HTMLTextExtractor):
    """HTML to plain text using BeautifulSoup"""

    def extract(self, html: bytes) -> str:
        soup = BeautifulSoup(html, "lxml")

        for tag in soup(_DROP_TAGS):
            tag.decompose()

        # Inline XBRL puts hidden metadata inside <body> under ix: tags
        for tag in soup.find_all("ix:header"):
            tag.decompose()

        body = soup.find("body") or soup
        return normalize_whitespace(body.get_text("\n"))
