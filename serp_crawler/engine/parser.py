"""DOM parsing helpers for search result pages and linked documents."""

from __future__ import annotations

from urllib.parse import urljoin

from selectolax.lexbor import LexborHTMLParser

from ..config import ResultSelectors
from ..models import ResultEntry
from .text import normalize_snippet

NON_CONTENT_TAGS = ["script", "style", "noscript", "template"]
INLINE_TAGS = [
    "a", "abbr", "b", "cite", "code", "em", "i", "mark",
    "q", "small", "span", "strong", "sub", "sup", "time", "u",
]


class Parser:
    """Turn rendered HTML into result records and plain page text."""

    def parse_results(
        self, html: str, selectors: ResultSelectors, base_url: str | None = None
    ) -> list[ResultEntry]:
        parser = LexborHTMLParser(html)
        entries: list[ResultEntry] = []
        for node in parser.css(selectors.container):
            header_node = node.css_first(selectors.header)
            header = header_node.text(strip=True) if header_node else ""
            # A snippet may be split across several spans; keep them in document order.
            snippet = "".join(span.text() for span in node.css(selectors.snippet)).strip()
            entries.append(
                ResultEntry(
                    header=header,
                    snippet=normalize_snippet(snippet),
                    link=self._link(node, selectors, base_url),
                )
            )
        return entries

    def extract_text(self, html: str) -> str:
        """Return the visible text of the document, one text block per line.

        Script-like elements are dropped and inline markup is unwrapped; every
        remaining element contributes its own direct text, so short navigation
        fragments land on separate lines.
        """

        parser = LexborHTMLParser(html)
        parser.strip_tags(NON_CONTENT_TAGS)
        parser.unwrap_tags(INLINE_TAGS)
        root = parser.body or parser.root
        if root is None:
            return ""
        blocks: list[str] = []
        for node in [root, *root.css("*")]:
            text = node.text(deep=False, separator=" ", strip=True, skip_empty=True)
            if text:
                blocks.append(text)
        return "\n".join(blocks)

    @staticmethod
    def _link(node, selectors: ResultSelectors, base_url: str | None) -> str | None:
        link_node = node.css_first(selectors.link)
        if link_node is None:
            return None
        href = (link_node.attributes.get(selectors.link_attribute) or "").strip()
        if not href or href.startswith(("javascript:", "#")):
            return None
        return urljoin(base_url, href) if base_url else href


__all__ = ["Parser"]
