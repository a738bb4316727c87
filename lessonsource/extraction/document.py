"""
Read-only document snapshot for analysis and extraction.

Wraps a BeautifulSoup tree parsed with lxml. Analysis code only reads the
tree; any cleanup works on copies so the parsed document is never changed.
"""

import copy
import json
import re
from typing import Any, Iterator

from bs4 import BeautifulSoup, Comment, Tag

from lessonsource.exceptions import ContentParseError
from lessonsource.utils.url_utils import get_domain, get_path

MAIN_CONTENT_SELECTORS = [
    "article",
    "main",
    "[role='main']",
    ".content",
    ".post",
    ".entry-content",
    ".article-body",
    "#content",
    "#main",
]

BLOCK_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6", "p", "li", "blockquote", "pre", "td", "th", "dd", "dt"]

INVISIBLE_TAGS = frozenset(["script", "style", "noscript", "template"])

NOISE_TAGS = ["script", "style", "noscript", "template", "nav", "header", "footer", "aside", "form", "iframe", "svg", "button"]

# Class/id tokens marking boilerplate, matched on -/_ boundaries
NOISE_TOKENS = re.compile(
    r"(?:^|[-_])(?:ad|ads|advert|advertisement|banner|sponsor|sponsored|promo|"
    r"sidebar|menu|nav|navbar|breadcrumb|cookie|popup|modal|newsletter|share|"
    r"social|comment|comments|related|footer|header)(?:[-_]|$)",
    re.IGNORECASE,
)


def attribute_tokens(tag: Tag) -> list[str]:
    """Class names plus id of an element."""
    tokens = list(tag.get("class") or [])
    element_id = tag.get("id")
    if element_id:
        tokens.append(element_id)
    return [str(t) for t in tokens]


def has_token(tag: Tag, pattern: re.Pattern[str]) -> bool:
    return any(pattern.search(token) for token in attribute_tokens(tag))


def _normalize_space(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


class PageDocument:
    """
    Parsed page with the queries the analyzers need.

    The revision counter is part of the analysis cache key. Callers that
    change the tree in place must call mark_mutated().
    """

    def __init__(self, html: str, url: str = "", soup: BeautifulSoup | None = None):
        self.html = html or ""
        self.url = url or ""
        self.soup = soup if soup is not None else BeautifulSoup(self.html, "lxml")
        self.revision = 0

    @classmethod
    def parse(cls, html: str, url: str = "") -> "PageDocument":
        """
        Parse HTML into a document.

        Raises:
            ContentParseError: If the parser rejects the markup.
        """
        if not isinstance(html, str):
            raise ContentParseError(url, f"expected HTML text, got {type(html).__name__}")
        try:
            return cls(html, url)
        except Exception as e:
            raise ContentParseError(url, str(e)) from e

    def mark_mutated(self) -> None:
        self.revision += 1

    # =========================================================================
    # Page properties
    # =========================================================================

    @property
    def hostname(self) -> str:
        return get_domain(self.url)

    @property
    def path(self) -> str:
        return get_path(self.url)

    @property
    def title(self) -> str:
        tag = self.soup.find("title")
        return _normalize_space(tag.get_text()) if tag else ""

    @property
    def html_lang(self) -> str | None:
        """Primary subtag of <html lang>, lower-cased."""
        html_tag = self.soup.find("html")
        lang = html_tag.get("lang") if html_tag else None
        if not lang:
            return None
        primary = re.split(r"[-_]", str(lang).strip())[0].lower()
        return primary or None

    def meta(self, name: str | None = None, prop: str | None = None, http_equiv: str | None = None) -> str | None:
        """Content of the first matching meta tag."""
        attrs: dict[str, Any] = {}
        if name:
            attrs["name"] = re.compile(f"^{re.escape(name)}$", re.IGNORECASE)
        if prop:
            attrs["property"] = re.compile(f"^{re.escape(prop)}$", re.IGNORECASE)
        if http_equiv:
            attrs["http-equiv"] = re.compile(f"^{re.escape(http_equiv)}$", re.IGNORECASE)
        tag = self.soup.find("meta", attrs=attrs)
        if tag and tag.get("content"):
            value = _normalize_space(str(tag["content"]))
            return value or None
        return None

    def json_ld(self) -> list[dict[str, Any]]:
        """Parsed JSON-LD objects; invalid blocks are skipped."""
        objects: list[dict[str, Any]] = []
        for script in self.soup.find_all("script", type="application/ld+json"):
            try:
                data = json.loads(script.string or "")
            except (json.JSONDecodeError, TypeError):
                continue
            items = data if isinstance(data, list) else [data]
            for item in items:
                if isinstance(item, dict):
                    graph = item.get("@graph")
                    if isinstance(graph, list):
                        objects.extend(g for g in graph if isinstance(g, dict))
                    objects.append(item)
        return objects

    def json_ld_types(self) -> list[str]:
        types: list[str] = []
        for item in self.json_ld():
            value = item.get("@type")
            values = value if isinstance(value, list) else [value]
            types.extend(str(v) for v in values if v)
        return types

    # =========================================================================
    # Queries
    # =========================================================================

    def select(self, selector: str) -> list[Tag]:
        return self.soup.select(selector)

    def select_one(self, selector: str) -> Tag | None:
        return self.soup.select_one(selector)

    def count(self, selector: str) -> int:
        return len(self.soup.select(selector))

    def elements_with_tokens(self, pattern: re.Pattern[str]) -> Iterator[Tag]:
        """Elements whose class or id matches a token pattern."""
        for tag in self.soup.find_all(True):
            if (tag.get("class") or tag.get("id")) and has_token(tag, pattern):
                yield tag

    def body_text(self) -> str:
        """Visible body text, without script, style or comment nodes."""
        body = self.soup.body or self.soup
        strings = [
            s for s in body.find_all(string=True)
            if not isinstance(s, Comment) and s.parent.name not in INVISIBLE_TAGS
        ]
        return _normalize_space(" ".join(strings))

    # =========================================================================
    # Main content
    # =========================================================================

    def main_element(self) -> Tag | None:
        """The main content container with the most text, if any."""
        best: Tag | None = None
        best_length = 0
        for selector in MAIN_CONTENT_SELECTORS:
            for candidate in self.soup.select(selector):
                length = len(candidate.get_text(" ", strip=True))
                if length > best_length:
                    best, best_length = candidate, length
        return best

    def cleaned_main(self) -> Tag:
        """A copy of the main content with boilerplate removed."""
        source = self.main_element() or self.soup.body or self.soup
        clean = copy.copy(source)
        for tag in clean.find_all(NOISE_TAGS):
            tag.decompose()
        for tag in list(clean.find_all(True)):
            if tag.decomposed:
                continue
            if (tag.get("class") or tag.get("id")) and has_token(tag, NOISE_TOKENS):
                tag.decompose()
        return clean

    def main_text(self) -> str:
        """
        Readable text of the main content.

        Block elements become blank-line separated paragraphs so that
        paragraph statistics survive extraction.
        """
        clean = self.cleaned_main()
        blocks = []
        for element in clean.find_all(BLOCK_TAGS):
            if element.find_parent(BLOCK_TAGS) is not None:
                continue
            text = _normalize_space(element.get_text(" "))
            if text:
                blocks.append(text)
        if not blocks:
            return _normalize_space(clean.get_text(" "))
        return "\n\n".join(blocks)
