"""
Rule-table content type classification.

Each rule is a (predicate, result, priority) entry. A single dispatch routine
evaluates rules from highest to lowest priority and returns the first match,
falling back to a prose check. Rules are module-level values so each one can be
exercised on its own.
"""

from dataclasses import dataclass
from typing import Callable

from lessonsource.models import ContentType, DomSignals
from lessonsource.utils.url_utils import matches_any_domain

# Priority tiers; higher is evaluated first.
DOMAIN_PRIORITY = 400
PATH_PRIORITY = 300
METADATA_PRIORITY = 200
DOM_PRIORITY = 100

PROSE_MIN_WORDS = 150
PROSE_MIN_PARAGRAPHS = 3

SOCIAL_DOMAINS = frozenset([
    "twitter.com", "x.com", "facebook.com", "instagram.com", "linkedin.com",
    "reddit.com", "tiktok.com", "snapchat.com", "pinterest.com",
])
ENCYCLOPEDIA_DOMAINS = frozenset([
    "wikipedia.org", "britannica.com", "wiktionary.org", "encyclopedia.com",
])
NEWS_DOMAINS = frozenset([
    "bbc.com", "bbc.co.uk", "cnn.com", "reuters.com", "npr.org",
    "nytimes.com", "theguardian.com", "apnews.com",
])
MULTIMEDIA_DOMAINS = frozenset([
    "youtube.com", "youtu.be", "vimeo.com", "twitch.tv", "soundcloud.com",
])
ECOMMERCE_DOMAINS = frozenset([
    "amazon.com", "ebay.com", "etsy.com", "aliexpress.com", "walmart.com",
])


@dataclass(frozen=True)
class ClassificationInput:
    """Everything a rule may look at."""

    url_path: str
    hostname: str
    signals: DomSignals


@dataclass(frozen=True)
class ClassificationRule:
    """One classification rule."""

    name: str
    predicate: Callable[[ClassificationInput], bool]
    result: ContentType
    priority: int

    def matches(self, data: ClassificationInput) -> bool:
        return self.predicate(data)


def _domain_rule(name: str, domains: frozenset[str], result: ContentType) -> ClassificationRule:
    return ClassificationRule(
        name=name,
        predicate=lambda d: matches_any_domain(d.hostname, domains),
        result=result,
        priority=DOMAIN_PRIORITY,
    )


def _path_rule(name: str, fragments: tuple[str, ...], result: ContentType) -> ClassificationRule:
    return ClassificationRule(
        name=name,
        predicate=lambda d: any(f in d.url_path for f in fragments),
        result=result,
        priority=PATH_PRIORITY,
    )


def _json_ld_rule(name: str, types: tuple[str, ...], result: ContentType) -> ClassificationRule:
    return ClassificationRule(
        name=name,
        predicate=lambda d: any(t in d.signals.json_ld_types for t in types),
        result=result,
        priority=METADATA_PRIORITY,
    )


# =============================================================================
# DOM Predicates
# =============================================================================


def has_shopping_signals(d: ClassificationInput) -> bool:
    return d.signals.price_indicator_count + d.signals.cart_indicator_count > 2


def is_media_dominant(d: ClassificationInput) -> bool:
    s = d.signals
    if s.media_count == 0:
        return False
    return s.word_count < 150 or (s.media_count >= 3 and s.word_count < 300)


def is_navigation_dominant(d: ClassificationInput) -> bool:
    s = d.signals
    if s.word_count > 0 and s.link_word_count / s.word_count > 0.6:
        return True
    return s.list_item_count > 3 * max(1, s.paragraph_count) and s.paragraph_count < 3


def has_article_structure(d: ClassificationInput) -> bool:
    s = d.signals
    return s.h1_count > 0 and s.paragraph_count >= 3 and s.subheading_count > 0


def looks_like_prose(signals: DomSignals) -> bool:
    return (
        signals.word_count >= PROSE_MIN_WORDS
        and signals.paragraph_count >= PROSE_MIN_PARAGRAPHS
    )


# =============================================================================
# Rule Table
# =============================================================================

DEFAULT_RULES: tuple[ClassificationRule, ...] = (
    _domain_rule("social_domain", SOCIAL_DOMAINS, ContentType.SOCIAL),
    _domain_rule("encyclopedia_domain", ENCYCLOPEDIA_DOMAINS, ContentType.ENCYCLOPEDIA),
    _domain_rule("news_domain", NEWS_DOMAINS, ContentType.NEWS),
    _domain_rule("multimedia_domain", MULTIMEDIA_DOMAINS, ContentType.MULTIMEDIA),
    _domain_rule("ecommerce_domain", ECOMMERCE_DOMAINS, ContentType.ECOMMERCE),
    _path_rule("blog_path", ("/blog/", "/article/", "/post/"), ContentType.BLOG),
    _path_rule("news_path", ("/news/", "/story/", "/breaking/"), ContentType.NEWS),
    _path_rule(
        "tutorial_path",
        ("/tutorial/", "/guide/", "/how-to/", "/learn/"),
        ContentType.TUTORIAL,
    ),
    _path_rule("encyclopedia_path", ("/wiki/", "/encyclopedia/"), ContentType.ENCYCLOPEDIA),
    _path_rule(
        "product_path",
        ("/product/", "/products/", "/shop/", "/buy/", "/cart/", "/checkout/"),
        ContentType.PRODUCT,
    ),
    _json_ld_rule("product_schema", ("Product", "Offer"), ContentType.PRODUCT),
    _json_ld_rule("blog_schema", ("BlogPosting",), ContentType.BLOG),
    _json_ld_rule("news_schema", ("NewsArticle",), ContentType.NEWS),
    ClassificationRule(
        name="article_metadata",
        predicate=lambda d: "Article" in d.signals.json_ld_types or d.signals.og_type == "article",
        result=ContentType.ARTICLE,
        priority=METADATA_PRIORITY,
    ),
    ClassificationRule("shopping_dom", has_shopping_signals, ContentType.ECOMMERCE, DOM_PRIORITY),
    ClassificationRule("media_dom", is_media_dominant, ContentType.MULTIMEDIA, DOM_PRIORITY),
    ClassificationRule("navigation_dom", is_navigation_dominant, ContentType.NAVIGATION, DOM_PRIORITY),
    ClassificationRule("article_dom", has_article_structure, ContentType.ARTICLE, DOM_PRIORITY),
)


class ContentTypeClassifier:
    """
    Assigns exactly one content type from URL and DOM signals.

    Rules are ordered by priority, with table order breaking ties.
    """

    def __init__(self, rules: tuple[ClassificationRule, ...] | list[ClassificationRule] | None = None):
        table = list(DEFAULT_RULES if rules is None else rules)
        indexed = sorted(enumerate(table), key=lambda item: (-item[1].priority, item[0]))
        self.rules: tuple[ClassificationRule, ...] = tuple(rule for _, rule in indexed)

    def matching_rule(self, data: ClassificationInput) -> ClassificationRule | None:
        for rule in self.rules:
            if rule.matches(data):
                return rule
        return None

    def detect_content_type(
        self,
        url_path: str | None,
        hostname: str | None,
        dom_signals: DomSignals | None = None,
    ) -> ContentType:
        """
        Classify a page.

        Args:
            url_path: Path component of the page URL.
            hostname: Host of the page URL.
            dom_signals: Structural counts from the document.

        Returns:
            The first matching rule's type, else article for prose-like
            pages, else unknown.
        """
        data = ClassificationInput(
            url_path=(url_path or "/").lower(),
            hostname=(hostname or "").lower(),
            signals=dom_signals or DomSignals(),
        )
        rule = self.matching_rule(data)
        if rule is not None:
            return rule.result
        if looks_like_prose(data.signals):
            return ContentType.ARTICLE
        return ContentType.UNKNOWN


_default_classifier = ContentTypeClassifier()


def detect_content_type(
    url_path: str | None,
    hostname: str | None,
    dom_signals: DomSignals | None = None,
) -> ContentType:
    """Classify a page with the default rule table."""
    return _default_classifier.detect_content_type(url_path, hostname, dom_signals)
