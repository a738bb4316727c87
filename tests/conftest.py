"""
Pytest configuration and shared fixtures.
"""

from collections.abc import Callable

import httpx
import pytest

from lessonsource.config import PrivacySettings
from lessonsource.privacy.manager import PrivacyManager, reset_privacy_manager


# =============================================================================
# Text Builders
# =============================================================================


SENTENCE_BANK = [
    "The river town grew slowly along the northern bank of the valley.",
    "Farmers brought their goods to the market every Saturday morning.",
    "Over time the small bridge became the most important link between the two villages.",
    "Children walked to school along the old stone path.",
    "In winter the water froze and people crossed the river on foot.",
    "Local historians still write about the great flood that changed the town forever.",
    "Most families kept a garden behind the house and grew beans and potatoes.",
    "The library opened its doors to everyone who wanted to read.",
]


def make_prose(word_target: int, sentences_per_paragraph: int = 4) -> str:
    """Plain English prose of at least word_target words in short paragraphs."""
    paragraphs: list[str] = []
    current: list[str] = []
    count = 0
    i = 0
    while count < word_target:
        sentence = SENTENCE_BANK[i % len(SENTENCE_BANK)]
        current.append(sentence)
        count += len(sentence.split())
        i += 1
        if len(current) == sentences_per_paragraph:
            paragraphs.append(" ".join(current))
            current = []
    if current:
        paragraphs.append(" ".join(current))
    return "\n\n".join(paragraphs)


@pytest.fixture
def prose() -> Callable[[int], str]:
    """Builder for clean English prose of a given length."""
    return make_prose


@pytest.fixture
def short_text() -> str:
    """63 words of generic prose."""
    text = (
        "The morning was quiet in the small town. People walked slowly to work "
        "and talked about the weather. A baker opened his shop early and the smell "
        "of fresh bread filled the street. Children waited for the bus near the "
        "corner. Later the sun came out and the square became busy with visitors "
        "who wanted to see the old church and the market."
    )
    assert len(text.split()) == 63
    return text


@pytest.fixture
def social_text() -> str:
    """Text shaped like a social feed."""
    post = "@user #trending this got so many likes and shares today, posted 2 hours ago. Reply or retweet!"
    return "\n\n".join([post] * 12)


# =============================================================================
# Sample HTML Fixtures
# =============================================================================


def make_article_html(
    word_target: int = 600,
    lang: str = "en",
    title: str = "How Rivers Shape Towns",
    extra_head: str = "",
    extra_body: str = "",
) -> str:
    paragraphs = make_prose(word_target).split("\n\n")
    half = len(paragraphs) // 2
    first = "\n".join(f"<p>{p}</p>" for p in paragraphs[:half])
    second = "\n".join(f"<p>{p}</p>" for p in paragraphs[half:])
    return f"""<!DOCTYPE html>
<html lang="{lang}">
<head>
    <title>{title}</title>
    <meta name="description" content="A guide to how rivers shaped the growth of small towns.">
    <meta name="author" content="Jane Smith">
    <meta property="article:published_time" content="2023-05-14T09:30:00Z">
    <meta name="keywords" content="rivers, towns, history">
    {extra_head}
</head>
<body>
    <nav><a href="/">Home</a> <a href="/about">About</a> <a href="/contact">Contact</a></nav>
    <article>
        <h1>{title}</h1>
        <h2>The early years</h2>
        {first}
        <h2>Growth and change</h2>
        {second}
        <ul>
            <li>Markets and trade</li>
            <li>Bridges and roads
                <ul><li>Stone bridges</li><li>Wooden bridges</li></ul>
            </li>
        </ul>
        <blockquote>The river gave the town its life and its name.</blockquote>
        <figure>
            <img src="/images/river.jpg" alt="The river at dawn">
            <figcaption>The river at dawn in early spring</figcaption>
        </figure>
        <p>Read the <a href="https://other.example.org/history">regional history archive</a>
        or our <a href="/towns/overview">overview of towns</a> for more detail on this topic.</p>
        <pre><code class="language-python">print("river towns")</code></pre>
        <table>
            <caption>Population</caption>
            <tr><th>Year</th><th>People</th></tr>
            <tr><td>1900</td><td>1200</td></tr>
            <tr><td>1950</td><td>3400</td></tr>
        </table>
        {extra_body}
    </article>
    <footer>Copyright 2024 River Press</footer>
</body>
</html>"""


@pytest.fixture
def article_html() -> str:
    """Well-structured English article page."""
    return make_article_html()


@pytest.fixture
def article_url() -> str:
    return "https://learn.example.com/guide/river-towns"


@pytest.fixture
def product_html() -> str:
    """Product page with shopping signals."""
    return """<!DOCTYPE html>
<html lang="en">
<head>
    <title>Blue Kettle</title>
    <script type="application/ld+json">{"@context": "https://schema.org", "@type": "Product", "name": "Blue Kettle"}</script>
</head>
<body>
    <div class="product">
        <h1>Blue Kettle</h1>
        <span class="price">$29.99</span>
        <button class="add-to-cart">Add to cart</button>
        <button>Buy now</button>
    </div>
</body>
</html>"""


@pytest.fixture
def feed_html() -> str:
    """Page with a social feed and a comment section."""
    return """<!DOCTYPE html>
<html lang="en">
<head><title>Community</title></head>
<body>
    <main>
        <h1>Community</h1>
        <p>Short intro to the community page for new members.</p>
    </main>
    <div class="social-feed"><div class="tweet">Hello</div></div>
    <section id="comments"><div class="comment">Nice!</div></section>
    <div class="ad-banner">Ad</div>
    <div class="sponsored">Sponsored</div>
</body>
</html>"""


# =============================================================================
# Robots.txt Fixtures
# =============================================================================


@pytest.fixture
def sample_robots_txt_permissive() -> str:
    """Robots.txt that allows most crawling."""
    return """
User-agent: *
Allow: /
Crawl-delay: 1
Sitemap: https://example.com/sitemap.xml
    """.strip()


@pytest.fixture
def sample_robots_txt_restrictive() -> str:
    """Robots.txt that blocks most crawling."""
    return """
User-agent: *
Disallow: /

User-agent: Googlebot
Allow: /
    """.strip()


# =============================================================================
# Privacy Fixtures
# =============================================================================


def robots_transport(
    status_code: int = 200,
    body: str = "",
    calls: list[httpx.Request] | None = None,
    error: Exception | None = None,
) -> httpx.MockTransport:
    """MockTransport answering every request with one robots.txt response."""

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        if error is not None:
            raise error
        return httpx.Response(status_code, text=body)

    return httpx.MockTransport(handler)


def make_manager(
    transport: httpx.MockTransport | None = None,
    **settings,
) -> PrivacyManager:
    client = httpx.AsyncClient(transport=transport or robots_transport(404))
    return PrivacyManager(PrivacySettings(**settings), client=client)


@pytest.fixture
def manager_factory() -> Callable[..., PrivacyManager]:
    return make_manager


@pytest.fixture(autouse=True)
def _reset_shared_manager():
    yield
    reset_privacy_manager()


@pytest.fixture
def transport_factory() -> Callable[..., httpx.MockTransport]:
    return robots_transport


@pytest.fixture
def article_factory() -> Callable[..., str]:
    return make_article_html
