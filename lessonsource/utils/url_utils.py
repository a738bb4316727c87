"""
URL helpers for the lesson source extractor.

Provides host and path extraction, origin building, and domain suffix matching.
"""

from urllib.parse import urlparse


def get_domain(url: str) -> str:
    """
    Extract the host from a URL, without port.

    Args:
        url: The URL to extract the host from.

    Returns:
        The lower-cased hostname, or an empty string if there is none.
    """
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def get_path(url: str) -> str:
    """
    Extract the path from a URL.

    Args:
        url: The URL to extract path from.

    Returns:
        The path portion of the URL.
    """
    try:
        return urlparse(url).path or "/"
    except ValueError:
        return "/"


def get_origin(url: str) -> str | None:
    """
    Build the scheme://host[:port] origin of a URL.

    Returns:
        The origin, or None if the URL has no http(s) scheme or host.
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return f"{parsed.scheme}://{parsed.netloc}"


def is_valid_url(url: str) -> bool:
    """Check that a URL is absolute http(s) with a host."""
    return get_origin(url) is not None


def normalize_host(domain: str) -> str:
    """
    Reduce a domain or URL to a bare lower-case host.

    Accepts either 'example.com' or 'https://example.com/path'.
    """
    domain = (domain or "").strip().lower()
    if "://" in domain:
        return get_domain(domain)
    host = domain.split("/", 1)[0]
    return host.split(":", 1)[0].rstrip(".")


def domain_matches(host: str, domain: str) -> bool:
    """
    Check whether a host equals a domain or is one of its subdomains.

    'm.facebook.com' matches 'facebook.com'; 'notfacebook.com' does not.
    """
    host = host.lower()
    domain = domain.lower()
    return host == domain or host.endswith("." + domain)


def matches_any_domain(host: str, domains: list[str] | tuple[str, ...] | frozenset[str]) -> bool:
    """Check a host against a collection of domains by suffix."""
    return any(domain_matches(host, domain) for domain in domains)
