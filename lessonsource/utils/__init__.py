"""Utility modules for the lesson source extractor."""

from lessonsource.utils.logging import ExtractorLogger, get_logger, setup_logging
from lessonsource.utils.url_utils import (
    domain_matches,
    get_domain,
    get_origin,
    get_path,
    is_valid_url,
    matches_any_domain,
    normalize_host,
)

__all__ = [
    "ExtractorLogger",
    "domain_matches",
    "get_domain",
    "get_logger",
    "get_origin",
    "get_path",
    "is_valid_url",
    "matches_any_domain",
    "normalize_host",
    "setup_logging",
]
