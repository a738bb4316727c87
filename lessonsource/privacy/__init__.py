"""Privacy modules for robots.txt, PII redaction, consent and attribution."""

from lessonsource.privacy.manager import (
    ConsentState,
    InMemorySessionStore,
    PrivacyManager,
    SessionStore,
    get_privacy_manager,
    reset_privacy_manager,
)
from lessonsource.privacy.robots import RobotsChecker, RobotsParser, RobotsTxt
from lessonsource.privacy.sanitizer import PIISanitizer, PIIType, SanitizationResult

__all__ = [
    "ConsentState",
    "InMemorySessionStore",
    "PIISanitizer",
    "PIIType",
    "PrivacyManager",
    "RobotsChecker",
    "RobotsParser",
    "RobotsTxt",
    "SanitizationResult",
    "SessionStore",
    "get_privacy_manager",
    "reset_privacy_manager",
]
