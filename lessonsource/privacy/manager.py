"""
Privacy policy enforcement for content extraction.

Holds the domain deny-list, robots.txt checks, PII sanitization, consent
lifecycle, attribution and the bounded data-usage log. Instances are
constructed explicitly; get_privacy_manager() provides a shared default.
"""

import asyncio
import secrets
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Protocol

import httpx

from lessonsource.config import PrivacySettings
from lessonsource.exceptions import ConfigurationError
from lessonsource.models import AttributionInfo, ConsentRecord, DataUsageLogEntry, RobotsDecision
from lessonsource.privacy.robots import RobotsChecker
from lessonsource.privacy.sanitizer import PIISanitizer
from lessonsource.utils.logging import ExtractorLogger
from lessonsource.utils.metrics import record_domain_blocked, record_robots_check
from lessonsource.utils.url_utils import get_domain, get_origin, matches_any_domain, normalize_host

REASON_NO_ROBOTS = "No robots.txt found"
REASON_ALLOWED = "Allowed by robots.txt"
REASON_DISALLOWED = "Disallowed by robots.txt"
REASON_ERROR = "Error checking robots.txt"
REASON_EXCLUDED = "Domain is excluded by privacy settings"
REASON_INVALID_DOMAIN = "Invalid domain"
REASON_ROBOTS_SKIPPED = "robots.txt checks disabled"
REASON_CHECK_FAILED = "Error checking domain"

MAX_LOG_ENTRIES = 100
TRIMMED_LOG_ENTRIES = 50

UNTITLED_PLACEHOLDER = "Untitled page"


class ConsentState(str, Enum):
    NO_CONSENT = "no_consent"
    GRANTED = "granted"
    RESET = "reset"


class SessionStore(Protocol):
    """Session-scoped key/value storage cleared with the session."""

    def set(self, key: str, value: Any) -> None: ...

    def get(self, key: str) -> Any: ...

    def clear(self) -> None: ...


class InMemorySessionStore:
    """Process-local session store."""

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def get(self, key: str) -> Any:
        return self._data.get(key)

    def keys(self) -> list[str]:
        return list(self._data)

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)


def _new_session_id() -> str:
    return f"session_{secrets.token_hex(8)}"


class PrivacyManager:
    """
    Privacy checks and session bookkeeping for extraction.

    Only consent, settings and the data-usage log are mutable, and only
    through the explicit methods below.
    """

    def __init__(
        self,
        settings: PrivacySettings | None = None,
        client: httpx.AsyncClient | None = None,
        session_store: SessionStore | None = None,
        logger: ExtractorLogger | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._settings = settings or PrivacySettings()
        self._client = client
        self.session_store: SessionStore = session_store or InMemorySessionStore()
        self.logger = logger or ExtractorLogger("privacy_manager")
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self.sanitizer = PIISanitizer(self._settings.max_content_size, logger=self.logger)
        self.robots_checker = RobotsChecker(self._settings.user_agent)

        self._session_id = _new_session_id()
        self._consent_state = ConsentState.NO_CONSENT
        self._consent: ConsentRecord | None = None
        self._logs: list[DataUsageLogEntry] = []

    # =========================================================================
    # Consent
    # =========================================================================

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def consent_state(self) -> ConsentState:
        return self._consent_state

    def ensure_explicit_user_consent(self) -> ConsentRecord:
        """
        Grant consent for the current session on first call.

        Later calls in the same session return the cached record. After a
        reset the next call opens a new session.
        """
        if not self._settings.explicit_consent_required:
            return ConsentRecord(granted=True, session_id=self._session_id, timestamp=self._clock())

        if self._consent_state == ConsentState.GRANTED and self._consent is not None:
            return self._consent

        if self._consent_state == ConsentState.RESET:
            self._session_id = _new_session_id()

        self._consent = ConsentRecord(granted=True, session_id=self._session_id, timestamp=self._clock())
        self._consent_state = ConsentState.GRANTED
        self.log_data_usage("consent_granted", 0)
        self.logger.consent_granted(session_id=self._session_id)
        return self._consent

    def has_consent(self) -> bool:
        if not self._settings.explicit_consent_required:
            return True
        return self._consent_state == ConsentState.GRANTED

    def reset(self) -> None:
        """Clear all session data and revoke consent."""
        self._logs.clear()
        self.session_store.clear()
        self._consent = None
        self._consent_state = ConsentState.RESET
        self.logger.info("privacy_reset", session_id=self._session_id)

    # =========================================================================
    # Domain policy
    # =========================================================================

    def is_domain_excluded(self, domain: str) -> bool:
        host = normalize_host(domain)
        return matches_any_domain(host, [normalize_host(d) for d in self._settings.exclude_domains])

    async def can_extract_from_domain(self, domain: str, url: str | None = None) -> bool:
        """
        Decide whether extraction from a domain is permitted.

        Args:
            domain: Host name, or a full URL.
            url: Page URL used for the robots.txt path check. Defaults to
                the domain root.

        Returns:
            False for excluded domains or robots.txt refusals, and on any
            internal error.
        """
        decision = await self.evaluate_domain(domain, url)
        return decision.allowed

    async def evaluate_domain(self, domain: str, url: str | None = None) -> RobotsDecision:
        """Same checks as can_extract_from_domain, keeping the reason."""
        user_agent = self._settings.user_agent
        try:
            host = normalize_host(domain)
            if not host:
                record_domain_blocked("invalid")
                return RobotsDecision(allowed=False, reason=REASON_INVALID_DOMAIN, user_agent=user_agent)

            if self.is_domain_excluded(host):
                self.log_data_usage("domain_check_excluded", 0, host)
                record_domain_blocked("excluded")
                self.logger.domain_blocked(domain=host, reason="excluded")
                return RobotsDecision(allowed=False, reason=REASON_EXCLUDED, user_agent=user_agent)

            if self._settings.respect_robots_txt:
                target = url or (domain if "://" in domain else f"https://{host}/")
                decision = await self.respect_robots_txt(target)
                if not decision.allowed:
                    self.log_data_usage("domain_check_robots_blocked", 0, host)
                    record_domain_blocked("robots")
                    self.logger.domain_blocked(domain=host, reason=decision.reason)
                    return decision
            else:
                decision = RobotsDecision(allowed=True, reason=REASON_ROBOTS_SKIPPED, user_agent=user_agent)

            self.log_data_usage("domain_check_allowed", 0, host)
            return decision
        except Exception as e:
            self.logger.warning("domain_check_failed", domain=domain, error=str(e))
            record_domain_blocked("error")
            return RobotsDecision(allowed=False, reason=REASON_CHECK_FAILED, user_agent=user_agent)

    async def respect_robots_txt(self, url: str) -> RobotsDecision:
        """
        Fetch and interpret {origin}/robots.txt for a URL.

        A non-2xx response means no restrictions. A failed request means
        extraction is refused.
        """
        user_agent = self._settings.user_agent
        origin = get_origin(url)
        if origin is None:
            record_robots_check("error")
            return RobotsDecision(allowed=False, reason=REASON_ERROR, user_agent=user_agent)

        try:
            response = await self._get(f"{origin}/robots.txt")
        except (httpx.HTTPError, httpx.InvalidURL, asyncio.TimeoutError, OSError, ValueError) as e:
            # IDNA failures on malformed hosts surface as ValueError
            self.logger.warning("robots_fetch_failed", url=url, error=str(e))
            record_robots_check("error")
            decision = RobotsDecision(allowed=False, reason=REASON_ERROR, user_agent=user_agent)
            self.logger.robots_check(url=url, allowed=False, reason=decision.reason)
            return decision

        if not response.is_success:
            record_robots_check("missing")
            decision = RobotsDecision(allowed=True, reason=REASON_NO_ROBOTS, user_agent=user_agent)
        else:
            allowed, _ = self.robots_checker.parse_and_check(url, response.text)
            record_robots_check("allowed" if allowed else "disallowed")
            decision = RobotsDecision(
                allowed=allowed,
                reason=REASON_ALLOWED if allowed else REASON_DISALLOWED,
                user_agent=user_agent,
            )

        self.logger.robots_check(url=url, allowed=decision.allowed, reason=decision.reason)
        return decision

    async def _get(self, robots_url: str) -> httpx.Response:
        headers = {"User-Agent": self._settings.user_agent}
        timeout = httpx.Timeout(self._settings.robots_timeout_seconds)
        if self._client is not None:
            return await self._client.get(robots_url, headers=headers, timeout=timeout)
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            return await client.get(robots_url, headers=headers)

    # =========================================================================
    # Content
    # =========================================================================

    def sanitize_content(self, text: str | None, url: str | None = None) -> str:
        """Redact PII and truncate to max_content_size."""
        sanitized = self.sanitizer.sanitize(text)
        if sanitized:
            self.log_data_usage("content_sanitization", len(sanitized), url)
        return sanitized

    def include_proper_attribution(self, url: str, title: str | None = None) -> AttributionInfo:
        """Build the source citation for a page."""
        now = self._clock()
        domain = get_domain(url) if url else ""
        display_title = (title or "").strip() or UNTITLED_PLACEHOLDER
        return AttributionInfo(
            source_url=url or "",
            title=(title or "").strip(),
            domain=domain,
            extracted_at=now,
            attribution=(
                f"Content extracted from: {display_title} ({domain or 'unknown source'}) "
                f"on {now.strftime('%Y-%m-%d')}"
            ),
        )

    # =========================================================================
    # Data usage log
    # =========================================================================

    def log_data_usage(self, action: str, size: int, url: str | None = None) -> None:
        """Append a log entry, trimming to the newest entries past the bound."""
        self._logs.append(
            DataUsageLogEntry(
                action=action,
                data_size=size,
                session_id=self._session_id,
                url=url,
                timestamp=self._clock(),
            )
        )
        if len(self._logs) > MAX_LOG_ENTRIES:
            self._logs = self._logs[-TRIMMED_LOG_ENTRIES:]

    def get_data_usage_logs(self) -> list[DataUsageLogEntry]:
        return list(self._logs)

    def cleanup_expired_data(self) -> int:
        """Drop log entries older than the retention window; returns the count removed."""
        cutoff = self._clock() - timedelta(hours=self._settings.data_retention_hours)
        before = len(self._logs)
        self._logs = [entry for entry in self._logs if entry.timestamp >= cutoff]
        return before - len(self._logs)

    def limit_data_collection(self) -> None:
        self.cleanup_expired_data()
        if len(self._logs) > MAX_LOG_ENTRIES:
            self._logs = self._logs[-TRIMMED_LOG_ENTRIES:]

    def clear_session_data(self) -> None:
        """Empty the log and session store and start a new session."""
        self._logs.clear()
        self.session_store.clear()
        self._consent = None
        self._consent_state = ConsentState.NO_CONSENT
        self._session_id = _new_session_id()

    # =========================================================================
    # Settings
    # =========================================================================

    def get_privacy_settings(self) -> PrivacySettings:
        return replace(self._settings, exclude_domains=list(self._settings.exclude_domains))

    def update_privacy_settings(self, **changes: Any) -> PrivacySettings:
        """
        Apply settings changes.

        Raises:
            ConfigurationError: If a key is not a PrivacySettings field.
        """
        unknown = set(changes) - PrivacySettings.field_names()
        if unknown:
            raise ConfigurationError(
                f"Unknown privacy settings: {', '.join(sorted(unknown))}",
                {"keys": sorted(unknown)},
            )
        self._settings = replace(self._settings, **changes)
        self.sanitizer.max_content_size = self._settings.max_content_size
        self.robots_checker = RobotsChecker(self._settings.user_agent)
        self.logger.info("privacy_settings_updated", keys=sorted(changes))
        return self.get_privacy_settings()


_default_manager: PrivacyManager | None = None


def get_privacy_manager() -> PrivacyManager:
    """Shared default instance, created on first use."""
    global _default_manager
    if _default_manager is None:
        _default_manager = PrivacyManager()
    return _default_manager


def reset_privacy_manager() -> None:
    """Discard the shared default instance."""
    global _default_manager
    if _default_manager is not None:
        _default_manager.reset()
    _default_manager = None
