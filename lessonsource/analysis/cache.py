"""
Memoization for page analyses.

Entries are keyed by a fingerprint of the URL, the HTML and the document's
revision counter, and are only dropped by explicit invalidation or LRU
eviction.
"""

import hashlib
import time
from collections import OrderedDict
from typing import Callable

from lessonsource.models import PageAnalysis


def fingerprint(url: str, html: str, revision: int = 0) -> str:
    """Hash the inputs an analysis depends on."""
    digest = hashlib.sha256()
    digest.update(url.encode("utf-8"))
    digest.update(b"\x00")
    digest.update(html.encode("utf-8", errors="replace"))
    digest.update(b"\x00")
    digest.update(str(revision).encode("ascii"))
    return digest.hexdigest()


class AnalysisCache:
    """Bounded LRU cache of PageAnalysis results."""

    def __init__(self, max_entries: int = 64, clock: Callable[[], float] = time.monotonic):
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, tuple[PageAnalysis, float]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str) -> PageAnalysis | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        self._entries.move_to_end(key)
        return entry[0]

    def put(self, key: str, analysis: PageAnalysis) -> None:
        self._entries[key] = (analysis, self._clock())
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def age(self, key: str) -> float | None:
        """Seconds since the entry was stored, or None if absent."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        return self._clock() - entry[1]

    def invalidate(self, key: str | None = None) -> None:
        """Drop one entry, or every entry when no key is given."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)
