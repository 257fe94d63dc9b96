"""
TTL cache of banned words per guild, in front of the word store.

Entries are keyed by guild id string, or ``"global"`` for words that apply
everywhere. A cached list is reused while it is younger than the TTL and
reloaded lazily on the next read after that. Any add or remove invalidates the
key it touched, so the next analysis sees the change immediately.

Reads fail open: when the store is unreachable the last known list (even if
stale) is served, or an empty list when there is none, and moderation keeps
running without it.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from modsentry.datatypes.moderation_datatypes import (
    BadWordEntry,
    Severity,
    normalize_word,
    scope_key,
)
from modsentry.moderation.exceptions import StoreUnavailable, ValidationError
from modsentry.moderation.word_store import WordStore
from modsentry.util.logger import get_logger

logger = get_logger("word_list_cache")

DEFAULT_TTL_SECONDS = 300.0


@dataclass(frozen=True, slots=True)
class CachedWordList:
    """Immutable snapshot of one scope's words and when they were fetched."""

    entries: Tuple[BadWordEntry, ...]
    loaded_at: float


def _scope_arg(scope: Optional[object]) -> Optional[str]:
    """Store-facing scope: None for global, otherwise the guild id string."""
    key = scope_key(scope)
    return None if key == scope_key(None) else key


class WordListCache:
    """
    Per-scope word list cache with a time-to-live.

    Args:
        store: Backing word store.
        ttl_seconds: Age after which a cached list is reloaded.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        store: WordStore,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._store = store
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CachedWordList] = {}
        self._generations: Dict[str, int] = {}
        self._epoch = 0

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    def _is_fresh(self, cached: CachedWordList) -> bool:
        return self._clock() - cached.loaded_at < self._ttl_seconds

    def _generation(self, key: str) -> Tuple[int, int]:
        return self._epoch, self._generations.get(key, 0)

    async def load_words(self, scope: Optional[object] = None) -> List[BadWordEntry]:
        """
        Return the words for ``scope``, fetching from the store when not fresh.

        Args:
            scope: Guild id (any form that stringifies to it) or None for global.

        Returns:
            List[BadWordEntry]: Lowercased, trimmed entries. Never raises for
            store failures; see the module docstring.
        """
        key = scope_key(scope)
        cached = self._entries.get(key)
        if cached is not None and self._is_fresh(cached):
            logger.debug("[WORD LIST CACHE] Hit for %s (%d words)", key, len(cached.entries))
            return list(cached.entries)

        generation = self._generation(key)
        try:
            rows = await self._store.find_active_custom_words(_scope_arg(scope))
        except StoreUnavailable as exc:
            if cached is not None:
                logger.warning(
                    "[WORD LIST CACHE] Store read failed for %s, serving %d stale words: %s",
                    key, len(cached.entries), exc,
                )
                return list(cached.entries)
            logger.warning("[WORD LIST CACHE] Store read failed for %s, no cached words: %s", key, exc)
            return []

        entries = []
        for row in rows:
            word = normalize_word(row.word)
            if not word:
                continue
            entries.append(row if word == row.word else BadWordEntry(
                word=word,
                category=row.category,
                severity=row.severity,
                scope=row.scope,
                added_by=row.added_by,
            ))

        # invalidated while the fetch was in flight, so the rows may predate a write
        if self._generation(key) != generation:
            logger.debug("[WORD LIST CACHE] %s was invalidated during the fetch, not caching", key)
            return entries

        self._entries[key] = CachedWordList(entries=tuple(entries), loaded_at=self._clock())
        logger.debug("[WORD LIST CACHE] Loaded %d words for %s", len(entries), key)
        return entries

    async def add_word(
        self,
        word: str,
        severity: Severity | str = Severity.MEDIUM,
        scope: Optional[object] = None,
        added_by: Optional[str] = None,
    ) -> BadWordEntry:
        """
        Validate and persist a word, then invalidate its scope.

        Raises:
            ValidationError: If the word is empty or the severity is unknown.
            StoreUnavailable: If the store write fails.
        """
        normalized = normalize_word(word)
        if not normalized:
            raise ValidationError("Word must be a non-empty string")
        parsed_severity = Severity.parse(severity)

        entry = await self._store.create_word(normalized, parsed_severity, _scope_arg(scope), added_by)
        self.invalidate(scope)
        logger.info("[WORD LIST CACHE] Added %r (%s) to %s", normalized, parsed_severity, scope_key(scope))
        return entry

    async def remove_word(self, word: str, scope: Optional[object] = None) -> bool:
        """
        Delete every stored row for ``word`` in ``scope``.

        The scope is invalidated whether or not anything was deleted, and also
        when the store raises.

        Returns:
            bool: True if at least one row was removed.
        """
        normalized = normalize_word(word)
        if not normalized:
            raise ValidationError("Word must be a non-empty string")

        try:
            removed = await self._store.delete_words(normalized, _scope_arg(scope))
        finally:
            self.invalidate(scope)

        logger.info("[WORD LIST CACHE] Removed %d row(s) for %r from %s", removed, normalized, scope_key(scope))
        return removed > 0

    def invalidate(self, scope: Optional[object] = None) -> bool:
        """Drop the cached list for ``scope``; returns whether one was cached."""
        key = scope_key(scope)
        self._generations[key] = self._generations.get(key, 0) + 1
        return self._entries.pop(key, None) is not None

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        self._epoch += 1
        logger.debug("[WORD LIST CACHE] Cleared %d cached scopes", count)
        return count

    def stats(self) -> Dict[str, float]:
        now = self._clock()
        fresh = sum(1 for cached in self._entries.values() if now - cached.loaded_at < self._ttl_seconds)
        return {
            "scopes": len(self._entries),
            "fresh_scopes": fresh,
            "words": sum(len(cached.entries) for cached in self._entries.values()),
            "ttl_seconds": self._ttl_seconds,
        }
