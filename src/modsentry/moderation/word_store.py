"""
Interface between the word-list cache and whatever persists the words.

The SQLite-backed BadWordRepository implements it in production; tests pass
in-memory fakes. Implementations raise StoreUnavailable when the backend
fails.
"""

from __future__ import annotations

from typing import List, Optional, Protocol

from modsentry.datatypes.moderation_datatypes import BadWordEntry, Severity


class WordStore(Protocol):
    """Persistence operations the word-list cache relies on."""

    async def find_active_custom_words(self, scope: Optional[str]) -> List[BadWordEntry]:
        """Return active custom words for a guild id string, or global words when ``scope`` is None."""
        ...

    async def create_word(
        self,
        word: str,
        severity: Severity,
        scope: Optional[str],
        added_by: Optional[str],
    ) -> BadWordEntry:
        """Persist one word and return the stored entry."""
        ...

    async def delete_words(self, word: str, scope: Optional[str]) -> int:
        """Delete every row for ``word`` in ``scope``; return the number removed."""
        ...
