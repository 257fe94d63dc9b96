"""
Pytest configuration and fixtures for ModSentry tests.
"""

import asyncio
import sys
from pathlib import Path

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

import pytest

from modsentry.datatypes.moderation_datatypes import BadWordEntry, Severity, WordCategory
from modsentry.moderation.exceptions import StoreUnavailable


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeWordStore:
    """In-memory WordStore that counts calls and can be told to fail."""

    def __init__(self, words=None):
        self.rows = list(words or [])
        self.find_calls = []
        self.create_calls = []
        self.delete_calls = []
        self.fail_reads = False
        self.fail_writes = False

    def add(self, word, severity=Severity.MEDIUM, scope=None, added_by=None):
        self.rows.append(BadWordEntry(word=word, category=WordCategory.CUSTOM, severity=severity, scope=scope, added_by=added_by))

    async def find_active_custom_words(self, scope):
        self.find_calls.append(scope)
        if self.fail_reads:
            raise StoreUnavailable("store is down")
        return [row for row in self.rows if row.scope == scope]

    async def create_word(self, word, severity, scope, added_by):
        self.create_calls.append((word, severity, scope, added_by))
        if self.fail_writes:
            raise StoreUnavailable("store is down")
        entry = BadWordEntry(word=word, category=WordCategory.CUSTOM, severity=severity, scope=scope, added_by=added_by)
        self.rows.append(entry)
        return entry

    async def delete_words(self, word, scope):
        self.delete_calls.append((word, scope))
        if self.fail_writes:
            raise StoreUnavailable("store is down")
        before = len(self.rows)
        self.rows = [row for row in self.rows if not (row.word == word and row.scope == scope)]
        return before - len(self.rows)


class GatedWordStore(FakeWordStore):
    """FakeWordStore whose reads for one scope snapshot the rows, then wait to be released."""

    def __init__(self, gated_scope):
        super().__init__()
        self.gated_scope = gated_scope
        self.fetch_started = asyncio.Event()
        self.release = asyncio.Event()

    async def find_active_custom_words(self, scope):
        rows = await super().find_active_custom_words(scope)
        if scope == self.gated_scope and not self.release.is_set():
            self.fetch_started.set()
            await self.release.wait()
        return rows


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def word_store():
    return FakeWordStore()


@pytest.fixture
def gated_word_store():
    return GatedWordStore(gated_scope="guildA")
