"""
Content moderation engine facade.

``ContentModerationEngine`` ties the pieces together for callers (the message
listener and the slash commands):

- word lists come from a :class:`WordListCache` in front of an injected store
- messages are expanded into variants by the text normalizer
- each banned word is matched against every variant by the word matcher
- detections are scored and turned into a flag decision and an action

It also fronts the per-guild settings manager so the bot layer only needs a
single object.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from modsentry.datatypes.moderation_datatypes import (
    AnalysisOptions,
    AnalysisResult,
    BadWordEntry,
    DetectionDetail,
    Severity,
    WordCategory,
)
from modsentry.datatypes.moderation_settings import GuildModerationSettings
from modsentry.moderation import scoring
from modsentry.moderation.text_normalizer import generate_variants
from modsentry.moderation.transliteration import GEORGIAN, TransliterationScheme
from modsentry.moderation.word_list_cache import DEFAULT_TTL_SECONDS, WordListCache
from modsentry.moderation.word_matcher import detect_word_with_advanced_matching
from modsentry.moderation.word_store import WordStore
from modsentry.settings.moderation_settings_manager import ModerationSettingsManager
from modsentry.util.logger import get_logger

logger = get_logger("moderation_engine")

ANALYSIS_METHOD = "advanced_pattern_matching"
INVALID_INPUT_METHOD = "input_validation_fail"


def merge_word_lists(global_words: Iterable[BadWordEntry], guild_words: Iterable[BadWordEntry]) -> List[BadWordEntry]:
    """
    Combine global and guild words into one list without duplicate words.

    A guild entry replaces a global entry for the same word; duplicates within
    one list keep the highest severity. Order is first appearance.
    """
    merged: Dict[str, BadWordEntry] = {}
    for words, overrides in ((global_words, False), (guild_words, True)):
        seen_here = set()
        for entry in words:
            current = merged.get(entry.word)
            if current is None:
                merged[entry.word] = entry
            elif overrides and entry.word not in seen_here:
                merged[entry.word] = entry
            elif entry.severity.rank > current.severity.rank:
                merged[entry.word] = entry
            seen_here.add(entry.word)
    return list(merged.values())


class ContentModerationEngine:
    """
    Analyzes message text against per-guild and global banned word lists.

    Args:
        word_store: Backing store for banned words (see WordStore).
        settings_manager: Per-guild settings; an in-memory manager is created
            when omitted.
        cache_ttl_seconds: How long a loaded word list is reused.
        scheme: Transliteration scheme for the second script.
        clock: Monotonic time source for the word cache.
    """

    def __init__(
        self,
        word_store: WordStore,
        *,
        settings_manager: Optional[ModerationSettingsManager] = None,
        cache_ttl_seconds: float = DEFAULT_TTL_SECONDS,
        scheme: Optional[TransliterationScheme] = GEORGIAN,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._cache = WordListCache(word_store, ttl_seconds=cache_ttl_seconds, clock=clock)
        self._settings = settings_manager if settings_manager is not None else ModerationSettingsManager()
        self._scheme = scheme
        logger.info("[MODERATION ENGINE] Initialized (word cache TTL %ss)", cache_ttl_seconds)

    @property
    def word_cache(self) -> WordListCache:
        return self._cache

    @property
    def settings(self) -> ModerationSettingsManager:
        return self._settings

    # ========== Lifecycle ==========

    async def init(self) -> None:
        """Load persisted guild settings."""
        await self._settings.async_init()

    async def shutdown(self) -> None:
        """Flush pending settings writes and drop cached word lists."""
        await self._settings.shutdown()
        self._cache.clear()
        logger.info("[MODERATION ENGINE] Shutdown complete")

    # ========== Analysis ==========

    async def analyze_content(
        self,
        text: Any,
        options: Union[AnalysisOptions, Mapping[str, Any], None] = None,
    ) -> AnalysisResult:
        """
        Analyze one message.

        Args:
            text: Message text. Non-string, empty or whitespace-only input is
                reported clean with analysis method ``input_validation_fail``.
            options: AnalysisOptions or a mapping with ``sensitivity``,
                ``enable_script_transliteration`` and ``guild_id``.

        Returns:
            AnalysisResult: Never raises because of the input; store failures
            are absorbed by the word cache.
        """
        if not isinstance(text, str) or not text.strip():
            return AnalysisResult.clean(INVALID_INPUT_METHOD)

        if not isinstance(options, AnalysisOptions):
            options = AnalysisOptions.from_mapping(options)

        words = await self.load_words(None)
        if options.guild_id is not None:
            words = merge_word_lists(words, await self.load_words(options.guild_id))
        if not words:
            return AnalysisResult.clean(ANALYSIS_METHOD)

        threshold = scoring.confidence_threshold(options.sensitivity)
        variants = generate_variants(text, self._scheme, options.enable_script_transliteration)
        logger.debug(
            "[MODERATION ENGINE] Analyzing %d word(s) over %d variant(s), sensitivity %s (threshold %.2f)",
            len(words), len(variants), options.sensitivity, threshold,
        )

        details: List[DetectionDetail] = []
        total_confidence = 0.0
        for entry in words:
            match = detect_word_with_advanced_matching(
                text,
                entry.word,
                threshold,
                scheme=self._scheme,
                enable_transliteration=options.enable_script_transliteration,
                variants=variants,
            )
            if not match.found or match.confidence < threshold:
                continue

            details.append(DetectionDetail(
                word=entry.word,
                category=entry.category,
                severity=entry.severity,
                confidence=match.confidence,
                method=match.method,
                matched_variant=match.matched_variant,
            ))
            total_confidence = scoring.accumulate_confidence(total_confidence, match.confidence)
            logger.debug(
                "[MODERATION ENGINE] Detected %r (%s) at %.3f via %s",
                entry.word, entry.severity, match.confidence, match.method,
            )

        severity = scoring.max_severity(detail.severity for detail in details)
        flagged = scoring.should_flag(details, severity, options.sensitivity)
        result = AnalysisResult(
            is_clean=not flagged,
            detected_words=[detail.word for detail in details],
            detected_details=details,
            severity=severity,
            confidence=total_confidence,
            recommended_action=scoring.recommended_action(severity, len(details)),
            analysis_method=ANALYSIS_METHOD,
        )
        if details:
            logger.info(
                "[MODERATION ENGINE] %d detection(s), severity %s, flagged=%s",
                len(details), severity, flagged,
            )
        return result

    # ========== Word list ==========

    async def load_words(self, scope: Optional[Any] = None) -> List[BadWordEntry]:
        """Words for a guild id, or the global list when ``scope`` is None."""
        return await self._cache.load_words(scope)

    async def add_bad_word(
        self,
        word: str,
        category: Union[WordCategory, str] = WordCategory.CUSTOM,
        severity: Union[Severity, str] = Severity.MEDIUM,
        guild_id: Optional[Any] = None,
        added_by: Optional[str] = None,
    ) -> BadWordEntry:
        """
        Add a banned word for a guild (or globally when ``guild_id`` is None).

        Only custom words are stored; any other valid category is accepted
        and recorded as ``custom``.

        Raises:
            ValidationError: Empty word, unknown category or unknown severity.
            StoreUnavailable: The store write failed.
        """
        parsed_category = WordCategory.parse(category)
        if parsed_category is not WordCategory.CUSTOM:
            logger.debug("[MODERATION ENGINE] Storing %r category word as custom", parsed_category)
        return await self._cache.add_word(word, severity, guild_id, added_by)

    async def remove_bad_word(self, word: str, guild_id: Optional[Any] = None) -> bool:
        """Remove a banned word; True when something was deleted."""
        return await self._cache.remove_word(word, guild_id)

    async def get_bad_words_for_guild(self, guild_id: Any) -> Dict[str, List[Dict[str, Any]]]:
        """The guild's own words, grouped the way the word-list UI shows them."""
        words = await self._cache.load_words(guild_id)
        return {"custom": [entry.to_dict() for entry in words]}

    # ========== Guild settings ==========

    def save_guild_settings(
        self,
        guild_id: Any,
        settings: Union[GuildModerationSettings, Mapping[str, Any]],
    ) -> GuildModerationSettings:
        return self._settings.save(guild_id, settings)

    def get_guild_settings(self, guild_id: Any) -> GuildModerationSettings:
        return self._settings.get(guild_id)

    def should_monitor_channel(self, guild_id: Any, channel_id: Any) -> bool:
        return self._settings.should_monitor_channel(guild_id, channel_id)

    def is_user_excluded(self, guild_id: Any, role_ids: Iterable[Any]) -> bool:
        return self._settings.is_user_excluded(guild_id, role_ids)
