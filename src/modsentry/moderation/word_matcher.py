"""
Multi-algorithm detection of one banned word inside a message.

Every candidate variant produced by the text normalizer is fed through an
ordered tuple of matchers. A matcher inspects one variant and returns a
:class:`WordMatch` or ``None``. A direct substring hit is conclusive and ends
the search; otherwise the single highest-confidence hit across all variants
and matchers wins.
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional, Sequence, Tuple

from modsentry.datatypes.moderation_datatypes import MatchMethod, WordMatch
from modsentry.moderation.similarity import advanced_similarity
from modsentry.moderation.text_normalizer import (
    LOOKALIKE_ALTERNATES,
    MIN_VARIANT_LENGTH,
    generate_variants,
)
from modsentry.moderation.transliteration import GEORGIAN, TransliterationScheme

DEFAULT_THRESHOLD = 0.85
FUZZY_LENGTH_SLACK = 2
SEQUENCE_MATCH_RATIO = 0.75
SEQUENCE_CONFIDENCE = 0.85
SEQUENCE_LOOKAHEAD = 5
REVERSE_CONFIDENCE = 0.9

Matcher = Callable[[str, str, float], Optional[WordMatch]]


def match_direct(variant: str, target: str, threshold: float) -> Optional[WordMatch]:
    if target in variant:
        return WordMatch(True, 1.0, MatchMethod.DIRECT, variant)
    return None


def match_token_similarity(variant: str, target: str, threshold: float) -> Optional[WordMatch]:
    """Score each whitespace token longer than one character against the target."""
    best = 0.0
    for token in variant.split():
        if len(token) <= 1:
            continue
        score = advanced_similarity(token, target)
        if score >= threshold and score > best:
            best = score
    if best:
        return WordMatch(True, best, MatchMethod.SIMILARITY, variant)
    return None


def find_fuzzy_substring(text: str, target: str, threshold: float) -> float:
    """
    Best similarity of any window of ``text`` against ``target``.

    Windows start at every offset up to ``len(text) - len(target)`` and range in
    length from ``len(target) - 2`` to ``len(target) + 2``. Returns 0.0 when no
    window reaches ``threshold``.
    """
    target_len = len(target)
    best = 0.0
    for start in range(len(text) - target_len + 1):
        for length in range(max(target_len - FUZZY_LENGTH_SLACK, 1), target_len + FUZZY_LENGTH_SLACK + 1):
            if start + length > len(text):
                break
            score = advanced_similarity(text[start:start + length], target)
            if score >= threshold and score > best:
                best = score
    return best


def match_fuzzy(variant: str, target: str, threshold: float) -> Optional[WordMatch]:
    score = find_fuzzy_substring(variant, target, threshold)
    if score:
        return WordMatch(True, score, MatchMethod.FUZZY, variant)
    return None


def _find_char(text: str, candidates: Iterable[str], start: int, end: int) -> int:
    for candidate in candidates:
        index = text.find(candidate, start, end)
        if index != -1:
            return index
    return -1


def detect_character_sequence(text: str, target: str, ratio: float = SEQUENCE_MATCH_RATIO) -> bool:
    """
    Look for the target's characters in order with bounded gaps.

    For each target character the search window runs from just after the
    previous hit for ``len(target) // 2 + 5`` characters. When the exact
    character is absent its look-alikes are tried. The target is detected when
    at least ``ratio`` of its characters were found.
    """
    clean = "".join(char for char in text.lower() if char.isalnum())
    target = target.lower()
    if not target:
        return False

    max_gap = len(target) // 2
    position = 0
    matched = 0
    for char in target:
        search_end = min(position + max_gap + SEQUENCE_LOOKAHEAD, len(clean))
        index = _find_char(clean, (char,), position, search_end)
        if index == -1:
            index = _find_char(clean, LOOKALIKE_ALTERNATES.get(char, ()), position, search_end)
        if index != -1:
            matched += 1
            position = index + 1

    return matched / len(target) >= ratio


def match_sequence(variant: str, target: str, threshold: float) -> Optional[WordMatch]:
    if detect_character_sequence(variant, target):
        return WordMatch(True, SEQUENCE_CONFIDENCE, MatchMethod.SEQUENCE, variant)
    return None


def match_reversed(variant: str, target: str, threshold: float) -> Optional[WordMatch]:
    if target[::-1] in variant:
        return WordMatch(True, REVERSE_CONFIDENCE, MatchMethod.REVERSE, variant)
    return None


MATCHERS: Tuple[Matcher, ...] = (
    match_direct,
    match_token_similarity,
    match_fuzzy,
    match_sequence,
    match_reversed,
)


def detect_word_with_advanced_matching(
    text: str,
    target_word: str,
    threshold: float = DEFAULT_THRESHOLD,
    *,
    scheme: Optional[TransliterationScheme] = GEORGIAN,
    enable_transliteration: bool = True,
    variants: Optional[Sequence[str]] = None,
) -> WordMatch:
    """
    Find the best match of ``target_word`` in ``text``.

    Args:
        text: Raw message text.
        target_word: Lowercase banned word or phrase.
        threshold: Minimum similarity for the token and fuzzy matchers.
        scheme: Transliteration scheme used when building variants.
        enable_transliteration: Include the transliterated variants.
        variants: Precomputed variants for ``text``; computed when omitted.

    Returns:
        WordMatch: ``found=False`` with method ``none`` when nothing matched.
    """
    target = target_word.strip().lower() if isinstance(target_word, str) else ""
    if not target:
        return WordMatch.none()

    if variants is None:
        variants = generate_variants(text, scheme, enable_transliteration)

    best = WordMatch.none()
    for variant in variants:
        if len(variant) < MIN_VARIANT_LENGTH:
            continue
        for matcher in MATCHERS:
            match = matcher(variant, target, threshold)
            if match is None:
                continue
            if match.method is MatchMethod.DIRECT:
                return match
            if match.confidence > best.confidence:
                best = match
    return best
