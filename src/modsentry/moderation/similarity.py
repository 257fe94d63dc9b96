"""
String similarity algorithms used by the word matcher.

Each function is pure and returns a score in [0, 1] (except the raw
Levenshtein distance). Edit distance and Jaro come from rapidfuzz; overlap
and containment are the filter's own signals. ``advanced_similarity`` blends
them into the single score the fuzzy matchers compare against the
sensitivity threshold.
"""

from rapidfuzz.distance import Jaro, Levenshtein

# Blend weights for advanced_similarity; containment also acts as a floor.
LEVENSHTEIN_WEIGHT = 0.4
JARO_WEIGHT = 0.3
OVERLAP_WEIGHT = 0.2
CONTAINMENT_WEIGHT = 0.1
CONTAINMENT_SCORE = 0.8


def levenshtein_distance(first: str, second: str) -> int:
    """Edit distance with unit cost for insert, delete and substitute."""
    return Levenshtein.distance(first, second)


def levenshtein_similarity(first: str, second: str) -> float:
    """Edit distance scaled to a similarity: ``1 - distance / max(len)``."""
    if not first and not second:
        return 1.0
    return Levenshtein.normalized_similarity(first, second)


def jaro_similarity(first: str, second: str) -> float:
    """Standard Jaro similarity; 0 when either string is empty."""
    if first == second:
        return 1.0
    if not first or not second:
        return 0.0
    return Jaro.similarity(first, second)


def character_overlap(first: str, second: str) -> float:
    """
    Bag-of-characters overlap.

    Each character of ``first`` consumes the first unused identical character
    of ``second``; the score is ``2 * matches / (len(first) + len(second))``.
    """
    total = len(first) + len(second)
    if total == 0:
        return 0.0

    used = [False] * len(second)
    matches = 0
    for char in first:
        for index, candidate in enumerate(second):
            if not used[index] and candidate == char:
                used[index] = True
                matches += 1
                break

    return (matches * 2) / total


def containment_score(first: str, second: str) -> float:
    """Flat high score when either string contains the other."""
    return CONTAINMENT_SCORE if (first in second or second in first) else 0.0


def advanced_similarity(first: str, second: str) -> float:
    """
    Weighted blend of edit distance, Jaro, overlap and containment.

    Returns 0 when either string is empty or when the length difference is
    larger than the shorter string, 1 for identical strings.
    """
    if not first or not second:
        return 0.0
    if first == second:
        return 1.0

    if abs(len(first) - len(second)) > min(len(first), len(second)):
        return 0.0

    containment = containment_score(first, second)
    blended = (
        levenshtein_similarity(first, second) * LEVENSHTEIN_WEIGHT
        + jaro_similarity(first, second) * JARO_WEIGHT
        + character_overlap(first, second) * OVERLAP_WEIGHT
        + containment * CONTAINMENT_WEIGHT
    )
    return max(blended, containment)
