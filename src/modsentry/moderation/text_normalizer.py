"""
Text normalization pipeline for obfuscation-resistant matching.

A message is turned into a small, ordered set of candidate strings
("variants"), each undoing one family of evasion tricks:

1. ``basic_normalize``: lowercase and collapse whitespace.
2. ``apply_substitutions``: leetspeak, symbols and Cyrillic look-alikes to
   Latin letters; separators dropped.
3. ``collapse_bypass_patterns``: spaced-out letters joined, long runs squeezed.
4. ``letters_only``, ``remove_spaces``, ``collapse_duplicates`` and
   ``phonetic_variation`` derived from the result.
5. Script transliteration of the raw input, itself deep-normalized.

Every step is a pure function of its input, so ``generate_variants`` is
deterministic and normalizing an already-normalized string changes nothing.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Sequence, Tuple

from modsentry.moderation.transliteration import GEORGIAN, TransliterationScheme

# Applied in order, before single characters, so "\/\/" is not read as "\/" twice.
MULTI_CHAR_SUBSTITUTIONS: Tuple[Tuple[str, str], ...] = (
    ("\\/\\/", "w"),
    ("\\/", "v"),
    ("|\\|", "n"),
    ("|_|", "u"),
    ("vv", "w"),
)

SINGLE_CHAR_SUBSTITUTIONS: Dict[str, str] = {
    # digits
    "0": "o", "1": "i", "3": "e", "4": "a", "5": "s",
    "6": "g", "7": "t", "8": "b", "9": "g",
    # symbols
    "@": "a", "!": "i", "$": "s", "|": "i", "+": "t", "#": "h", "€": "e",
    "(": "c", "[": "c", "{": "c", "<": "c",
    # separators
    "-": "", "_": "", ".": "", ",": "", ":": "", ";": "", "/": "", "\\": "",
    "'": "", '"': "", "?": "", "~": "", "`": "",
    ")": "", "]": "", "}": "", ">": "",
    # Cyrillic look-alikes
    "а": "a", "е": "e", "о": "o", "р": "p", "с": "c", "у": "y", "х": "x",
    "і": "i", "ј": "j", "ѕ": "s", "к": "k", "м": "m", "т": "t", "в": "b", "н": "h",
}

_SINGLE_CHAR_TABLE = str.maketrans(SINGLE_CHAR_SUBSTITUTIONS)


def _build_lookalike_alternates() -> Dict[str, Tuple[str, ...]]:
    alternates: Dict[str, List[str]] = {}
    for source, target in SINGLE_CHAR_SUBSTITUTIONS.items():
        if target:
            alternates.setdefault(target, []).append(source)
    return {letter: tuple(chars) for letter, chars in alternates.items()}


# letter -> characters commonly typed in its place; used by the sequence matcher
LOOKALIKE_ALTERNATES: Dict[str, Tuple[str, ...]] = _build_lookalike_alternates()

PHONETIC_FOLDS: Tuple[Tuple[str, str], ...] = (
    ("ph", "f"),
    ("ck", "k"),
    ("kw", "qu"),
    ("ks", "x"),
    ("shun", "tion"),
    ("sion", "tion"),
)

_WHITESPACE_RE = re.compile(r"\s+")
_SPACED_LETTERS_RE = re.compile(r"(?<!\S)\S(?:\s+\S(?!\S)){2,}(?!\S)")
_LONG_RUN_RE = re.compile(r"(.)\1{2,}")
_ANY_RUN_RE = re.compile(r"(.)\1+")
_DOTTED_LETTERS_RE = re.compile(r"(?<=[^\W\d_])[.\-]+(?=[^\W\d_])")
_WEDGED_DIGITS_RE = re.compile(r"(?<=[^\W\d_])\d+(?=[^\W\d_])")

MIN_VARIANT_LENGTH = 2


def basic_normalize(text: str) -> str:
    """Lowercase, collapse whitespace runs to one space and trim."""
    return _WHITESPACE_RE.sub(" ", text.lower()).strip()


def apply_substitutions(text: str) -> str:
    """Replace leetspeak and look-alike characters with Latin letters."""
    for sequence, replacement in MULTI_CHAR_SUBSTITUTIONS:
        text = text.replace(sequence, replacement)
    return text.translate(_SINGLE_CHAR_TABLE)


def collapse_bypass_patterns(text: str) -> str:
    """
    Undo spacing and padding tricks.

    - three or more single characters separated by spaces are joined
      ("f u c k" -> "fuck")
    - runs of three or more identical characters become one
    - letters separated by dots or dashes are joined
    - digits wedged between letters are dropped
    """
    text = _SPACED_LETTERS_RE.sub(lambda match: _WHITESPACE_RE.sub("", match.group(0)), text)
    text = _LONG_RUN_RE.sub(r"\1", text)
    text = _DOTTED_LETTERS_RE.sub("", text)
    return _WEDGED_DIGITS_RE.sub("", text)


def letters_only(text: str, scheme: Optional[TransliterationScheme] = GEORGIAN) -> str:
    """Keep Latin letters, the scheme's script letters and spaces."""
    extra = scheme.letter_range if scheme is not None else ""
    return re.sub(rf"[^a-z{extra}\s]", "", text)


def remove_spaces(text: str) -> str:
    return _WHITESPACE_RE.sub("", text)


def collapse_duplicates(text: str) -> str:
    """Squeeze every run of repeated characters to one ("baaad" -> "bad")."""
    return _ANY_RUN_RE.sub(r"\1", text)


def phonetic_variation(text: str) -> str:
    """Fold common phonetic spellings to a canonical form ("phuck" -> "fuk")."""
    for spelling, canonical in PHONETIC_FOLDS:
        text = text.replace(spelling, canonical)
    return text


def deep_normalize_text(text: str, scheme: Optional[TransliterationScheme] = GEORGIAN) -> List[str]:
    """
    Run the substitution and bypass steps and derive the cleaned variants.

    Returns (in order): the substituted text, its letters-only form, that form
    without spaces, with duplicates collapsed, and its phonetic fold. Empty
    strings are dropped; duplicates are kept for ``generate_variants`` to merge.
    """
    normalized = collapse_bypass_patterns(apply_substitutions(basic_normalize(text)))
    letters = letters_only(normalized, scheme)
    variants = [
        normalized,
        letters,
        remove_spaces(letters),
        collapse_duplicates(letters),
        phonetic_variation(letters),
    ]
    return [variant for variant in variants if variant]


def _dedupe(candidates: Sequence[str]) -> List[str]:
    seen = set()
    ordered: List[str] = []
    for candidate in candidates:
        candidate = candidate.strip()
        if len(candidate) < MIN_VARIANT_LENGTH or candidate in seen:
            continue
        seen.add(candidate)
        ordered.append(candidate)
    return ordered


def generate_variants(
    text: str,
    scheme: Optional[TransliterationScheme] = GEORGIAN,
    enable_transliteration: bool = True,
) -> List[str]:
    """
    Build the ordered, de-duplicated set of candidate strings for ``text``.

    The raw lowercase input comes first, then the deep-normalized variants,
    then (when enabled and a scheme is given) the transliterated text and its
    deep-normalized variants. Non-string input yields an empty list.
    """
    if not isinstance(text, str):
        return []

    lowered = basic_normalize(text)
    if not lowered:
        return []

    candidates = [lowered, *deep_normalize_text(lowered, scheme)]
    if enable_transliteration and scheme is not None:
        converted = scheme.convert(lowered)
        candidates.append(converted)
        candidates.extend(deep_normalize_text(converted, scheme))

    return _dedupe(candidates)
