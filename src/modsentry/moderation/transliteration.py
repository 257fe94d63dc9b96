"""
Keyboard-layout transliteration for dual-script communities.

Members of a Georgian server often type Georgian words on a Latin QWERTY
layout, either phonetically ("debili") or key-for-key. A banned word stored
in Georgian script would never match that text directly, so the normalizer
produces an extra variant with the text converted to the target script.

A :class:`TransliterationScheme` bundles everything needed for one script:
the Unicode block its letters live in, the key-position table, and a small
dictionary of known whole-word transliterations together with their common
leetspeak spellings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Pattern, Tuple


@dataclass(frozen=True)
class TransliterationScheme:
    """
    Conversion rules from Latin keyboard input to a second script.

    Attributes:
        name: Human readable script name.
        letter_range: Regex character-class fragment for the script's letters
            (used by the letters-only normalization step).
        keyboard_map: Latin key -> target script character, by key position.
        word_forms: Target-script word -> Latin and leetspeak spellings of it.
    """

    name: str
    letter_range: str
    keyboard_map: Mapping[str, str]
    word_forms: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Longest spellings first so "sheni deda" wins over any shorter form.
        patterns: List[Tuple[Pattern[str], str]] = []
        for native, spellings in self.word_forms.items():
            for spelling in spellings:
                patterns.append((
                    re.compile(rf"\b{re.escape(spelling)}\b", re.IGNORECASE),
                    native,
                ))
        patterns.sort(key=lambda item: len(item[0].pattern), reverse=True)
        object.__setattr__(self, "_word_patterns", tuple(patterns))
        object.__setattr__(self, "_key_table", str.maketrans(dict(self.keyboard_map)))

    def convert(self, text: str) -> str:
        """
        Convert Latin-typed text to the target script.

        Known whole words (and their leetspeak spellings) are replaced first;
        every remaining Latin key is then mapped by keyboard position.
        """
        converted = text.lower()
        for pattern, native in self._word_patterns:  # type: ignore[attr-defined]
            converted = pattern.sub(native, converted)
        return converted.translate(self._key_table)  # type: ignore[attr-defined]


GEORGIAN_QWERTY_MAP: Dict[str, str] = {
    "q": "ქ", "w": "წ", "e": "ე", "r": "რ", "t": "ტ", "y": "ყ", "u": "უ", "i": "ი", "o": "ო", "p": "პ",
    "a": "ა", "s": "ს", "d": "დ", "f": "ფ", "g": "გ", "h": "ჰ", "j": "ჯ", "k": "კ", "l": "ლ",
    "z": "ზ", "x": "ხ", "c": "ც", "v": "ვ", "b": "ბ", "n": "ნ", "m": "მ",
}

GEORGIAN_WORD_FORMS: Dict[str, Tuple[str, ...]] = {
    "დებილი": ("debili", "d3bili", "deb1li", "d3b1li", "dibili"),
    "შენი დედა": ("sheni deda", "sh3ni d3da", "sheni d3da"),
    "მოკვდი": ("mokvdi", "m0kvdi"),
    "ბოზი": ("bozi", "b0zi", "boz1"),
    "ძაღლი": ("dzaghli", "zaghli", "z4ghli"),
    "კურვა": ("kurva", "kurv4"),
    "ყლე": ("qle", "yle", "ql3", "yl3"),
    "უბედური": ("ubeduri", "ub3duri"),
    "სულელი": ("suleli", "sul3li"),
    "ცუდი": ("cudi", "cud1"),
}

GEORGIAN = TransliterationScheme(
    name="georgian",
    letter_range="Ⴀ-ჿ",
    keyboard_map=GEORGIAN_QWERTY_MAP,
    word_forms=GEORGIAN_WORD_FORMS,
)
