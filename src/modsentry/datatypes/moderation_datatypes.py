"""
Data structures used by the content moderation engine.

This module defines the enums shared by the engine, the store and the bot
layer (Severity, Sensitivity, ActionType, WordCategory, MatchMethod), the
immutable BadWordEntry record, and the values produced by an analysis
(WordMatch, DetectionDetail, AnalysisResult) plus the per-call
AnalysisOptions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from modsentry.moderation.exceptions import ValidationError


class ParsableEnum(Enum):
    """Enum base with a forgiving ``parse`` for user and database input."""

    @classmethod
    def parse(cls, value: Any):
        """
        Convert ``value`` (member, value string, or member name) to a member.

        Raises:
            ValidationError: If the value does not name a member.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            text = value.strip().lower()
            for member in cls:
                if member.value == text or member.name.lower() == text:
                    return member
        allowed = ", ".join(member.value for member in cls)
        raise ValidationError(f"Invalid {cls.__name__} {value!r}; expected one of: {allowed}")

    def __str__(self) -> str:
        return self.value


class Severity(ParsableEnum):
    """Ordinal severity attached to a word entry."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANKS[self]


_SEVERITY_RANKS: Dict[Severity, int] = {
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
}


class Sensitivity(ParsableEnum):
    """Three-tier policy knob controlling thresholds and flagging."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ActionType(ParsableEnum):
    """Remedial actions the content filter can take or recommend."""

    WARN = "warn"
    DELETE = "delete"
    TIMEOUT = "timeout"
    KICK = "kick"


class WordCategory(ParsableEnum):
    """Language tag of a built-in word list, or ``custom`` for guild-managed words."""

    ENGLISH = "english"
    GEORGIAN = "georgian"
    HARASSMENT = "harassment"
    CUSTOM = "custom"


class MatchMethod(ParsableEnum):
    """Which matcher produced a detection."""

    DIRECT = "direct"
    SIMILARITY = "similarity"
    FUZZY = "fuzzy"
    SEQUENCE = "sequence"
    REVERSE = "reverse"
    NONE = "none"


GLOBAL_SCOPE_KEY = "global"


def scope_key(scope: Optional[Any]) -> str:
    """Return the cache key for a scope: the guild id string, or ``"global"``."""
    if scope is None:
        return GLOBAL_SCOPE_KEY
    text = str(scope).strip()
    return text or GLOBAL_SCOPE_KEY


def normalize_word(word: Any) -> str:
    """Lowercase and trim a word; non-strings normalize to an empty string."""
    if not isinstance(word, str):
        return ""
    return word.strip().lower()


@dataclass(frozen=True, slots=True)
class BadWordEntry:
    """
    One banned word as stored in the word list.

    Entries are never edited in place: an edit is a remove followed by an add.

    Attributes:
        word: Lowercase, trimmed word or phrase.
        category: Language tag or ``custom``.
        severity: How bad a match is.
        scope: Guild id string, or None for a global entry.
        added_by: Free-form moderator tag of whoever added the entry.
    """

    word: str
    category: WordCategory = WordCategory.CUSTOM
    severity: Severity = Severity.MEDIUM
    scope: Optional[str] = None
    added_by: Optional[str] = None

    @property
    def is_guild_specific(self) -> bool:
        return self.scope is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "word": self.word,
            "category": self.category.value,
            "severity": self.severity.value,
            "scope": self.scope,
            "added_by": self.added_by,
        }


@dataclass(frozen=True, slots=True)
class WordMatch:
    """Best match of one target word against a message."""

    found: bool
    confidence: float
    method: MatchMethod
    matched_variant: str = ""

    @classmethod
    def none(cls) -> "WordMatch":
        return cls(found=False, confidence=0.0, method=MatchMethod.NONE, matched_variant="")


@dataclass(frozen=True, slots=True)
class DetectionDetail:
    """A detection that cleared the sensitivity threshold."""

    word: str
    category: WordCategory
    severity: Severity
    confidence: float
    method: MatchMethod
    matched_variant: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "word": self.word,
            "category": self.category.value,
            "severity": self.severity.value,
            "confidence": round(self.confidence, 4),
            "method": self.method.value,
            "matched_variant": self.matched_variant,
        }


@dataclass(slots=True)
class AnalysisResult:
    """
    Outcome of analyzing one message.

    Attributes:
        is_clean: False when the content should be flagged.
        detected_words: Words that cleared the threshold, in word-list order.
        detected_details: Per-word detection metadata.
        severity: Highest severity among the detections (LOW when none).
        confidence: Capped weighted sum of detection confidences, in [0, 1].
        recommended_action: Action suggested by severity and detection count.
        analysis_method: ``advanced_pattern_matching`` or ``input_validation_fail``.
    """

    is_clean: bool
    detected_words: List[str] = field(default_factory=list)
    detected_details: List[DetectionDetail] = field(default_factory=list)
    severity: Severity = Severity.LOW
    confidence: float = 0.0
    recommended_action: ActionType = ActionType.WARN
    analysis_method: str = "advanced_pattern_matching"

    @classmethod
    def clean(cls, analysis_method: str = "advanced_pattern_matching") -> "AnalysisResult":
        return cls(is_clean=True, analysis_method=analysis_method)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_clean": self.is_clean,
            "detected_words": list(self.detected_words),
            "detected_details": [detail.to_dict() for detail in self.detected_details],
            "severity": self.severity.value,
            "confidence": round(self.confidence, 4),
            "recommended_action": self.recommended_action.value,
            "analysis_method": self.analysis_method,
        }


@dataclass(frozen=True, slots=True)
class AnalysisOptions:
    """Per-call analysis options."""

    sensitivity: Sensitivity = Sensitivity.MEDIUM
    enable_script_transliteration: bool = True
    guild_id: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "AnalysisOptions":
        """
        Build options from a loose mapping, applying defaults.

        An unknown sensitivity falls back to MEDIUM instead of failing, since
        analysis must never raise because of its inputs.
        """
        if not data:
            return cls()

        try:
            sensitivity = Sensitivity.parse(data.get("sensitivity", Sensitivity.MEDIUM))
        except ValidationError:
            sensitivity = Sensitivity.MEDIUM

        guild_id = data.get("guild_id")
        return cls(
            sensitivity=sensitivity,
            enable_script_transliteration=bool(data.get("enable_script_transliteration", True)),
            guild_id=None if guild_id is None else str(guild_id),
        )
