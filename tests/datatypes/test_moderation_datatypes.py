import pytest

from modsentry.datatypes.moderation_datatypes import (
    ActionType,
    AnalysisOptions,
    AnalysisResult,
    BadWordEntry,
    MatchMethod,
    Sensitivity,
    Severity,
    WordCategory,
    WordMatch,
    normalize_word,
    scope_key,
)
from modsentry.moderation.exceptions import ModerationError, ValidationError


def test_parse_accepts_members_values_and_names():
    assert Severity.parse(Severity.HIGH) is Severity.HIGH
    assert Severity.parse(" High ") is Severity.HIGH
    assert ActionType.parse("TIMEOUT") is ActionType.TIMEOUT
    assert WordCategory.parse("georgian") is WordCategory.GEORGIAN


@pytest.mark.parametrize("value", ["extreme", "", None, 3])
def test_parse_rejects_unknown_values(value):
    with pytest.raises(ValidationError) as excinfo:
        Severity.parse(value)
    assert "low, medium, high" in str(excinfo.value)


def test_validation_error_is_a_value_error():
    assert issubclass(ValidationError, ValueError)
    assert issubclass(ValidationError, ModerationError)


def test_severity_rank_is_ordinal():
    assert Severity.LOW.rank < Severity.MEDIUM.rank < Severity.HIGH.rank


def test_enum_str_is_value():
    assert str(Sensitivity.MEDIUM) == "medium"
    assert f"{MatchMethod.REVERSE}" == "reverse"


def test_scope_key_and_normalize_word():
    assert scope_key(None) == "global"
    assert scope_key("  ") == "global"
    assert scope_key(42) == "42"
    assert normalize_word("  MiXeD Case ") == "mixed case"
    assert normalize_word(None) == ""


def test_bad_word_entry_is_immutable():
    entry = BadWordEntry("word", scope="1")
    assert entry.is_guild_specific is True
    assert BadWordEntry("word").is_guild_specific is False
    with pytest.raises(AttributeError):
        entry.word = "other"  # type: ignore[misc]


def test_word_match_none():
    match = WordMatch.none()
    assert match.found is False
    assert match.confidence == 0.0
    assert match.method is MatchMethod.NONE


def test_clean_analysis_result():
    result = AnalysisResult.clean("input_validation_fail")
    assert result.is_clean is True
    assert result.detected_words == []
    assert result.severity is Severity.LOW
    assert result.recommended_action is ActionType.WARN
    assert result.to_dict()["analysis_method"] == "input_validation_fail"


def test_analysis_options_from_mapping():
    assert AnalysisOptions.from_mapping(None) == AnalysisOptions()

    options = AnalysisOptions.from_mapping(
        {"sensitivity": "HIGH", "enable_script_transliteration": False, "guild_id": 99}
    )
    assert options.sensitivity is Sensitivity.HIGH
    assert options.enable_script_transliteration is False
    assert options.guild_id == "99"

    assert AnalysisOptions.from_mapping({"sensitivity": "bogus"}).sensitivity is Sensitivity.MEDIUM
