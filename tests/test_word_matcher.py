import pytest

from modsentry.datatypes.moderation_datatypes import MatchMethod
from modsentry.moderation import word_matcher as wm


def test_direct_substring_is_conclusive():
    match = wm.detect_word_with_advanced_matching("you are an idiot today", "idiot")
    assert match.found is True
    assert match.confidence == 1.0
    assert match.method is MatchMethod.DIRECT


def test_leetspeak_is_matched_directly_after_substitution():
    match = wm.detect_word_with_advanced_matching("y0u 4re stup1d", "stupid", enable_transliteration=False)
    assert match.found is True
    assert match.confidence >= 0.85
    assert match.method is MatchMethod.DIRECT
    assert match.matched_variant == "you are stupid"


def test_spaced_out_letters_are_matched():
    match = wm.detect_word_with_advanced_matching("what a s t u p i d idea", "stupid", enable_transliteration=False)
    assert match.found is True
    assert match.method is MatchMethod.DIRECT


def test_reversed_word_gets_reverse_confidence():
    match = wm.detect_word_with_advanced_matching("you are so xlivex", "evil", enable_transliteration=False)
    assert match.found is True
    assert match.method is MatchMethod.REVERSE
    assert match.confidence == pytest.approx(wm.REVERSE_CONFIDENCE)


def test_empty_or_non_string_target_returns_none():
    for target in ("", "   ", None):
        match = wm.detect_word_with_advanced_matching("anything at all", target)
        assert match.found is False
        assert match.method is MatchMethod.NONE
        assert match.confidence == 0.0


def test_clean_text_does_not_match():
    match = wm.detect_word_with_advanced_matching("hello there", "badword", enable_transliteration=False)
    assert match.found is False


def test_precomputed_variants_are_used_as_given():
    # the raw text would match, the supplied variants do not
    match = wm.detect_word_with_advanced_matching("idiot", "idiot", variants=["hello world"])
    assert match.found is False


def test_latin_typed_georgian_matches_native_word():
    match = wm.detect_word_with_advanced_matching("shen xar debili", "დებილი")
    assert match.found is True
    assert match.method is MatchMethod.DIRECT


def test_transliteration_disabled_skips_native_word():
    match = wm.detect_word_with_advanced_matching("shen xar debili", "დებილი", enable_transliteration=False)
    assert match.found is False


def test_token_similarity_scores_close_tokens():
    match = wm.match_token_similarity("you idiots", "idiot", 0.85)
    assert match is not None
    assert match.method is MatchMethod.SIMILARITY
    assert 0.85 <= match.confidence < 1.0
    # single letters are skipped
    assert wm.match_token_similarity("i d", "id", 0.5) is None


def test_fuzzy_substring_respects_threshold():
    assert wm.find_fuzzy_substring("xxidiatxx", "idiot", 0.7) > 0.7
    assert wm.find_fuzzy_substring("xxidiatxx", "idiot", 0.9) == 0.0


def test_character_sequence_with_gaps_and_lookalikes():
    assert wm.detect_character_sequence("s-t-u-p-i-d", "stupid") is True
    assert wm.detect_character_sequence("y0u 4re stup1d", "stupid") is True
    assert wm.detect_character_sequence("hello there", "stupid") is False
    assert wm.detect_character_sequence("anything", "") is False


def test_matchers_run_in_fixed_order():
    assert wm.MATCHERS == (
        wm.match_direct,
        wm.match_token_similarity,
        wm.match_fuzzy,
        wm.match_sequence,
        wm.match_reversed,
    )
