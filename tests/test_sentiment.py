"""Tests for keyword-based sentiment scoring and theme extraction."""

import pytest

from rto_dashboard.analysis.sentiment import (
    KEYWORD_MAX_CONFIDENCE,
    MAX_THEMES,
    analyze_with_keywords,
    extract_themes,
)


def test_empty_text_is_neutral():
    result = analyze_with_keywords("")
    assert result.sentiment == 0
    assert result.themes == []
    assert result.confidence == 0


def test_none_and_whitespace_are_neutral():
    assert analyze_with_keywords(None).sentiment == 0
    assert analyze_with_keywords("   \n\t").themes == []


def test_repeated_positive_word_scores_positive():
    text = "excellent " * 3 + "the course ran over several weeks at the main campus with many people"
    assert len(text.split()) >= 15
    result = analyze_with_keywords(text)
    assert result.sentiment > 0
    # three hits against a denominator floor of five
    assert result.sentiment == pytest.approx(0.6)


def test_only_negative_words_score_negative():
    result = analyze_with_keywords("The session was boring and the notes were confusing.")
    assert result.sentiment < 0


def test_balanced_words_score_zero():
    result = analyze_with_keywords("Great venue but terrible catering; good notes, bad timing.")
    assert result.sentiment == 0


def test_denominator_floor_damps_single_keyword():
    result = analyze_with_keywords("Great")
    assert result.sentiment == pytest.approx(0.2)


def test_many_keywords_reach_full_score():
    result = analyze_with_keywords("great good excellent amazing wonderful fantastic")
    assert result.sentiment == 1.0


def test_whole_word_matching_only():
    # "goodness" and "badly" must not count as "good" / "bad"
    result = analyze_with_keywords("Goodness me, it went badly")
    assert result.sentiment == 0


def test_matching_is_case_insensitive():
    assert analyze_with_keywords("EXCELLENT").sentiment > 0


def test_theme_extraction_in_mapping_order():
    themes = extract_themes("The assessment was fair and the trainer explained the material well")
    assert themes == ["Trainer Quality", "Course Content", "Assessment"]


def test_theme_triggers_need_whole_words():
    assert extract_themes("The contestant roomed nearby") == []


def test_hyphenated_trigger():
    assert "Practical Skills" in extract_themes("Loved the hands-on sessions")


def test_themes_capped():
    text = (
        "trainer content practical venue support schedule exam communication"
    )
    themes = extract_themes(text)
    assert len(themes) == MAX_THEMES
    assert len(set(themes)) == len(themes)


def test_confidence_capped_for_keyword_method():
    result = analyze_with_keywords("excellent great good helpful clear trainer support")
    assert result.confidence == KEYWORD_MAX_CONFIDENCE


def test_confidence_uses_word_floor():
    # one keyword, no themes, two words -> 1 / max(2, 10)
    result = analyze_with_keywords("Really good")
    assert result.confidence == pytest.approx(0.1)


def test_no_keyword_hits_gives_zero_confidence():
    result = analyze_with_keywords("We attended on Tuesday afternoon")
    assert result.sentiment == 0
    assert result.themes == []
    assert result.confidence == 0


@pytest.mark.parametrize("text", [
    "terrible awful bad poor useless",
    "excellent " * 50,
    "a b c d e f g h i j k l m n o p",
    "trainer trainer trainer great",
    "!!!???",
])
def test_scores_stay_in_range(text):
    result = analyze_with_keywords(text)
    assert -1 <= result.sentiment <= 1
    assert 0 <= result.confidence <= KEYWORD_MAX_CONFIDENCE


def test_to_dict():
    assert analyze_with_keywords("").to_dict() == {"sentiment": 0.0, "themes": [], "confidence": 0.0}
