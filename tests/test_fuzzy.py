"""Tests for keyword matching."""

from shopkeep import fuzzy


def test_blank_keyword_or_text_never_matches():
    assert fuzzy.score("", "Keyboard") == 0
    assert fuzzy.score("   ", "Keyboard") == 0
    assert fuzzy.score("key", None) == 0
    assert not fuzzy.match(None, "Keyboard")


def test_substring_scores_full_marks_ignoring_case():
    assert fuzzy.score("BOARD", "Mechanical Keyboard") == 100
    assert fuzzy.match("  mouse ", "Wireless Mouse")


def test_typo_still_matches_above_threshold():
    assert fuzzy.match("keybaord", "Mechanical Keyboard")


def test_unrelated_text_does_not_match():
    assert not fuzzy.match("teapot", "Wireless Mouse")


def test_match_any_checks_every_text():
    assert fuzzy.match_any("kb-01", "Mechanical Keyboard", "KB-01")
    assert not fuzzy.match_any("zzz", "Mechanical Keyboard", "KB-01")


def test_threshold_is_respected():
    s = fuzzy.score("keybaord", "Mechanical Keyboard")
    assert fuzzy.match("keybaord", "Mechanical Keyboard", threshold=s)
    assert not fuzzy.match("keybaord", "Mechanical Keyboard", threshold=s + 1)
