"""Domain Types - tests for enum values and judge language mapping."""

from codeshuffle.core.domain_types import (
    JUDGE0_LANGUAGE_IDS, TIER_ORDER, Difficulty, Language,
)


def test_tier_order_is_easy_medium_hard():
    assert [t.value for t in TIER_ORDER] == ["easy", "medium", "hard"]


def test_every_language_has_a_judge_id():
    assert set(JUDGE0_LANGUAGE_IDS) == set(Language)
    assert JUDGE0_LANGUAGE_IDS[Language.PYTHON3] == 71
    assert JUDGE0_LANGUAGE_IDS[Language.JAVA] == 62
    assert JUDGE0_LANGUAGE_IDS[Language.CPP] == 54
    assert JUDGE0_LANGUAGE_IDS[Language.C] == 50


def test_enums_are_str():
    assert Difficulty("hard") == "hard"
    assert Language("cpp") == "cpp"
