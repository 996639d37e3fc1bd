import itertools

import pytest

from leadqueue.matching.scoring import (
    Confidence,
    edit_distance,
    fuzzy_name_match,
    match_confidence,
    phones_match,
    similarity,
)


@pytest.mark.parametrize(
    "a, b, expected",
    [
        ("kitten", "sitting", 3),
        ("", "abc", 3),
        ("abc", "", 3),
        ("same", "same", 0),
        ("flaw", "lawn", 2),
    ],
)
def test_edit_distance(a, b, expected):
    assert edit_distance(a, b) == expected


@pytest.mark.parametrize("value", ["a", "ali khan", "loafers"])
def test_similarity_identical_is_100(value):
    assert similarity(value, value) == 100


def test_similarity_with_empty_is_0():
    assert similarity("", "x") == 0
    assert similarity("x", "") == 0


def test_similarity_scales_with_distance():
    assert similarity("kitten", "sitting") == 57
    assert similarity("abcd", "wxyz") == 0


def test_fuzzy_name_match_orders_and_first_name_only():
    assert fuzzy_name_match("Ali Khan", "Ali", "Khan") == 100
    assert fuzzy_name_match("khan ali", "Ali", "Khan") == 100
    assert fuzzy_name_match("ALI", "Ali", "Khan") == 100
    assert fuzzy_name_match("Ali", "Ali", None) == 100


def test_fuzzy_name_match_missing_values():
    assert fuzzy_name_match("", "Ali", "Khan") == 0
    assert fuzzy_name_match("Ali", None, None) == 0


PHONES = [
    "+971501234567",
    "0501234567",
    "501234567",
    "1234567",
    "+44 20 7946 0958",
    "",
    None,
]


@pytest.mark.parametrize("a, b", list(itertools.product(PHONES, repeat=2)))
def test_phones_match_is_symmetric(a, b):
    assert phones_match(a, b) == phones_match(b, a)


def test_phones_match_suffix_and_empty():
    assert phones_match("+971501234567", "0501234567")
    assert phones_match("501234567", "1234567")
    assert not phones_match("501234567", "501234568")
    assert not phones_match("", "")
    assert not phones_match(None, "0501234567")


def test_match_confidence_high_for_same_person_across_systems():
    result = match_confidence("+971501234567", "ali khan", "0501234567", "Ali", "Khan")

    assert result.phone_match is True
    assert result.name_score == 100
    assert result.confidence is Confidence.HIGH
    assert result.as_dict() == {"phoneMatch": True, "nameScore": 100, "confidence": "high"}


def test_match_confidence_medium_for_partial_name():
    result = match_confidence("0501234567", "Ali K", "0501234567", "Ali", "Khan")

    assert result.phone_match is True
    assert 50 <= result.name_score < 70
    assert result.confidence is Confidence.MEDIUM


def test_match_confidence_low_when_only_phone_matches():
    result = match_confidence("0501234567", "zzzz", "0501234567", "Ali", "Khan")

    assert result.phone_match is True
    assert result.name_score < 50
    assert result.confidence is Confidence.LOW


def test_match_confidence_none_without_phone_match_even_for_same_name():
    result = match_confidence("0501234567", "Ali Khan", "0559999999", "Ali", "Khan")

    assert result.phone_match is False
    assert result.name_score == 100
    assert result.confidence is Confidence.NONE
