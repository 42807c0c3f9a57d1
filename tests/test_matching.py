"""Tests for structural pattern matching."""

import pytest

from pyclif.matching import freeze, is_pattern, matches, specificity
from pyclif.models import Fail


class TestMatches:
    """Tests for matches."""

    def test_subset(self):
        assert matches({"ns": "io"}, {"ns": "io", "op": "read", "path": "x"})
        assert matches({"ns": "io", "op": "read"}, {"ns": "io", "op": "read", "path": "x"})

    def test_missing_key(self):
        assert not matches({"ns": "io", "op": "write"}, {"ns": "io", "op": "read"})
        assert not matches({"ns": "io", "op": "read"}, {"ns": "io"})

    def test_values_compared_by_equality(self):
        assert matches({"code": 1}, {"code": 1, "ns": "exit"})
        assert not matches({"code": 1}, {"code": "1"})

    def test_nested(self):
        candidate = {"ns": "http", "req": {"method": "GET", "url": "/"}}
        assert matches({"req": {"method": "GET"}}, candidate)
        assert not matches({"req": {"method": "POST"}}, candidate)
        assert not matches({"ns": {"sub": 1}}, candidate)

    def test_empty_pattern_matches_everything(self):
        assert matches({}, {"ns": "io"})
        assert matches({}, 42)

    def test_non_mapping_candidate(self):
        assert not matches({"ns": "io"}, "io")
        assert not matches({"ns": "io"}, None)

    def test_class_pattern(self):
        assert matches(ValueError, ValueError("boom"))
        assert matches(Exception, KeyError("k"))
        assert not matches(KeyError, ValueError("boom"))
        assert not matches(ValueError, {"ns": "io"})

    def test_error_matched_through_failure_fields(self):
        err = Fail({"ns": "io", "path": "a.txt"}, "cannot read")
        assert matches({"ns": "io"}, err)
        assert matches({"ns": "io", "path": "a.txt"}, err)
        assert not matches({"ns": "io", "path": "b.txt"}, err)

    def test_plain_error_has_failure_namespace(self):
        err = ValueError("bad")
        assert matches({"ns": "failure"}, err)
        assert matches({"error": "ValueError"}, err)
        assert not matches({"ns": "io"}, err)


class TestSpecificity:
    """Tests for specificity."""

    def test_more_keys_rank_higher(self):
        assert specificity({"ns": "io", "op": "read"}) > specificity({"ns": "io"})

    def test_nested_leaves_count(self):
        assert specificity({"req": {"method": "GET", "url": "/"}}) > specificity({"req": {"method": "GET"}})
        assert specificity({"req": {"method": "GET"}}) > specificity({"req": "x"})

    def test_classes(self):
        assert specificity(ValueError) > specificity(Exception)
        assert specificity({"ns": "io"}) > specificity(KeyError)
        assert specificity(Exception) > specificity({})


def test_freeze_copies_pattern():
    pattern = {"ns": "io", "opts": {"mode": "r"}}
    frozen = freeze(pattern)
    pattern["ns"] = "print"
    pattern["opts"]["mode"] = "w"
    assert frozen["ns"] == "io"
    assert frozen["opts"]["mode"] == "r"
    with pytest.raises(TypeError):
        frozen["ns"] = "other"  # type: ignore[index]


def test_freeze_keeps_classes():
    assert freeze(ValueError) is ValueError


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ({"ns": "io"}, True),
        ({}, True),
        (ValueError, True),
        ("io", False),
        (42, False),
        (None, False),
    ],
)
def test_is_pattern(value, expected):
    assert is_pattern(value) is expected
