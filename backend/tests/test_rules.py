"""Tests for the built-in rules."""

from datetime import date

import pytest

from fieldrules.rules import BUILTIN_RULES
from fieldrules.rules.builtin import (
    after,
    alpha,
    alpha_num,
    before,
    confirmed,
    date_format,
    email,
    excluded,
    included,
    max_length,
    max_value,
    min_length,
    min_value,
    numeric,
    regex,
    required,
)


class TestRequired:
    @pytest.mark.parametrize("value", [None, "", "   ", [], {}])
    def test_empty_values_fail(self, value):
        assert required(value, []) is False

    @pytest.mark.parametrize("value", ["x", 0, ["a"], False])
    def test_present_values_pass(self, value):
        assert required(value, []) is True

    def test_false_rejected_when_requested(self):
        assert required(False, [True]) is False
        assert required(False, ["true"]) is False
        assert required(False, ["false"]) is True


class TestTextRules:
    def test_email(self):
        assert email("someone@example.com", [])
        assert not email("someone@", [])
        assert email(["a@b.co", "c@d.io"], [])
        assert not email(["a@b.co", "nope"], [])

    def test_min_and_max_length(self):
        assert min_length("abc", ["3"])
        assert not min_length("ab", ["3"])
        assert not min_length(None, ["1"])
        assert max_length("abc", [3])
        assert not max_length("abcd", [3])
        assert max_length(None, [3])

    def test_character_classes(self):
        assert numeric("0123", [])
        assert not numeric("12.5", [])
        assert alpha("Zoë", [])
        assert not alpha("abc1", [])
        assert alpha_num("abc1", [])
        assert not alpha_num("abc-1", [])

    def test_regex(self):
        assert regex("AB-12", [r"^[A-Z]{2}-\d+$"])
        assert not regex("ab-12", [r"^[A-Z]{2}-\d+$"])


class TestValueRules:
    def test_numeric_bounds(self):
        assert min_value("18", ["18"])
        assert not min_value(5, [18])
        assert not min_value("abc", [1])
        assert max_value(10, ["10.5"])
        assert not max_value(11, [10])

    def test_membership(self):
        assert included("b", ["a", "b"])
        assert included(2, ["1", "2"])
        assert not included("c", ["a", "b"])
        assert excluded("c", ["a", "b"])
        assert not excluded("a", ["a", "b"])

    def test_confirmed(self):
        assert confirmed("secret", ["secret"])
        assert not confirmed("secret", ["other"])


class TestDateRules:
    def test_date_format(self):
        assert date_format("2024-02-29", ["%Y-%m-%d"])
        assert not date_format("2024-02-30", ["%Y-%m-%d"])
        assert not date_format("29/02/2024", ["%Y-%m-%d"])

    def test_after_and_before(self):
        fmt = "%Y-%m-%d"
        assert after("2024-01-02", ["2024-01-01", fmt])
        assert not after("2024-01-01", ["2024-01-01", fmt])
        assert after("2024-01-01", ["2024-01-01", "true", fmt])
        assert before("2023-12-31", ["2024-01-01", fmt])
        assert not before("bad", ["2024-01-01", fmt])

    def test_accepts_date_objects(self):
        assert after(date(2024, 3, 1), ["2024-02-01", "%Y-%m-%d"])


def test_builtin_options():
    assert BUILTIN_RULES["confirmed"][1] == {"has_target": True}
    assert BUILTIN_RULES["after"][1] == {"has_target": True, "is_date": True}
    assert BUILTIN_RULES["date_format"][1] == {"is_date": True}
