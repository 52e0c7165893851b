"""Tests for selector parsing and two-tier candidate matching."""

import pytest

from fieldrules.selectors import (
    make_candidate_filters,
    match_candidates,
    parse_selector,
)
from fieldrules.types import FieldError


def err(field, scope=None, rule="required", id=None, msg=None):
    return FieldError(field=field, scope=scope, rule=rule, id=id, msg=msg or f"{field}:{rule}")


# =============================================================================
# parse_selector
# =============================================================================


class TestParseSelector:
    def test_bare_name(self):
        parsed = parse_selector("password")
        assert parsed.name == "password"
        assert parsed.scope is None
        assert parsed.rule is None
        assert not parsed.is_id

    def test_scope_name_and_rule(self):
        parsed = parse_selector("signup.password:min")
        assert parsed.scope == "signup"
        assert parsed.name == "password"
        assert parsed.rule == "min"

    def test_dotted_name_keeps_remaining_dots(self):
        parsed = parse_selector("a.b.c")
        assert parsed.scope == "a"
        assert parsed.name == "b.c"

    def test_hyphenated_parts(self):
        parsed = parse_selector("sign-up.first-name")
        assert parsed.scope == "sign-up"
        assert parsed.name == "first-name"

    def test_id_form(self):
        parsed = parse_selector("#_7:required")
        assert parsed.is_id
        assert parsed.id == "_7:required"
        assert parsed.rule == "required"
        assert parsed.name is None


# =============================================================================
# make_candidate_filters
# =============================================================================


class TestCandidateFilters:
    def test_unscoped_selector_only_matches_unscoped_items(self):
        filters = make_candidate_filters("email")
        assert filters.is_primary(err("email"))
        assert not filters.is_primary(err("email", scope="signup"))

    def test_scoped_selector_requires_exact_scope(self):
        filters = make_candidate_filters("signup.email")
        assert filters.is_primary(err("email", scope="signup"))
        assert not filters.is_primary(err("email", scope="login"))
        assert not filters.is_primary(err("email"))

    def test_rule_narrows_match(self):
        filters = make_candidate_filters("email:email")
        assert filters.is_primary(err("email", rule="email"))
        assert not filters.is_primary(err("email", rule="required"))

    def test_alt_matches_literal_dotted_field_name(self):
        filters = make_candidate_filters("user.email")
        item = err("user.email")
        assert not filters.is_primary(item)
        assert filters.is_alt(item)

    def test_unscoped_selector_has_no_alt(self):
        filters = make_candidate_filters("email")
        assert not filters.is_alt(err("None.email"))

    def test_id_filter(self):
        filters = make_candidate_filters("#_3")
        assert filters.is_primary(err("email", id="_3"))
        assert not filters.is_primary(err("email", id="_4"))
        assert not filters.is_primary(err("email"))

    def test_delimited_id_does_not_match_longer_id(self):
        filters = make_candidate_filters("#_10_")
        assert filters.is_primary(err("email", id="_10_"))
        assert not filters.is_primary(err("email", id="_1_"))

    def test_id_filter_with_rule(self):
        filters = make_candidate_filters("#_3:min")
        assert filters.is_primary(err("email", id="_3", rule="min"))
        assert not filters.is_primary(err("email", id="_3", rule="required"))


# =============================================================================
# match_candidates
# =============================================================================


class TestMatchCandidates:
    def test_first_primary_wins(self):
        first = err("email", msg="first")
        second = err("email", msg="second")
        match = match_candidates([first, second], make_candidate_filters("email"))
        assert match.primary is first
        assert match.best is first

    def test_primary_beats_earlier_alt(self):
        alt = err("user.email")
        primary = err("email", scope="user")
        match = match_candidates([alt, primary], make_candidate_filters("user.email"))
        assert match.best is primary
        assert match.alt is alt

    def test_falls_back_to_last_alt(self):
        first_alt = err("user.email", msg="one")
        last_alt = err("user.email", msg="two")
        match = match_candidates([first_alt, last_alt], make_candidate_filters("user.email"))
        assert match.primary is None
        assert match.best is last_alt

    @pytest.mark.parametrize("items", [[], [err("other")]])
    def test_no_match(self, items):
        assert match_candidates(items, make_candidate_filters("email")).best is None
