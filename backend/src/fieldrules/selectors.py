"""Selector parsing and matching for field errors.

Selector grammar:
    [scope.]name[:rule]     e.g. "password", "signup.password", "signup.password:min"
    #id[:rule]              e.g. "#f_3", "#f_3:required"

A selector yields two predicates over FieldError-like items (anything with
``field``, ``scope``, ``rule`` and ``id`` attributes):
- primary: scope, name and (optional) rule all match; a selector without a
  scope only matches scope-less items
- alt: the item's field name literally equals "scope.name", for fields
  whose own name contains a dot
"""

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, TypeVar

T = TypeVar("T")

SELECTOR_PATTERN = re.compile(r"([\w-]+\.)?([\w.-]+)(:\w+)?")


@dataclass(frozen=True)
class Selector:
    """A parsed selector."""

    name: str | None = None
    scope: str | None = None
    rule: str | None = None
    id: str | None = None

    @property
    def is_id(self) -> bool:
        return self.id is not None


def parse_selector(selector: str) -> Selector:
    """Split a selector string into its parts.

    In id form (leading ``#``), ``id`` holds everything after the ``#``
    (including any ``:rule`` suffix) and ``rule`` holds the rule, if any.
    """
    match = SELECTOR_PATTERN.search(selector)
    scope = name = rule = None
    if match:
        scope_part, name, rule_part = match.groups()
        if scope_part:
            scope = scope_part[:-1]
        if rule_part:
            rule = rule_part[1:]

    if selector.startswith("#"):
        return Selector(rule=rule, id=selector[1:])

    return Selector(name=name, scope=scope, rule=rule)


Predicate = Callable[[Any], bool]


@dataclass(frozen=True)
class CandidateFilters:
    is_primary: Predicate
    is_alt: Predicate


def make_candidate_filters(selector: str) -> CandidateFilters:
    """Build the primary and alt predicates for a selector string."""
    parsed = parse_selector(selector)

    def matches_rule(item: Any) -> bool:
        return parsed.rule is None or item.rule == parsed.rule

    if parsed.is_id:
        def is_id_match(item: Any) -> bool:
            return (
                matches_rule(item)
                and item.id is not None
                and parsed.id.startswith(item.id)
            )

        return CandidateFilters(is_primary=is_id_match, is_alt=lambda item: False)

    def is_primary(item: Any) -> bool:
        if parsed.name is not None and item.field != parsed.name:
            return False
        if parsed.scope is None:
            return item.scope is None and matches_rule(item)
        return item.scope == parsed.scope and matches_rule(item)

    def is_alt(item: Any) -> bool:
        if parsed.scope is None:
            return False
        return matches_rule(item) and item.field == f"{parsed.scope}.{parsed.name}"

    return CandidateFilters(is_primary=is_primary, is_alt=is_alt)


@dataclass(frozen=True)
class CandidateMatch:
    """Outcome of scanning a sequence with a pair of candidate filters."""

    primary: Any = None
    alt: Any = None

    @property
    def best(self) -> Any:
        return self.primary if self.primary is not None else self.alt


def match_candidates(items: Iterable[T], filters: CandidateFilters) -> CandidateMatch:
    """Scan ``items`` in order for the first primary and the last alt match.

    Alt tracking stops once a primary is found; a primary always wins.
    """
    alt = None
    for item in items:
        if filters.is_primary(item):
            return CandidateMatch(primary=item, alt=alt)
        if filters.is_alt(item):
            alt = item
    return CandidateMatch(alt=alt)
