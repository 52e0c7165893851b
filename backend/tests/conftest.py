"""Shared fixtures: an isolated registry per test."""

import pytest

from fieldrules.dictionary import Dictionary, load_locale
from fieldrules.registry import RuleRegistry
from fieldrules.rules import register_builtin_rules
from fieldrules.validator import Validator


@pytest.fixture
def registry():
    """A registry with the English pack and built-in rules, private to the test."""
    registry = RuleRegistry(Dictionary(load_locale("en"), locale="en"))
    register_builtin_rules(registry)
    return registry


@pytest.fixture
def validator(registry):
    return Validator(registry=registry)
