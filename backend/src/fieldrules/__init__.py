"""fieldrules: rule-based field validation.

This package provides:
- RuleRegistry: named rules plus their invocation options
- Validator: attaches fields, runs their rules, aggregates results
- ErrorBag / FieldBag: selector-addressable errors and fields
- Dictionary: locale-aware messages

Usage:
    from fieldrules import Validator

    validator = Validator({"email": "required|email"})
    await validator.validate("email", "someone@example.com")
"""

from fieldrules.config import ValidatorConfig
from fieldrules.dictionary import Dictionary, load_locale
from fieldrules.error_bag import ErrorBag
from fieldrules.errors import (
    ExtensionError,
    FieldNotFoundError,
    FieldRulesError,
    UnknownRuleError,
)
from fieldrules.fields import Field, FieldBag, FieldOptions, normalize_rules
from fieldrules.host import LocalHost
from fieldrules.loader import load_fields, parse_fields
from fieldrules.registry import RuleRegistry, get_default_registry
from fieldrules.rules import register_builtin_rules
from fieldrules.selectors import (
    CandidateMatch,
    Selector,
    make_candidate_filters,
    match_candidates,
    parse_selector,
)
from fieldrules.types import (
    MISSING,
    FieldError,
    FieldResult,
    Host,
    MessageDictionary,
    RegisteredRule,
    RuleOptions,
    RuleOutcome,
    normalize_outcome,
)
from fieldrules.validator import Validator

__all__ = [
    # Types
    "MISSING",
    "FieldError",
    "FieldResult",
    "Host",
    "MessageDictionary",
    "RegisteredRule",
    "RuleOptions",
    "RuleOutcome",
    "normalize_outcome",
    # Errors
    "ExtensionError",
    "FieldNotFoundError",
    "FieldRulesError",
    "UnknownRuleError",
    # Registry
    "RuleRegistry",
    "get_default_registry",
    "register_builtin_rules",
    # Selectors
    "CandidateMatch",
    "Selector",
    "make_candidate_filters",
    "match_candidates",
    "parse_selector",
    # Collections
    "ErrorBag",
    "Field",
    "FieldBag",
    "FieldOptions",
    "normalize_rules",
    # Messages
    "Dictionary",
    "load_locale",
    # Orchestration
    "LocalHost",
    "Validator",
    "ValidatorConfig",
    # Loading
    "load_fields",
    "parse_fields",
]
