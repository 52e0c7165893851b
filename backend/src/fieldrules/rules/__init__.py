"""Built-in rules for fieldrules."""

from fieldrules.rules.builtin import BUILTIN_RULES, register_builtin_rules

__all__ = [
    "BUILTIN_RULES",
    "register_builtin_rules",
]
