"""Exceptions raised by the fieldrules engine.

Failed validation is never an exception; it is reported through
``valid=False`` and the ErrorBag. These are reserved for programmer errors.
"""


class FieldRulesError(Exception):
    """Base class for all fieldrules exceptions."""


class UnknownRuleError(FieldRulesError):
    """Raised when a field references a rule that is not registered."""

    def __init__(self, rule: str):
        self.rule = rule
        super().__init__(f"No such validator '{rule}' exists.")


class ExtensionError(FieldRulesError):
    """Raised when a custom rule is registered with an unusable shape."""

    def __init__(self, rule: str):
        self.rule = rule
        super().__init__(
            f"Extension Error: The validator '{rule}' must be a function "
            "or have a 'validate' method."
        )


class FieldNotFoundError(FieldRulesError):
    """Raised in strict mode when a selector resolves to no attached field."""

    def __init__(self, selector: str):
        self.selector = selector
        super().__init__(
            f'Validating a non-existent field: "{selector}". Use "attach()" first.'
        )
