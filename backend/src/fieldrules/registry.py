"""Rule registry for fieldrules.

Maps rule names to their validate callables and invocation options.
A registry is an explicit object: build one per process (see
get_default_registry) or one per test, and hand it to every Validator
that should share it.

Mutating a registry while a validation is in flight is unsynchronized;
a rule removed mid-run may or may not be seen by that run.
"""

import logging
from collections.abc import Mapping
from typing import Any

from fieldrules.dictionary import Dictionary, load_locale
from fieldrules.errors import ExtensionError
from fieldrules.host import LocalHost
from fieldrules.types import Host, MessageDictionary, RegisteredRule, RuleOptions

logger = logging.getLogger(__name__)


class RuleRegistry:
    """Registry of validation rules.

    Re-registering a name replaces the previous entry. The registry also
    owns the message dictionary, since extending with a rule object that
    carries ``get_message`` registers that generator for the current locale.

    Example:
        registry = RuleRegistry()
        registry.extend("even", lambda value, params: int(value) % 2 == 0)
        registry.is_registered("even")  # True
    """

    def __init__(
        self,
        dictionary: MessageDictionary | None = None,
        strict: bool = True,
        host: Host | None = None,
    ):
        self._rules: dict[str, RegisteredRule] = {}
        self.dictionary = dictionary if dictionary is not None else Dictionary()
        self.strict = strict
        self.host = host if host is not None else LocalHost()

    @property
    def locale(self) -> str:
        return self.dictionary.locale

    @locale.setter
    def locale(self, value: str) -> None:
        """Switch the active locale and emit "localeChanged" on the shared host.

        Every validator built on this registry listens there, so all of them
        regenerate their messages.
        """
        has_changed = value != self.dictionary.locale
        self.dictionary.locale = value
        if has_changed:
            self.host.emit("localeChanged")

    def extend(
        self,
        name: str,
        validator: Any,
        options: RuleOptions | Mapping[str, Any] | None = None,
    ) -> None:
        """Register a rule.

        Args:
            name: Unique rule name (e.g. "required", "min")
            validator: A callable ``(value, params)`` or an object with a
                ``validate`` method and optionally ``get_message``
            options: RuleOptions or a mapping of has_target/immediate/is_date

        Raises:
            ExtensionError: If ``validator`` is neither shape
        """
        self._guard_extend(name, validator)

        if not isinstance(options, RuleOptions):
            options = RuleOptions.from_dict(options)

        validate = getattr(validator, "validate", None)
        if not callable(validate):
            validate = validator
        get_message = getattr(validator, "get_message", None)
        if get_message is not None:
            self.dictionary.set_message(self.dictionary.locale, name, get_message)

        self._rules[name] = RegisteredRule(name=name, validate=validate, options=options)
        logger.debug("Registered rule '%s' (%s)", name, options)

    def remove(self, name: str) -> None:
        """Remove a rule. Removing an unknown name is a no-op."""
        if self._rules.pop(name, None) is not None:
            logger.debug("Removed rule '%s'", name)

    def get(self, name: str) -> RegisteredRule | None:
        return self._rules.get(name)

    def is_registered(self, name: str) -> bool:
        return name in self._rules

    def is_target_rule(self, name: str) -> bool:
        """Check if the rule compares against another field's value."""
        rule = self._rules.get(name)
        return rule is not None and rule.options.has_target

    def list_registered(self) -> list[str]:
        return sorted(self._rules)

    def set_strict_mode(self, strict: bool = True) -> None:
        """Set how validators built on this registry treat unknown fields.

        strict=True: validating an unattached field raises FieldNotFoundError
        strict=False: validating an unattached field reports valid
        """
        self.strict = strict

    def clear(self) -> None:
        """Clear all registrations. Primarily for testing."""
        self._rules.clear()

    @staticmethod
    def _guard_extend(name: str, validator: Any) -> None:
        if not callable(validator) and not callable(getattr(validator, "validate", None)):
            raise ExtensionError(name)


_default_registry: RuleRegistry | None = None


def get_default_registry() -> RuleRegistry:
    """Return the process-wide registry, creating it on first use.

    The default registry carries the bundled English messages and all
    built-in rules.
    """
    global _default_registry
    if _default_registry is None:
        from fieldrules.rules import register_builtin_rules

        registry = RuleRegistry(Dictionary(load_locale("en"), locale="en"))
        register_builtin_rules(registry)
        _default_registry = registry
    return _default_registry
