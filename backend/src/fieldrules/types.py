"""Core types for the fieldrules validation engine.

This module defines the shapes that flow between the registry, the
validator and the error bag:
- RuleOptions / RegisteredRule: what the registry stores per rule name
- RuleOutcome: the normalized result of invoking one rule
- FieldError: one failed rule for one field, as kept by the ErrorBag
- FieldResult: the aggregated result of validating one field
- MessageDictionary / Host: the collaborators the validator talks to
"""

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, Union


class _Missing:
    """Sentinel for "no value supplied" (distinct from None)."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


# Anything a rule's validate function may hand back.
RawOutcome = Union[bool, Mapping[str, Any], "RuleOutcome", list, Awaitable[Any]]

# Rule validate signature: (value, params) -> RawOutcome
RuleFn = Callable[[Any, list[Any]], RawOutcome]

# Message generator signature: (field display name, params, data) -> str
MessageFn = Callable[[str, list[Any], dict[str, Any]], str]


@dataclass(frozen=True)
class RuleOptions:
    """Invocation options for a registered rule.

    Attributes:
        has_target: First param names another field whose value is substituted
        immediate: Rule may run on a field's initial (pre-interaction) pass
        is_date: Rule receives the resolved date format as a trailing param
    """

    has_target: bool = False
    immediate: bool = True
    is_date: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "RuleOptions":
        data = data or {}
        return cls(
            has_target=bool(data.get("has_target", data.get("hasTarget", False))),
            immediate=bool(data.get("immediate", True)),
            is_date=bool(data.get("is_date", data.get("isDate", False))),
        )


@dataclass(frozen=True)
class RegisteredRule:
    """A registry entry: the validate callable plus its options."""

    name: str
    validate: RuleFn
    options: RuleOptions = field(default_factory=RuleOptions)


@dataclass(frozen=True)
class RuleOutcome:
    """Normalized outcome of a single rule invocation."""

    valid: bool
    data: dict[str, Any] = field(default_factory=dict)


def normalize_outcome(raw: Any) -> RuleOutcome:
    """Collapse every supported outcome shape into a RuleOutcome.

    Accepts a bool, a RuleOutcome, a mapping with ``valid``/``data`` keys,
    or a list of any of those. Lists are valid only when every element is
    valid, and carry the data of their first element.
    """
    if isinstance(raw, RuleOutcome):
        return raw

    if isinstance(raw, (list, tuple)):
        outcomes = [normalize_outcome(item) for item in raw]
        data = outcomes[0].data if outcomes else {}
        return RuleOutcome(valid=all(o.valid for o in outcomes), data=data)

    if isinstance(raw, Mapping):
        return RuleOutcome(
            valid=bool(raw.get("valid")),
            data=dict(raw.get("data") or {}),
        )

    return RuleOutcome(valid=bool(raw))


@dataclass
class FieldError:
    """A single failed rule for a field.

    Attributes:
        field: Field name the error belongs to
        msg: Formatted message in the locale active when it was produced
        rule: Name of the failing rule, or None for manual errors
        scope: Field scope, None for scope-less fields
        id: Id of the producing field, None for manually added errors
        owner_id: Id of the host instance that owns the field
        regenerate: Recomputes ``msg`` (e.g. after a locale change)
    """

    field: str
    msg: str
    rule: str | None = None
    scope: str | None = None
    id: str | None = None
    owner_id: str | None = None
    regenerate: Callable[[], str] | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FieldError":
        """Create a FieldError from a plain ``{field, msg, ...}`` dict."""
        if "field" not in data:
            raise ValueError("Field error is missing 'field'")
        return cls(
            field=data["field"],
            msg=data.get("msg", ""),
            rule=data.get("rule"),
            scope=data.get("scope"),
            id=data.get("id"),
            owner_id=data.get("owner_id"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "field": self.field,
            "msg": self.msg,
            "rule": self.rule,
            "scope": self.scope,
        }


@dataclass
class FieldResult:
    """Aggregated result of running one field's rules."""

    valid: bool
    id: str
    field: str
    scope: str | None = None
    errors: list[FieldError] = field(default_factory=list)


class MessageDictionary(Protocol):
    """Protocol for the locale-aware message source.

    The default implementation is fieldrules.dictionary.Dictionary.
    """

    locale: str

    def get_field_message(
        self, locale: str, field: str, rule: str, data: list[Any]
    ) -> str:
        """Format the message for ``rule`` failing on ``field``.

        ``data`` is ``[display_name, params, rule_data]``.
        """
        ...

    def get_attribute(self, locale: str, name: str, fallback: str = "") -> str:
        """Return the display name registered for ``name``."""
        ...

    def get_date_format(self, locale: str) -> str | None:
        """Return the default date format for ``locale``."""
        ...

    def set_message(self, locale: str, rule: str, message: str | MessageFn) -> None:
        ...

    def merge(self, patch: Mapping[str, Any]) -> None:
        ...


class Host(Protocol):
    """Protocol for the reactive host that owns a validator.

    The host schedules update cycles and relays events such as
    ``localeChanged``. The default implementation is fieldrules.host.LocalHost.
    """

    async def next_tick(self) -> None:
        """Wait for the host's next update cycle."""
        ...

    def emit(self, event: str, *args: Any) -> None:
        ...

    def on(self, event: str, callback: Callable[..., Any]) -> None:
        ...

    def off(self, event: str, callback: Callable[..., Any] | None = None) -> None:
        ...
