"""Field descriptors and the ordered field collection."""

import itertools
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from fieldrules.types import MISSING

_ids = itertools.count()

DEFAULT_FLAGS: dict[str, bool | None] = {
    "untouched": True,
    "touched": False,
    "dirty": False,
    "pristine": True,
    "valid": None,
    "invalid": None,
    "validated": False,
    "pending": False,
    "required": False,
    "changed": False,
}

COMPLEMENTARY_FLAGS = {
    "valid": "invalid",
    "invalid": "valid",
    "dirty": "pristine",
    "pristine": "dirty",
    "touched": "untouched",
    "untouched": "touched",
}


def unique_id() -> str:
    # delimited so that no generated id is a prefix of another ("_1_" vs "_10_")
    return f"_{next(_ids)}_"


def _parse_params(raw: str) -> list[Any]:
    return raw.split(",") if raw else []


def normalize_rules(rules: str | Mapping[str, Any] | None) -> dict[str, list[Any]]:
    """Normalize a rule declaration into an ordered ``{rule: params}`` mapping.

    Accepts the pipe form ``"required|min:3|in:a,b"`` or a mapping where
    ``True`` means no params, ``False``/``None`` drops the rule, lists are
    kept and any other value becomes a single param.
    """
    if not rules:
        return {}

    normalized: dict[str, list[Any]] = {}
    if isinstance(rules, str):
        for chunk in rules.split("|"):
            chunk = chunk.strip()
            if not chunk:
                continue
            name, _, params = chunk.partition(":")
            normalized[name] = _parse_params(params)
        return normalized

    for name, params in rules.items():
        if params is False or params is None:
            continue
        if params is True:
            normalized[name] = []
        elif isinstance(params, (list, tuple)):
            normalized[name] = list(params)
        elif isinstance(params, str):
            normalized[name] = _parse_params(params)
        else:
            normalized[name] = [params]
    return normalized


@dataclass(frozen=True)
class FieldDependency:
    """A target rule's link to another field, by selector only."""

    name: str
    selector: str


@dataclass
class FieldOptions:
    """Everything needed to attach a field.

    Attributes:
        name: Field name, may contain dots
        rules: Pipe string or mapping, see normalize_rules
        scope: Optional group name
        owner_id: Id of the host instance the field belongs to
        alias: Display name used in messages
        initial_value: Value seen by the first validation pass
        getter: Reads the live value from the host
        immediate: Run a full pass (errors included) on attach
        bails: Per-field override of the validator's fast_exit
        disabled: Disabled fields always validate as valid
        rejects_false: Bare ``required`` treats ``False`` as empty
        id: Explicit id; generated when omitted
    """

    name: str
    rules: str | Mapping[str, Any] | None = None
    scope: str | None = None
    owner_id: str | None = None
    alias: str | None = None
    initial_value: Any = MISSING
    getter: Callable[[], Any] | None = None
    immediate: bool = False
    bails: bool | None = None
    disabled: bool = False
    rejects_false: bool = False
    id: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FieldOptions":
        """Create FieldOptions from a YAML/JSON dict."""
        return cls(
            name=data["name"],
            rules=data.get("rules"),
            scope=data.get("scope"),
            owner_id=data.get("owner_id"),
            alias=data.get("alias"),
            initial_value=data.get("initial_value", MISSING),
            immediate=bool(data.get("immediate", False)),
            bails=data.get("bails"),
            disabled=bool(data.get("disabled", False)),
            rejects_false=bool(data.get("rejects_false", False)),
            id=data.get("id"),
        )


class Field:
    """A validatable value: its rules, flags and links to other fields."""

    def __init__(self, options: FieldOptions, is_target_rule: Callable[[str], bool] | None = None):
        self.id = options.id or unique_id()
        self.name = options.name
        self.scope = options.scope
        self.owner_id = options.owner_id
        self.alias = options.alias
        self.rules = normalize_rules(options.rules)
        self.immediate = options.immediate
        self.bails = options.bails
        self.is_disabled = options.disabled
        self.rejects_false = options.rejects_false
        self.getter = options.getter
        self.initial_value = options.initial_value
        self.flags: dict[str, Any] = dict(DEFAULT_FLAGS)
        self.flags["required"] = self.is_required
        self.dependencies: list[FieldDependency] = []
        self._teardowns: list[Callable[[], None]] = []
        self.update_dependencies(is_target_rule or (lambda name: False))

    def __repr__(self) -> str:
        return f"Field(id={self.id!r}, name={self.name!r}, scope={self.scope!r})"

    @property
    def is_required(self) -> bool:
        return "required" in self.rules

    @property
    def value(self) -> Any:
        if self.getter is not None:
            return self.getter()
        return None if self.initial_value is MISSING else self.initial_value

    def matches(self, matcher: Mapping[str, Any] | None) -> bool:
        """Check the field against ``{id, name, scope, owner_id}`` criteria.

        Missing keys are wildcards; ``scope: None`` only matches scope-less fields.
        """
        if not matcher:
            return True
        if "id" in matcher and matcher["id"] is not None:
            return self.id == matcher["id"]
        if matcher.get("owner_id") is not None and self.owner_id != matcher["owner_id"]:
            return False
        if matcher.get("name") is not None and self.name != matcher["name"]:
            return False
        if "scope" in matcher and self.scope != matcher["scope"]:
            return False
        return True

    def update_dependencies(self, is_target_rule: Callable[[str], bool]) -> None:
        """Rebuild the links for rules that compare against other fields."""
        self.dependencies = [
            FieldDependency(name=rule, selector=str(params[0]) if params else f"{self.name}_confirmation")
            for rule, params in self.rules.items()
            if is_target_rule(rule)
        ]

    def set_flags(self, flags: Mapping[str, Any]) -> None:
        """Merge flags, keeping complementary pairs consistent."""
        for key, value in flags.items():
            self.flags[key] = value
            opposite = COMPLEMENTARY_FLAGS.get(key)
            if opposite is not None and value is not None and opposite not in flags:
                self.flags[opposite] = not value

    def reset(self) -> None:
        self.flags = dict(DEFAULT_FLAGS)
        self.flags["required"] = self.is_required

    def on_destroy(self, callback: Callable[[], None]) -> None:
        """Register a teardown callback (e.g. a host listener removal)."""
        self._teardowns.append(callback)

    def destroy(self) -> None:
        for callback in self._teardowns:
            callback()
        self._teardowns.clear()
        self.dependencies = []


Matcher = Mapping[str, Any] | Iterable[Mapping[str, Any]] | None


class FieldBag:
    """Fields in attach order, queried with criteria mappings.

    A list of criteria mappings is OR-combined.
    """

    def __init__(self) -> None:
        self.items: list[Field] = []

    def __iter__(self):
        return iter(list(self.items))

    def __len__(self) -> int:
        return len(self.items)

    def push(self, item: Field) -> None:
        self.items.append(item)

    def remove(self, item: Field) -> None:
        self.items = [i for i in self.items if i is not item]

    def find(self, matcher: Matcher = None) -> Field | None:
        return next((i for i in self.items if self._matches(i, matcher)), None)

    def filter(self, matcher: Matcher = None) -> list[Field]:
        return [i for i in self.items if self._matches(i, matcher)]

    @staticmethod
    def _matches(item: Field, matcher: Matcher) -> bool:
        if matcher is None or isinstance(matcher, Mapping):
            return item.matches(matcher)
        return any(item.matches(m) for m in matcher)
