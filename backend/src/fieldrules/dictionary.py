"""Locale-aware message dictionary.

Holds, per locale:
- messages: rule name -> template or generator
- attributes: field name -> display name
- custom: field name -> rule name -> template or generator
- date_format: default strftime format for date-aware rules

Templates are ``str.format`` strings. ``{field}`` is the field's display
name, ``{0}``, ``{1}``... are the rule params, and any key of the rule's
outcome data is available by name. Unknown placeholders render empty.
"""

import string
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from fieldrules.types import MessageFn

LOCALE_DIR = Path(__file__).parent / "locale"

DEFAULT_MESSAGE = "The {field} value is not valid."


class _LenientFormatter(string.Formatter):
    def get_value(self, key, args, kwargs):
        if isinstance(key, int):
            return args[key] if key < len(args) else ""
        return kwargs.get(key, "")


_formatter = _LenientFormatter()


def _deep_merge(target: dict[str, Any], patch: Mapping[str, Any]) -> dict[str, Any]:
    for key, value in patch.items():
        if isinstance(value, Mapping) and isinstance(target.get(key), dict):
            _deep_merge(target[key], value)
        elif isinstance(value, Mapping):
            target[key] = _deep_merge({}, value)
        else:
            target[key] = value
    return target


class Dictionary:
    """Default MessageDictionary implementation.

    Example:
        dictionary = Dictionary({"en": {"messages": {"required": "{field} is required"}}})
        dictionary.get_field_message("en", "email", "required", ["Email", [], {}])
    """

    def __init__(self, container: Mapping[str, Any] | None = None, locale: str = "en"):
        self.container: dict[str, Any] = {}
        self.locale = locale
        if container:
            self.merge(container)

    @classmethod
    def from_yaml(cls, path: Path, locale: str = "en") -> "Dictionary":
        """Build a dictionary from a YAML file keyed by locale."""
        return cls(_read_yaml(path), locale=locale)

    def has_locale(self, locale: str) -> bool:
        return locale in self.container

    def _locale(self, locale: str) -> dict[str, Any]:
        return self.container.get(locale) or {}

    def get_date_format(self, locale: str) -> str | None:
        return self._locale(locale).get("date_format")

    def set_date_format(self, locale: str, value: str) -> None:
        self._ensure(locale)["date_format"] = value

    def get_message(self, locale: str, key: str, data: list[Any] | None = None) -> str:
        messages = self._locale(locale).get("messages") or {}
        message = messages.get(key)
        if message is None:
            message = messages.get("_default", DEFAULT_MESSAGE)
        return self._render(message, data)

    def get_field_message(
        self, locale: str, field: str, key: str, data: list[Any] | None = None
    ) -> str:
        custom = self._locale(locale).get("custom") or {}
        message = (custom.get(field) or {}).get(key)
        if message is None:
            return self.get_message(locale, key, data)
        return self._render(message, data)

    def get_attribute(self, locale: str, key: str, fallback: str = "") -> str:
        attributes = self._locale(locale).get("attributes") or {}
        return attributes.get(key, fallback)

    def set_message(self, locale: str, key: str, message: str | MessageFn) -> None:
        self._ensure(locale).setdefault("messages", {})[key] = message

    def set_attribute(self, locale: str, key: str, value: str) -> None:
        self._ensure(locale).setdefault("attributes", {})[key] = value

    def merge(self, patch: Mapping[str, Any]) -> None:
        """Deep-merge ``{locale: {messages, attributes, custom, date_format}}``."""
        _deep_merge(self.container, patch)

    def _ensure(self, locale: str) -> dict[str, Any]:
        return self.container.setdefault(locale, {})

    @staticmethod
    def _render(message: str | MessageFn, data: list[Any] | None) -> str:
        name, params, extra = (list(data or []) + ["", [], {}])[:3]
        params = list(params or [])
        extra = dict(extra or {})
        if callable(message):
            return message(name, params, extra)
        return _formatter.format(message, *params, **{**extra, "field": name})


def _read_yaml(path: Path) -> dict[str, Any]:
    with open(path) as f:
        return yaml.safe_load(f) or {}


def load_locale(name: str) -> dict[str, Any]:
    """Load a bundled locale pack as a ``{name: {...}}`` patch.

    Raises:
        FileNotFoundError: If no pack named ``name`` ships with the package
    """
    data = _read_yaml(LOCALE_DIR / f"{name}.yaml")
    return {name: data}
