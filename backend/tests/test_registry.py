"""Tests for the RuleRegistry."""

import logging

import pytest

from fieldrules.dictionary import Dictionary
from fieldrules.errors import ExtensionError
from fieldrules.registry import RuleRegistry, get_default_registry
from fieldrules.types import RuleOptions


def always(value, params):
    return True


@pytest.fixture
def empty_registry():
    return RuleRegistry(Dictionary(locale="en"))


class TestExtend:
    def test_function_rule_gets_default_options(self, empty_registry):
        empty_registry.extend("always", always)
        rule = empty_registry.get("always")
        assert rule.validate is always
        assert rule.options == RuleOptions(has_target=False, immediate=True, is_date=False)

    def test_options_mapping_accepts_camel_case(self, empty_registry):
        empty_registry.extend("match", always, {"hasTarget": True, "immediate": False})
        options = empty_registry.get("match").options
        assert options.has_target is True
        assert options.immediate is False

    def test_object_rule_registers_message(self, empty_registry):
        class Positive:
            def validate(self, value, params):
                return value > 0

            def get_message(self, field, params, data):
                return f"{field} must be positive"

        empty_registry.extend("positive", Positive())
        assert empty_registry.get("positive").validate(1, []) is True
        message = empty_registry.dictionary.get_message("en", "positive", ["amount", [], {}])
        assert message == "amount must be positive"

    def test_class_rule_uses_its_validate(self, empty_registry):
        class Positive:
            @staticmethod
            def validate(value, params):
                return value > 0

        empty_registry.extend("positive", Positive)
        assert empty_registry.get("positive").validate is Positive.validate
        assert empty_registry.get("positive").validate(-1, []) is False

    @pytest.mark.parametrize("bad", [object(), {"validate": "nope"}, 42])
    def test_malformed_extension(self, empty_registry, bad):
        with pytest.raises(ExtensionError) as exc_info:
            empty_registry.extend("bad", bad)
        assert exc_info.value.rule == "bad"
        assert not empty_registry.is_registered("bad")

    def test_reregistering_overwrites(self, empty_registry):
        empty_registry.extend("rule", always)
        empty_registry.extend("rule", lambda value, params: False)
        assert empty_registry.get("rule").validate("x", []) is False

    def test_logs_registration(self, empty_registry, caplog):
        with caplog.at_level(logging.DEBUG, logger="fieldrules.registry"):
            empty_registry.extend("always", always)
        assert "always" in caplog.text


class TestLookup:
    def test_remove_is_idempotent(self, empty_registry):
        empty_registry.extend("always", always)
        empty_registry.remove("always")
        empty_registry.remove("always")
        assert not empty_registry.is_registered("always")
        assert empty_registry.list_registered() == []

    def test_is_target_rule(self, empty_registry):
        empty_registry.extend("confirmed", always, {"has_target": True})
        empty_registry.extend("plain", always)
        assert empty_registry.is_target_rule("confirmed")
        assert not empty_registry.is_target_rule("plain")
        assert not empty_registry.is_target_rule("missing")

    def test_list_and_clear(self, empty_registry):
        empty_registry.extend("b", always)
        empty_registry.extend("a", always)
        assert empty_registry.list_registered() == ["a", "b"]
        empty_registry.clear()
        assert empty_registry.list_registered() == []

    def test_strict_mode_toggle(self, empty_registry):
        assert empty_registry.strict is True
        empty_registry.set_strict_mode(False)
        assert empty_registry.strict is False
        empty_registry.set_strict_mode()
        assert empty_registry.strict is True

    def test_locale_switch_emits_on_shared_host(self, empty_registry):
        calls = []
        empty_registry.host.on("localeChanged", lambda: calls.append(empty_registry.locale))

        empty_registry.locale = "fr"
        empty_registry.locale = "fr"
        assert calls == ["fr"]

    def test_registries_are_isolated(self, empty_registry, registry):
        empty_registry.extend("only_here", always)
        assert not registry.is_registered("only_here")


def test_default_registry_is_shared_and_has_builtins():
    default = get_default_registry()
    assert default is get_default_registry()
    assert default.is_registered("required")
    assert default.dictionary.get_date_format("en") == "%Y-%m-%d"
