"""Validation orchestrator.

The Validator owns a FieldBag and an ErrorBag and runs field rules taken
from a RuleRegistry:

1. Resolve the field(s) addressed by a selector
2. Run each field's rules in declared order (sync scan, then join async)
3. Aggregate per-field results, then write errors and flags in one pass

Multi-field operations start every field's validation before awaiting any
of them. Nothing is cancelled: a superseded run that resolves later still
writes its results (last write wins).
"""

import asyncio
import inspect
import logging
import re
from collections.abc import Awaitable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, NamedTuple

from fieldrules.config import ValidatorConfig
from fieldrules.error_bag import ErrorBag
from fieldrules.errors import FieldNotFoundError, UnknownRuleError
from fieldrules.fields import Field, FieldBag, FieldOptions, Matcher
from fieldrules.registry import RuleRegistry, get_default_registry
from fieldrules.types import (
    MISSING,
    FieldError,
    FieldResult,
    Host,
    MessageDictionary,
    RuleOptions,
    normalize_outcome,
)

logger = logging.getLogger(__name__)

SCOPE_WILDCARD = re.compile(r"^(.+)\.\*$")


@dataclass(frozen=True)
class RuleCall:
    """One rule as configured on one field."""

    name: str
    params: list[Any]
    options: RuleOptions


class RuleResult(NamedTuple):
    valid: bool
    errors: list[FieldError]


class Validator:
    """Validates attached fields and tracks their errors and flags.

    Example:
        validator = Validator({"email": "required|email"})
        valid = await validator.validate("email", "not-an-email")
        validator.errors.first("email")
    """

    def __init__(
        self,
        validations: Mapping[str, Any] | None = None,
        *,
        registry: RuleRegistry | None = None,
        host: Host | None = None,
        fast_exit: bool = True,
    ):
        self.registry = registry if registry is not None else get_default_registry()
        self.strict = self.registry.strict
        self.errors = ErrorBag()
        self.fields = FieldBag()
        self.paused = False
        self.fast_exit = fast_exit
        self.host = host if host is not None else self.registry.host
        self._pending: set[asyncio.Task] = set()
        # locale changes are announced on the registry host
        self.registry.host.on("localeChanged", self._regenerate_errors)
        self._create_fields(validations)

    @classmethod
    def create(
        cls,
        validations: Mapping[str, Any] | None = None,
        *,
        config: ValidatorConfig | None = None,
        registry: RuleRegistry | None = None,
        host: Host | None = None,
    ) -> "Validator":
        """Build a validator from a ValidatorConfig (environment by default)."""
        config = config or ValidatorConfig.from_env()
        validator = cls(registry=registry, host=host, fast_exit=config.fast_exit)
        validator.strict = config.strict
        validator.locale = config.locale
        validator._create_fields(validations)
        return validator

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    @property
    def dictionary(self) -> MessageDictionary:
        return self.registry.dictionary

    @property
    def locale(self) -> str:
        return self.dictionary.locale

    @locale.setter
    def locale(self, value: str) -> None:
        has_changed = value != self.registry.locale
        self.registry.locale = value
        if has_changed and self.host is not self.registry.host:
            self.host.emit("localeChanged")

    @property
    def flags(self) -> dict[str, Any]:
        """Flags of every field; scoped fields are grouped under "$scope"."""
        flags: dict[str, Any] = {}
        for field in self.fields:
            if field.scope:
                flags.setdefault(f"${field.scope}", {})[field.name] = field.flags
            else:
                flags[field.name] = field.flags
        return flags

    def localize(self, lang: str | Mapping[str, Any], dictionary: Mapping[str, Any] | None = None) -> None:
        """Merge messages and/or switch the active locale.

        ``localize({"fr": {...}})`` only merges; ``localize("fr", {...})``
        merges the pack under "fr" and switches to it.
        """
        if isinstance(lang, Mapping):
            self.dictionary.merge(lang)
            return
        if dictionary:
            self.dictionary.merge({lang: dict(dictionary)})
        if lang:
            self.locale = lang

    def extend(self, name: str, validator: Any, options: RuleOptions | Mapping[str, Any] | None = None) -> None:
        self.registry.extend(name, validator, options)

    def remove(self, name: str) -> None:
        self.registry.remove(name)

    # ------------------------------------------------------------------
    # Field lifecycle
    # ------------------------------------------------------------------

    def attach(self, options: FieldOptions | Mapping[str, Any]) -> Field:
        """Register a field and start its initial validation pass.

        Immediate fields get a full pass (errors and flags). Others get a
        silent pass that only sets valid/invalid, so untouched fields show
        no errors.
        """
        if not isinstance(options, FieldOptions):
            options = FieldOptions(**options)

        field = Field(options, self.registry.is_target_rule)
        self.fields.push(field)

        value = options.initial_value if options.initial_value is not MISSING else field.value
        if field.immediate:
            self._schedule(self.validate(f"#{field.id}", value))
        else:
            self._schedule(self._validate_initial(field, value))

        return field

    def attach_all(self, options: Iterable[FieldOptions | Mapping[str, Any]]) -> list[Field]:
        return [self.attach(o) for o in options]

    def detach(self, name: Field | str, scope: str | None = None, owner_id: str | None = None) -> None:
        field = name if isinstance(name, Field) else self._resolve_field(name, scope, owner_id)
        if field is None:
            return

        field.destroy()
        self.errors.remove(field.name, field.scope, field.id)
        self.fields.remove(field)

    def flag(self, name: str, flags: Mapping[str, Any], owner_id: str | None = None) -> None:
        field = self._resolve_field(name, owner_id=owner_id)
        if field is None or not flags:
            return
        field.set_flags(flags)

    def update(self, id: str, scope: str | None) -> None:
        """Move a field's errors into a new scope."""
        if self._resolve_field(f"#{id}") is None:
            return
        self.errors.update(id, scope)

    async def reset(self, matcher: Matcher = None) -> None:
        """Reset flags and errors of matching fields after two host ticks."""
        await self.host.next_tick()
        await self.host.next_tick()
        for field in self.fields.filter(matcher):
            field.reset()
            self.errors.remove(field.name, field.scope, field.id)

    async def wait_for_pending(self) -> None:
        """Wait for every initial pass scheduled by attach()."""
        tasks = list(self._pending)
        if not tasks:
            return
        try:
            await asyncio.gather(*tasks)
        finally:
            self._pending.difference_update(tasks)

    def pause(self) -> "Validator":
        self.paused = True
        return self

    def resume(self) -> "Validator":
        self.paused = False
        return self

    def destroy(self) -> None:
        self.registry.host.off("localeChanged", self._regenerate_errors)

    # ------------------------------------------------------------------
    # Validation entry points
    # ------------------------------------------------------------------

    async def validate(
        self,
        selector: str | None = None,
        value: Any = MISSING,
        *,
        silent: bool = False,
        owner_id: str | None = None,
    ) -> bool:
        """Validate one field, one scope, or everything.

        Args:
            selector: None for every field, "*" for scope-less fields,
                "scope.*" for one scope, otherwise "#id", "scope.name" or "name"
            value: Value to validate; defaults to the field's current value
            silent: Compute validity without touching errors or flags
            owner_id: Restrict lookups to fields of one host instance

        Raises:
            FieldNotFoundError: In strict mode, when no field matches
            UnknownRuleError: When the field uses an unregistered rule
        """
        if self.paused:
            return True

        if selector is None:
            return await self.validate_scopes(silent=silent, owner_id=owner_id)

        if selector == "*":
            return await self.validate_all(silent=silent, owner_id=owner_id)

        scope_match = SCOPE_WILDCARD.match(selector)
        if scope_match:
            return await self.validate_all(scope_match.group(1), silent=silent, owner_id=owner_id)

        field = self._resolve_field(selector, owner_id=owner_id)
        if field is None:
            return self._handle_field_not_found(selector)

        if not silent:
            field.flags["pending"] = True
        if value is MISSING:
            value = field.value

        result = await self._validate(field, value)
        if not silent:
            self._handle_validation_results([result])

        return result.valid

    async def validate_all(
        self,
        values: str | Mapping[str, Any] | Iterable[str] | None = None,
        *,
        silent: bool = False,
        owner_id: str | None = None,
    ) -> bool:
        """Validate a group of fields concurrently.

        ``values`` selects the group: a scope name, a ``{name: value}``
        mapping of scope-less fields (the given values are validated instead
        of the fields' own), a list of names, or None for scope-less fields.
        """
        if self.paused:
            return True

        provided = False
        if isinstance(values, str):
            matcher: Matcher = {"scope": values, "owner_id": owner_id}
        elif isinstance(values, Mapping):
            matcher = [{"name": key, "owner_id": owner_id, "scope": None} for key in values]
            provided = True
        elif values is not None:
            matcher = [{"name": key, "owner_id": owner_id} for key in values]
        else:
            matcher = {"scope": None, "owner_id": owner_id}

        fields = self.fields.filter(matcher)
        results = await asyncio.gather(*(
            self._validate(field, values[field.name] if provided else field.value)
            for field in fields
        ))
        if not silent:
            self._handle_validation_results(results)

        return all(r.valid for r in results)

    async def validate_scopes(self, *, silent: bool = False, owner_id: str | None = None) -> bool:
        """Validate every field regardless of scope."""
        if self.paused:
            return True

        fields = self.fields.filter({"owner_id": owner_id})
        results = await asyncio.gather(*(self._validate(field, field.value) for field in fields))
        if not silent:
            self._handle_validation_results(results)

        return all(r.valid for r in results)

    # ------------------------------------------------------------------
    # Per-field pipeline
    # ------------------------------------------------------------------

    def _should_skip(self, field: Field, value: Any) -> bool:
        if field.is_disabled:
            return True

        # configured to run through the pipeline regardless
        if field.bails is False:
            return False

        return not field.is_required and (value is None or value is MISSING or value == "")

    def _should_bail(self, field: Field) -> bool:
        if field.bails is not None:
            return field.bails
        return self.fast_exit

    async def _validate(self, field: Field, value: Any, initial: bool = False) -> FieldResult:
        """Run a field's rules and aggregate them into one FieldResult.

        The scan runs rules in declared order. When bailing, a synchronous
        failure ends the scan; deferred outcomes gathered before it are
        still awaited. Errors come back in declared rule order.
        """
        if self._should_skip(field, value):
            return FieldResult(valid=True, id=field.id, field=field.name, scope=field.scope)

        collected: list[tuple[int, RuleResult]] = []
        deferred: list[tuple[int, Awaitable[RuleResult]]] = []
        try:
            for index, name in enumerate(self._select_rules(field, initial)):
                rule = self.registry.get(name)
                options = rule.options if rule else RuleOptions()
                result = self._test(field, value, RuleCall(name, field.rules[name], options))
                if inspect.isawaitable(result):
                    deferred.append((index, result))
                    continue

                collected.append((index, result))
                if not result.valid and self._should_bail(field):
                    break
        except Exception:
            for _, pending in deferred:
                if inspect.iscoroutine(pending):
                    pending.close()
            raise

        if deferred:
            resolved = await asyncio.gather(*(pending for _, pending in deferred))
            collected.extend(zip((index for index, _ in deferred), resolved))

        collected.sort(key=lambda item: item[0])
        errors = [error for _, result in collected for error in result.errors]
        return FieldResult(
            valid=all(result.valid for _, result in collected),
            id=field.id,
            field=field.name,
            scope=field.scope,
            errors=errors,
        )

    async def _validate_initial(self, field: Field, value: Any) -> None:
        result = await self._validate(field, value, initial=True)
        field.set_flags({"valid": result.valid})

    def _select_rules(self, field: Field, initial: bool) -> list[str]:
        if not initial:
            return list(field.rules)

        # unregistered rules still run so the failure surfaces
        selected = []
        for name in field.rules:
            rule = self.registry.get(name)
            if rule is None or rule.options.immediate:
                selected.append(name)
        return selected

    def _test(self, field: Field, value: Any, rule: RuleCall) -> RuleResult | Awaitable[RuleResult]:
        """Run one rule against a value.

        Raises:
            UnknownRuleError: If the rule is not registered
        """
        registered = self.registry.get(rule.name)
        if registered is None:
            raise UnknownRuleError(rule.name)

        params = list(rule.params)
        target_name = None

        if rule.options.has_target:
            dependency = next((d for d in field.dependencies if d.name == rule.name), None)
            target = self._resolve_dependency(field, dependency.selector) if dependency else None
            if target is not None:
                target_name = target.alias
                params = [target.value] + params[1:]
        elif rule.name == "required" and field.rejects_false:
            # bare "required" rejects False for fields configured that way
            params = params or [True]

        if rule.options.is_date and rule.name != "date_format":
            params.append(self._get_date_format(field.rules))

        raw = registered.validate(value, params)
        if inspect.isawaitable(raw):
            return self._resolve_deferred(field, rule, raw, target_name)

        return self._to_test_result(field, rule, raw, target_name)

    async def _resolve_deferred(
        self, field: Field, rule: RuleCall, raw: Awaitable[Any], target_name: str | None
    ) -> RuleResult:
        return self._to_test_result(field, rule, await raw, target_name)

    def _to_test_result(self, field: Field, rule: RuleCall, raw: Any, target_name: str | None) -> RuleResult:
        outcome = normalize_outcome(raw)
        if outcome.valid:
            return RuleResult(True, [])
        return RuleResult(False, [self._create_field_error(field, rule, outcome.data, target_name)])

    def _resolve_dependency(self, field: Field, selector: str) -> Field | None:
        if field.scope is not None:
            target = self.fields.find({"name": selector, "scope": field.scope, "owner_id": field.owner_id})
            if target is not None:
                return target
        return self._resolve_field(selector, owner_id=field.owner_id)

    def _get_date_format(self, rules: Mapping[str, list[Any]]) -> str | None:
        params = rules.get("date_format")
        if params:
            return params[0]
        return self.dictionary.get_date_format(self.locale)

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def _create_field_error(
        self, field: Field, rule: RuleCall, data: dict[str, Any], target_name: str | None
    ) -> FieldError:
        return FieldError(
            id=field.id,
            owner_id=field.owner_id,
            field=field.name,
            msg=self._format_error_message(field, rule, data, target_name),
            rule=rule.name,
            scope=field.scope,
            regenerate=lambda: self._format_error_message(field, rule, data, target_name),
        )

    def _format_error_message(
        self, field: Field, rule: RuleCall, data: dict[str, Any] | None = None, target_name: str | None = None
    ) -> str:
        name = self._get_field_display_name(field)
        params = self._get_localized_params(rule, target_name)
        return self.dictionary.get_field_message(self.locale, field.name, rule.name, [name, params, data or {}])

    def _get_localized_params(self, rule: RuleCall, target_name: str | None = None) -> list[Any]:
        """Swap a target rule's field reference for its display name."""
        if rule.options.has_target and rule.params and rule.params[0]:
            localized = target_name or self.dictionary.get_attribute(
                self.locale, rule.params[0], rule.params[0]
            )
            return [localized] + list(rule.params[1:])
        return list(rule.params)

    def _get_field_display_name(self, field: Field) -> str:
        return field.alias or self.dictionary.get_attribute(self.locale, field.name, field.name)

    def _regenerate_errors(self) -> None:
        self.errors.regenerate()

    # ------------------------------------------------------------------
    # Resolution and result handling
    # ------------------------------------------------------------------

    def _resolve_field(self, name: str, scope: str | None = None, owner_id: str | None = None) -> Field | None:
        """Find a field by "#id", explicit scope, "scope.name" or bare name."""
        if name.startswith("#"):
            return self.fields.find({"id": name[1:]})

        if scope is not None:
            return self.fields.find({"name": name, "scope": scope, "owner_id": owner_id})

        if "." in name:
            field_scope, _, field_name = name.partition(".")
            field = self.fields.find({"name": field_name, "scope": field_scope, "owner_id": owner_id})
            if field is not None:
                return field

        return self.fields.find({"name": name, "scope": None, "owner_id": owner_id})

    def _handle_field_not_found(self, selector: str) -> bool:
        if not self.strict:
            logger.debug("Field '%s' not attached, treating as valid", selector)
            return True
        raise FieldNotFoundError(selector)

    def _handle_validation_results(self, results: list[FieldResult]) -> None:
        self.errors.remove_by_id([r.id for r in results])
        # also drop manually added errors for the same fields
        for result in results:
            self.errors.remove(result.field, result.scope)

        # skip fields detached while their validation ran
        attached = {field.id for field in self.fields}
        self.errors.add([
            error for result in results if result.id in attached for error in result.errors
        ])

        by_id = {r.id: r for r in results}
        for field in self.fields.filter([{"id": id} for id in by_id]):
            field.set_flags({
                "pending": False,
                "valid": by_id[field.id].valid,
                "validated": True,
            })

    def _schedule(self, coro: Awaitable[Any]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            try:
                asyncio.run(coro)
            except Exception as e:
                logger.error("Initial validation failed: %s", e)
            return

        task = loop.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._on_initial_done)

    def _on_initial_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Initial validation failed: %s", error)

    def _create_fields(self, validations: Mapping[str, Any] | None) -> None:
        if not validations:
            return
        for name, rules in validations.items():
            self.attach(FieldOptions(name=name, rules=rules))
