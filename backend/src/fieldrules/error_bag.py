"""Ordered, selector-addressable collection of field errors."""

import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from fieldrules.selectors import make_candidate_filters, match_candidates
from fieldrules.types import FieldError

logger = logging.getLogger(__name__)


def _selector(field: str, scope: str | None) -> str:
    return str(field) if scope is None else f"{scope}.{field}"


class ErrorBag:
    """Errors in insertion order.

    A field may hold several errors, one per failing rule. Queries that
    return a single error pick the earliest match.
    """

    def __init__(self) -> None:
        self.items: list[FieldError] = []

    def __iter__(self) -> Iterator[FieldError]:
        return iter(list(self.items))

    def __len__(self) -> int:
        return len(self.items)

    def add(
        self,
        error: FieldError | Mapping[str, Any] | Iterable[FieldError | Mapping[str, Any]] | str,
        msg: str | None = None,
        rule: str | None = None,
        scope: str | None = None,
    ) -> None:
        """Append one error or a list of errors.

        The legacy ``add(field, msg, rule=None, scope=None)`` signature is
        still accepted and builds a manual error not tied to any field id.
        Plain ``{field, msg, ...}`` dicts are converted to FieldError.
        """
        if isinstance(error, str):
            logger.warning(
                'This usage of "errors.add()" is deprecated, pass a FieldError instead.'
            )
            error = FieldError(field=error, msg=msg or "", rule=rule, scope=scope)

        if isinstance(error, (FieldError, Mapping)):
            error = [error]
        self.items.extend(
            FieldError.from_dict(e) if isinstance(e, Mapping) else e for e in error
        )

    def regenerate(self) -> None:
        """Recompute every message that carries a generator."""
        for item in self.items:
            if item.regenerate is not None:
                item.msg = item.regenerate()

    def update(self, id: str, scope: str | None) -> None:
        """Move the first error of field ``id`` into ``scope``.

        The moved error is re-appended at the end of the bag.
        """
        item = next((i for i in self.items if i.id == id), None)
        if item is None:
            return
        self.items.remove(item)
        item.scope = scope
        self.items.append(item)

    def all(self, scope: str | None = None) -> list[str]:
        if scope is None:
            return [e.msg for e in self.items]
        return [e.msg for e in self.items if e.scope == scope]

    def any(self, scope: str | None = None) -> bool:
        if scope is None:
            return bool(self.items)
        return any(e.scope == scope for e in self.items)

    def clear(self, scope: str | None = None) -> None:
        """Remove every error whose scope equals ``scope`` (None included)."""
        self.items = [e for e in self.items if e.scope != scope]

    def collect(
        self,
        field: str | None = None,
        scope: str | None = None,
        map: bool = True,
    ) -> dict[str, list[Any]] | list[Any]:
        """Group errors by field name, or list the errors of one field.

        Args:
            field: Field name to collect; when omitted every error is grouped
            scope: Scope of ``field``
            map: Return messages instead of FieldError objects
        """
        if not field:
            collection: dict[str, list[Any]] = {}
            for e in self.items:
                collection.setdefault(e.field, []).append(e.msg if map else e)
            return collection

        filters = make_candidate_filters(_selector(field, scope))
        return [e.msg if map else e for e in self.items if filters.is_primary(e)]

    def count(self) -> int:
        return len(self.items)

    def first_by_id(self, id: str) -> str | None:
        error = next((i for i in self.items if i.id == id), None)
        return error.msg if error else None

    def first(self, field: str, scope: str | None = None) -> str | None:
        """First message for a field, falling back to a dotted field name."""
        match = self._match(_selector(field, scope))
        return match.msg if match else None

    def first_rule(self, field: str, scope: str | None = None) -> str | None:
        errors = self.collect(field, scope, map=False)
        return errors[0].rule if errors else None

    def has(self, field: str, scope: str | None = None) -> bool:
        return bool(self.first(field, scope))

    def first_by_rule(self, name: str, rule: str, scope: str | None = None) -> str | None:
        error = next((e for e in self.collect(name, scope, map=False) if e.rule == rule), None)
        return error.msg if error else None

    def first_not(self, name: str, rule: str = "required", scope: str | None = None) -> str | None:
        """First message for a field raised by any rule other than ``rule``."""
        error = next((e for e in self.collect(name, scope, map=False) if e.rule != rule), None)
        return error.msg if error else None

    def remove_by_id(self, id: str | Iterable[str]) -> None:
        ids = {id} if isinstance(id, str) else set(id)
        self.items = [i for i in self.items if i.id not in ids]

    def remove(self, field: str | None, scope: str | None = None, id: str | None = None) -> None:
        """Remove the errors of a field.

        When ``id`` is given, errors carrying that field id are removed too,
        regardless of the scope they were recorded under.
        """
        if field is None:
            return
        filters = make_candidate_filters(_selector(field, scope))
        self.items = [
            i for i in self.items
            if not filters.is_primary(i) and (id is None or i.id != id)
        ]

    def _match(self, selector: str | None) -> FieldError | None:
        if selector is None:
            return None
        return match_candidates(self.items, make_candidate_filters(selector)).best
