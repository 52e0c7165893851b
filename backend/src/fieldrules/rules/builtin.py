"""Built-in rules.

Every rule follows the registry calling convention ``(value, params)`` and
returns a bool. Params arrive as declared on the field, so numeric params
from a pipe string are still strings here.
"""

import re
from datetime import date, datetime
from typing import Any

from fieldrules.registry import RuleRegistry

# Email: Basic RFC 5322 compliant pattern
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

NUMERIC_PATTERN = re.compile(r"^[0-9]+$")
ALPHA_PATTERN = re.compile(r"^[^\W\d_]+$")
ALPHA_NUM_PATTERN = re.compile(r"^[^\W_]+$")


# =============================================================================
# Helpers
# =============================================================================


def _param(params: list[Any], index: int, default: Any = None) -> Any:
    return params[index] if len(params) > index else default


def _truthy(param: Any) -> bool:
    if isinstance(param, str):
        return param.strip().lower() not in ("", "0", "false")
    return bool(param)


def _each(value: Any, check) -> bool:
    if isinstance(value, (list, tuple)):
        return all(check(v) for v in value)
    return check(value)


def _to_float(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _parse_date(value: Any, fmt: str | None) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not fmt:
        return None
    try:
        return datetime.strptime(value, fmt)
    except ValueError:
        return None


# =============================================================================
# Presence and text rules
# =============================================================================


def required(value: Any, params: list[Any]) -> bool:
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) > 0
    if value is False and _truthy(_param(params, 0, False)):
        return False
    if value is None:
        return False
    return bool(str(value).strip())


def email(value: Any, params: list[Any]) -> bool:
    return _each(value, lambda v: bool(EMAIL_PATTERN.match(str(v))))


def min_length(value: Any, params: list[Any]) -> bool:
    if value is None:
        return False
    length = int(_param(params, 0, 0))
    return _each(value, lambda v: len(str(v)) >= length)


def max_length(value: Any, params: list[Any]) -> bool:
    if value is None:
        return True
    length = int(_param(params, 0, 0))
    return _each(value, lambda v: len(str(v)) <= length)


def numeric(value: Any, params: list[Any]) -> bool:
    return _each(value, lambda v: bool(NUMERIC_PATTERN.match(str(v))))


def alpha(value: Any, params: list[Any]) -> bool:
    return _each(value, lambda v: bool(ALPHA_PATTERN.match(str(v))))


def alpha_num(value: Any, params: list[Any]) -> bool:
    return _each(value, lambda v: bool(ALPHA_NUM_PATTERN.match(str(v))))


def regex(value: Any, params: list[Any]) -> bool:
    pattern = _param(params, 0, "")
    if not isinstance(pattern, re.Pattern):
        pattern = re.compile(str(pattern))
    return _each(value, lambda v: pattern.search(str(v)) is not None)


# =============================================================================
# Value rules
# =============================================================================


def min_value(value: Any, params: list[Any]) -> bool:
    number, bound = _to_float(value), _to_float(_param(params, 0))
    return number is not None and bound is not None and number >= bound


def max_value(value: Any, params: list[Any]) -> bool:
    number, bound = _to_float(value), _to_float(_param(params, 0))
    return number is not None and bound is not None and number <= bound


def included(value: Any, params: list[Any]) -> bool:
    options = {str(p) for p in params}
    return _each(value, lambda v: str(v) in options)


def excluded(value: Any, params: list[Any]) -> bool:
    options = {str(p) for p in params}
    return _each(value, lambda v: str(v) not in options)


def is_(value: Any, params: list[Any]) -> bool:
    return value == _param(params, 0)


def is_not(value: Any, params: list[Any]) -> bool:
    return value != _param(params, 0)


def confirmed(value: Any, params: list[Any]) -> bool:
    return value == _param(params, 0)


# =============================================================================
# Date rules
#
# Date-aware rules receive the resolved strftime format as their last param.
# =============================================================================


def date_format(value: Any, params: list[Any]) -> bool:
    return _parse_date(value, _param(params, 0)) is not None


def _compare_dates(value: Any, params: list[Any]) -> tuple[datetime, datetime, bool] | None:
    fmt = params[-1] if params else None
    inclusive = len(params) > 2 and _truthy(params[1])
    subject = _parse_date(value, fmt)
    other = _parse_date(_param(params, 0), fmt)
    if subject is None or other is None:
        return None
    return subject, other, inclusive


def after(value: Any, params: list[Any]) -> bool:
    compared = _compare_dates(value, params)
    if compared is None:
        return False
    subject, other, inclusive = compared
    return subject > other or (inclusive and subject == other)


def before(value: Any, params: list[Any]) -> bool:
    compared = _compare_dates(value, params)
    if compared is None:
        return False
    subject, other, inclusive = compared
    return subject < other or (inclusive and subject == other)


# =============================================================================
# Registration
# =============================================================================


BUILTIN_RULES: dict[str, tuple] = {
    "required": (required, {}),
    "email": (email, {}),
    "min": (min_length, {}),
    "max": (max_length, {}),
    "numeric": (numeric, {}),
    "alpha": (alpha, {}),
    "alpha_num": (alpha_num, {}),
    "regex": (regex, {}),
    "min_value": (min_value, {}),
    "max_value": (max_value, {}),
    "included": (included, {}),
    "excluded": (excluded, {}),
    "is": (is_, {}),
    "is_not": (is_not, {}),
    "confirmed": (confirmed, {"has_target": True}),
    "date_format": (date_format, {"is_date": True}),
    "after": (after, {"has_target": True, "is_date": True}),
    "before": (before, {"has_target": True, "is_date": True}),
}


def register_builtin_rules(registry: RuleRegistry) -> None:
    """Register every built-in rule on ``registry``."""
    for name, (validate, options) in BUILTIN_RULES.items():
        registry.extend(name, validate, options)
