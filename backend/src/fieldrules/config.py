"""Validator configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUTHY


@dataclass
class ValidatorConfig:
    """Defaults applied to newly created validators.

    Attributes:
        locale: Locale selected on the registry's dictionary
        strict: Unknown fields raise (True) or validate as valid (False)
        fast_exit: Stop a field's scan at its first synchronous failure
    """

    locale: str = "en"
    strict: bool = True
    fast_exit: bool = True

    @classmethod
    def from_env(cls) -> ValidatorConfig:
        """Create config from environment variables.

        Reads FIELDRULES_LOCALE, FIELDRULES_STRICT and FIELDRULES_FAST_EXIT;
        anything unset keeps its default.
        """
        return cls(
            locale=os.environ.get("FIELDRULES_LOCALE") or "en",
            strict=_env_flag("FIELDRULES_STRICT", True),
            fast_exit=_env_flag("FIELDRULES_FAST_EXIT", True),
        )
