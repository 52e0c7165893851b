"""Load declarative field definitions from YAML files.

Document shape:

    fields:
      - name: email
        rules: required|email
      - name: password
        scope: signup
        rules:
          required: true
          min: 8
"""

from pathlib import Path
from typing import Any

import yaml

from fieldrules.fields import FieldOptions


def parse_fields(data: dict[str, Any] | None) -> list[FieldOptions]:
    """Turn a parsed document into FieldOptions, in document order.

    Raises:
        ValueError: If an entry has no name
    """
    options = []
    for index, entry in enumerate((data or {}).get("fields") or []):
        if not entry or not entry.get("name"):
            raise ValueError(f"Field definition #{index} is missing 'name'")
        options.append(FieldOptions.from_dict(entry))
    return options


def load_fields(path: Path) -> list[FieldOptions]:
    """Read a YAML field definition file."""
    with open(path) as f:
        return parse_fields(yaml.safe_load(f))
