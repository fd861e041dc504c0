"""Load records for a record type from JSON."""

from __future__ import annotations

import datetime
import json
from pathlib import Path
from typing import Any

from typed_sheets.types import (
    EnumTypeDefinition,
    RecordTypeDefinition,
    TypeDefinition,
    is_date_type,
)


def load_records(
    source: Path | str | list[Any], record_type: RecordTypeDefinition
) -> list[dict[str, Any]]:
    """Read a JSON array of objects as records of ``record_type``.

    Args:
        source: Path to a JSON file, or already-parsed JSON data.
        record_type: Declares how field values are coerced: ISO-8601
            strings become dates for ``date`` fields and variant names
            become enum values for enum fields. Other values and keys that
            match no field are kept unchanged.

    Raises:
        ValueError: If the data is not an array of objects or a value
            cannot be coerced to its field's type.
    """
    if isinstance(source, (str, Path)):
        with open(source, encoding="utf-8") as f:
            data = json.load(f)
    else:
        data = source

    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array of records, got {type(data).__name__}")

    field_types = {f.name: f.type_def for f in record_type.all_fields()}
    records = []
    for position, item in enumerate(data):
        if not isinstance(item, dict):
            raise ValueError(f"Record {position} is not a JSON object")
        record = {}
        for key, value in item.items():
            type_def = field_types.get(key)
            if type_def is not None:
                try:
                    value = coerce_value(value, type_def)
                except ValueError as e:
                    raise ValueError(f"Record {position}, field '{key}': {e}") from e
            record[key] = value
        records.append(record)
    return records


def coerce_value(value: Any, type_def: TypeDefinition) -> Any:
    """Convert a JSON value to the runtime value for a declared type."""
    if not isinstance(value, str):
        return value
    if is_date_type(type_def):
        return datetime.date.fromisoformat(value)
    base = type_def.resolve_base_type()
    if isinstance(base, EnumTypeDefinition):
        if base.python_type is not None:
            try:
                return base.python_type[value]
            except KeyError:
                raise ValueError(f"Unknown variant '{value}' on enum '{base.name}'") from None
        return base.value_of(value)
    return value
