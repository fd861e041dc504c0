"""Check that a record type only declares fields of exportable types."""

from __future__ import annotations

import logging

from typed_sheets.errors import IneligibleTypeError
from typed_sheets.types import (
    PrimitiveType,
    PrimitiveTypeDefinition,
    RecordTypeDefinition,
    TypeDefinition,
    is_date_type,
    is_string_type,
)

logger = logging.getLogger(__name__)

# Primitive types a field may declare besides string, date and enums
ALLOWED_PRIMITIVES = frozenset({PrimitiveType.INT64, PrimitiveType.FLOAT64})


def is_eligible_type(type_def: TypeDefinition) -> bool:
    """Return whether a field of this declared type can be exported."""
    if is_string_type(type_def) or is_date_type(type_def):
        return True
    base = type_def.resolve_base_type()
    if base.is_enum:
        return True
    return isinstance(base, PrimitiveTypeDefinition) and base.primitive in ALLOWED_PRIMITIVES


def check(record_type: RecordTypeDefinition, log: logging.Logger | None = None) -> None:
    """Check every field in the record type's inheritance chain.

    Raises:
        IneligibleTypeError: For the first field whose declared type is not
            string, int64, float64, date or an enum. The error is logged
            before it is raised.
    """
    log = log or logger
    for f in record_type.all_fields():
        if is_eligible_type(f.type_def):
            continue
        error = IneligibleTypeError(record_type.name, f.name, f.type_def.name)
        log.error("Cannot export record type '%s': %s", record_type.name, error)
        raise error
