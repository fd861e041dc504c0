"""Exceptions raised by typed_sheets."""

from __future__ import annotations


class TypedSheetsError(Exception):
    """Base class for errors raised by typed_sheets."""


class IneligibleTypeError(TypedSheetsError, TypeError):
    """A record type declares a field whose type cannot be exported."""

    def __init__(self, record_name: str, field_name: str, type_name: str) -> None:
        self.record_name = record_name
        self.field_name = field_name
        self.type_name = type_name
        super().__init__(
            f"Field '{field_name}' of record type '{record_name}' has type "
            f"'{type_name}', which cannot be exported"
        )


class ColumnLayoutError(TypedSheetsError, ValueError):
    """The column annotations of a record type do not form a valid layout."""

    def __init__(self, record_name: str, message: str) -> None:
        self.record_name = record_name
        super().__init__(f"Record type '{record_name}': {message}")
