"""Column metadata: which accessors of a record type become columns, and where."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from typed_sheets.errors import ColumnLayoutError
from typed_sheets.types import RecordTypeDefinition


@dataclass(frozen=True)
class ColumnDefinition:
    """A column of an exported sheet.

    Attributes:
        index: Zero-based column position.
        header: Text written in the header row. Never empty.
        name: Name of the accessor (method or field) the column reads.
        accessor: Callable taking one record and returning the cell value.
    """

    index: int
    header: str
    name: str
    accessor: Callable[[Any], Any]

    def read(self, record: Any) -> Any:
        """Invoke the accessor on a record."""
        return self.accessor(record)


class FieldAccessor:
    """Reads a named field from a mapping or an object.

    A key missing from a mapping reads as None, like a JSON null.
    """

    def __init__(self, field_name: str) -> None:
        self.field_name = field_name

    def __call__(self, record: Any) -> Any:
        if isinstance(record, Mapping):
            return record.get(self.field_name)
        return getattr(record, self.field_name)

    def __repr__(self) -> str:
        return f"FieldAccessor({self.field_name!r})"


def validate_layout(
    record_name: str, columns: Iterable[ColumnDefinition]
) -> list[ColumnDefinition]:
    """Check a record type's columns and return them ordered by index.

    The indices must be unique and cover ``0..n-1`` without gaps, and every
    column must have a non-empty header.

    Raises:
        ColumnLayoutError: If the layout is invalid.
    """
    by_index: dict[int, ColumnDefinition] = {}
    for col in columns:
        if isinstance(col.index, bool) or not isinstance(col.index, int):
            raise ColumnLayoutError(
                record_name, f"column '{col.name}' has a non-integer index {col.index!r}"
            )
        if col.index < 0:
            raise ColumnLayoutError(
                record_name, f"column '{col.name}' has negative index {col.index}"
            )
        if not isinstance(col.header, str) or not col.header:
            raise ColumnLayoutError(record_name, f"column '{col.name}' has no header text")
        other = by_index.get(col.index)
        if other is not None:
            raise ColumnLayoutError(
                record_name,
                f"columns '{other.name}' and '{col.name}' both use index {col.index}",
            )
        by_index[col.index] = col

    missing = [i for i in range(len(by_index)) if i not in by_index]
    if missing:
        raise ColumnLayoutError(
            record_name,
            f"column indices must be contiguous from 0; missing {missing}",
        )
    return [by_index[i] for i in range(len(by_index))]


def resolve(record_type: RecordTypeDefinition) -> list[ColumnDefinition]:
    """Return the columns declared directly on a record type, by index.

    Columns of base record types are not included.
    """
    return sorted(record_type.columns, key=lambda c: c.index)


def column_count(record_type: RecordTypeDefinition) -> int:
    """Return the number of columns a record type exports."""
    return len(record_type.columns)
