"""Project record values into sheet cells."""

from __future__ import annotations

import logging
from typing import Any

from typed_sheets.cells import CellKind, CellValue
from typed_sheets.columns import ColumnDefinition
from typed_sheets.sinks import Sink

logger = logging.getLogger(__name__)


def project(
    record: Any, column: ColumnDefinition, log: logging.Logger | None = None
) -> CellValue:
    """Invoke a column's accessor on a record and classify the result.

    An exception raised by the accessor is logged and yields an empty cell;
    it never aborts the export.
    """
    try:
        value = column.read(record)
    except Exception:
        (log or logger).error(
            "Accessor '%s' (column %d) failed; leaving cell empty",
            column.name,
            column.index,
            exc_info=True,
        )
        return CellValue.empty()

    cell = CellValue.of(value)
    if cell.kind is CellKind.UNSUPPORTED:
        (log or logger).debug(
            "Accessor '%s' returned unsupported %s; leaving cell empty",
            column.name,
            type(value).__name__,
        )
    return cell


def write_cell(sink: Sink, row: Any, column_index: int, cell: CellValue) -> bool:
    """Write a classified value into a sink row.

    Returns:
        True if anything was written.
    """
    if cell.is_empty:
        return False
    sink.set_cell(row, column_index, cell.payload)
    return True
