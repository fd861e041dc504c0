"""Build a sheet from a collection of records."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable

from typed_sheets import eligibility
from typed_sheets.columns import resolve
from typed_sheets.projector import project, write_cell
from typed_sheets.records import record_type_of
from typed_sheets.sinks import GridSink, Sink
from typed_sheets.types import RecordTypeDefinition


@dataclass
class BuildResult:
    """The sheet a build produced and its extent."""

    sheet: Any
    row_count: int
    column_count: int


class GridBuilder:
    """Writes a header row and one row per record into a sink.

    Args:
        logger: Receives eligibility failures and accessor errors. Defaults
            to this module's logger.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger(__name__)

    def build(
        self,
        record_type: RecordTypeDefinition | type,
        records: Iterable[Any],
        sheet_name: str,
        sink: Sink,
    ) -> BuildResult:
        """Write the header row and data rows for ``records``.

        Raises:
            IneligibleTypeError: If a field of the record type cannot be
                exported. Nothing is written to the sink in that case.
        """
        record_type = record_type_of(record_type)
        eligibility.check(record_type, self.logger)

        columns = resolve(record_type)
        sheet = sink.create_sheet(sheet_name)

        header = sink.create_row(sheet, 0)
        for column in columns:
            sink.set_cell(header, column.index, column.header)

        row_index = 0
        for row_index, record in enumerate(records, start=1):
            row = sink.create_row(sheet, row_index)
            for column in columns:
                write_cell(sink, row, column.index, project(record, column, self.logger))

        self.logger.debug(
            "Built sheet '%s' from %d %s records", sheet_name, row_index, record_type.name
        )
        return BuildResult(sheet=sheet, row_count=row_index + 1, column_count=len(columns))

    def convert(
        self,
        record_type: RecordTypeDefinition | type,
        records: Iterable[Any],
        sheet_name: str,
        sink: Sink,
    ) -> Any:
        """Build the sheet, then size its columns and set its filter range.

        Returns:
            The sink's sheet handle.
        """
        result = self.build(record_type, records, sheet_name, sink)
        for column in range(result.column_count):
            sink.auto_size_column(result.sheet, column)
        sink.set_filter_range(result.sheet, 0, result.row_count, 0, result.column_count)
        return result.sheet


def convert(
    record_type: RecordTypeDefinition | type,
    records: Iterable[Any],
    sheet_name: str,
    sink: Sink | None = None,
    logger: logging.Logger | None = None,
) -> Any:
    """Convert records into a sized, filter-ranged sheet.

    With no sink, the sheet is an in-memory :class:`~typed_sheets.sinks.Grid`.
    """
    return GridBuilder(logger).convert(record_type, records, sheet_name, sink or GridSink())
