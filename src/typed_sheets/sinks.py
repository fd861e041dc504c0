"""Sinks that receive the rows built from a record collection."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, NamedTuple, Protocol

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

CellPayload = str | int | float


class Sink(Protocol):
    """What the grid builder writes into.

    Row and column indices are zero-based. ``set_filter_range`` receives
    exclusive upper bounds for rows and columns.
    """

    def create_sheet(self, name: str) -> Any: ...

    def create_row(self, sheet: Any, index: int) -> Any: ...

    def set_cell(self, row: Any, column: int, value: CellPayload) -> None: ...

    def auto_size_column(self, sheet: Any, column: int) -> None: ...

    def set_filter_range(
        self, sheet: Any, first_row: int, last_row: int, first_col: int, last_col: int
    ) -> None: ...


@dataclass
class Grid:
    """An in-memory sheet: a header row followed by data rows.

    Unset cells are ``None``.
    """

    name: str
    rows: list[list[CellPayload | None]] = field(default_factory=list)
    sized_columns: list[int] = field(default_factory=list)
    filter_range: tuple[int, int, int, int] | None = None

    @property
    def header(self) -> list[CellPayload | None]:
        return self.rows[0] if self.rows else []

    @property
    def data_rows(self) -> list[list[CellPayload | None]]:
        return self.rows[1:]

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return max((len(r) for r in self.rows), default=0)

    def cell(self, row: int, column: int) -> CellPayload | None:
        """Return the value at a position, or None if it was never set."""
        if row >= len(self.rows) or column >= len(self.rows[row]):
            return None
        return self.rows[row][column]

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable representation."""
        return {
            "name": self.name,
            "rows": [list(r) for r in self.rows],
            "row_count": self.row_count,
            "column_count": self.column_count,
            "filter_range": list(self.filter_range) if self.filter_range else None,
        }


class GridSink:
    """Sink that builds :class:`Grid` objects in memory."""

    def __init__(self) -> None:
        self.sheets: dict[str, Grid] = {}

    def create_sheet(self, name: str) -> Grid:
        if name in self.sheets:
            raise ValueError(f"Sheet '{name}' already exists")
        grid = Grid(name=name)
        self.sheets[name] = grid
        return grid

    def create_row(self, sheet: Grid, index: int) -> list[CellPayload | None]:
        while len(sheet.rows) <= index:
            sheet.rows.append([])
        return sheet.rows[index]

    def set_cell(self, row: list[CellPayload | None], column: int, value: CellPayload) -> None:
        while len(row) <= column:
            row.append(None)
        row[column] = value

    def auto_size_column(self, sheet: Grid, column: int) -> None:
        sheet.sized_columns.append(column)

    def set_filter_range(
        self, sheet: Grid, first_row: int, last_row: int, first_col: int, last_col: int
    ) -> None:
        sheet.filter_range = (first_row, last_row, first_col, last_col)


class WorkbookRow(NamedTuple):
    """A row handle in a :class:`WorkbookSink` sheet."""

    sheet: Worksheet
    index: int


class WorkbookSink:
    """Sink that writes into an openpyxl workbook.

    Args:
        min_width: Smallest width given to an auto-sized column.
        max_width: Largest width given to an auto-sized column.
    """

    def __init__(self, min_width: int = 8, max_width: int = 60) -> None:
        if min_width <= 0 or max_width < min_width:
            raise ValueError(f"Invalid column width bounds: {min_width}..{max_width}")
        self.min_width = min_width
        self.max_width = max_width
        self.workbook = Workbook()
        # Dropped when the first sheet is created so we control sheet order
        self._placeholder: Worksheet | None = self.workbook.active

    def create_sheet(self, name: str) -> Worksheet:
        sheet = self.workbook.create_sheet(name)
        if self._placeholder is not None:
            self.workbook.remove(self._placeholder)
            self._placeholder = None
        return sheet

    def create_row(self, sheet: Worksheet, index: int) -> WorkbookRow:
        return WorkbookRow(sheet=sheet, index=index)

    def set_cell(self, row: WorkbookRow, column: int, value: CellPayload) -> None:
        """Write a value; text is stored as text, never as a formula.

        Control characters the xlsx format cannot hold are dropped from text.
        """
        if isinstance(value, str):
            value = ILLEGAL_CHARACTERS_RE.sub("", value)
        cell = row.sheet.cell(row=row.index + 1, column=column + 1, value=value)
        if isinstance(value, str):
            cell.data_type = "s"

    def auto_size_column(self, sheet: Worksheet, column: int) -> None:
        longest = 0
        for (cell,) in sheet.iter_rows(min_col=column + 1, max_col=column + 1):
            if cell.value is not None:
                longest = max(longest, len(str(cell.value)))
        width = min(max(longest + 2, self.min_width), self.max_width)
        sheet.column_dimensions[get_column_letter(column + 1)].width = width

    def set_filter_range(
        self, sheet: Worksheet, first_row: int, last_row: int, first_col: int, last_col: int
    ) -> None:
        if last_row <= first_row or last_col <= first_col:
            return
        sheet.auto_filter.ref = (
            f"{get_column_letter(first_col + 1)}{first_row + 1}:"
            f"{get_column_letter(last_col)}{last_row}"
        )

    def save(self, path: Path | str) -> Path:
        """Write the workbook to an .xlsx file."""
        path = Path(path)
        self.workbook.save(path)
        return path
