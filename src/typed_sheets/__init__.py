"""Typed Sheets - Export collections of typed records as spreadsheets."""

from typed_sheets.builder import BuildResult, GridBuilder, convert
from typed_sheets.cells import CellKind, CellValue
from typed_sheets.columns import ColumnDefinition, FieldAccessor, column_count, resolve
from typed_sheets.eligibility import check
from typed_sheets.errors import ColumnLayoutError, IneligibleTypeError, TypedSheetsError
from typed_sheets.json_records import load_records
from typed_sheets.projector import project, write_cell
from typed_sheets.records import column, record_type_of, sheet_record
from typed_sheets.schema import Schema
from typed_sheets.sinks import Grid, GridSink, Sink, WorkbookSink
from typed_sheets.types import (
    AliasTypeDefinition,
    EnumTypeDefinition,
    EnumValue,
    FieldDefinition,
    PrimitiveType,
    RecordTypeDefinition,
    TypeDefinition,
    TypeRegistry,
)

__all__ = [
    # Main API
    "convert",
    "GridBuilder",
    "BuildResult",
    "Schema",
    "column",
    "sheet_record",
    "record_type_of",
    "load_records",
    # Pipeline stages
    "check",
    "resolve",
    "column_count",
    "project",
    "write_cell",
    # Sinks
    "Sink",
    "Grid",
    "GridSink",
    "WorkbookSink",
    # Cells and columns
    "CellKind",
    "CellValue",
    "ColumnDefinition",
    "FieldAccessor",
    # Type definitions
    "TypeDefinition",
    "PrimitiveType",
    "AliasTypeDefinition",
    "EnumTypeDefinition",
    "EnumValue",
    "FieldDefinition",
    "RecordTypeDefinition",
    "TypeRegistry",
    # Errors
    "TypedSheetsError",
    "IneligibleTypeError",
    "ColumnLayoutError",
]

__version__ = "0.1.0"
