"""Tool for exporting JSON records to a spreadsheet.

Usage:
    typed-sheets-export people.tts Person people.json               # writes Person.xlsx
    typed-sheets-export people.tts Person people.json -o out.xlsx   # custom output
    typed-sheets-export people.tts Person people.json --json        # prints the grid
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from typed_sheets.builder import convert
from typed_sheets.errors import IneligibleTypeError
from typed_sheets.json_records import load_records
from typed_sheets.schema import Schema
from typed_sheets.sinks import WorkbookSink

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Export JSON records of a declared record type to a spreadsheet"
    )
    parser.add_argument("schema", type=Path, help="File with the record definitions")
    parser.add_argument("type_name", help="Name of the record type to export")
    parser.add_argument("records", type=Path, help="JSON file holding an array of records")
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output .xlsx file (default: <type_name>.xlsx)",
    )
    parser.add_argument(
        "-s", "--sheet",
        default=None,
        help="Sheet name (default: the record type name)",
    )
    parser.add_argument(
        "-j", "--json",
        action="store_true",
        help="Print the grid as JSON instead of writing a workbook",
    )
    parser.add_argument("--min-width", type=int, default=8, help="Smallest column width")
    parser.add_argument("--max-width", type=int, default=60, help="Largest column width")
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log debug messages",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    for path in (args.schema, args.records):
        if not path.exists():
            print(f"Error: {path} not found", file=sys.stderr)
            return 1

    try:
        schema = Schema.load(args.schema)
    except (SyntaxError, ValueError, KeyError) as e:
        print(f"Error: Invalid record definitions in {args.schema}: {e}", file=sys.stderr)
        return 1

    try:
        record_type = schema.record_type(args.type_name)
    except (KeyError, TypeError):
        print(f"Error: Unknown record type: {args.type_name}", file=sys.stderr)
        available = ", ".join(schema.list_record_types()) or "(none)"
        print(f"Available record types: {available}", file=sys.stderr)
        return 1

    try:
        records = load_records(args.records, record_type)
    except ValueError as e:
        print(f"Error: Invalid records in {args.records}: {e}", file=sys.stderr)
        return 1

    sheet_name = args.sheet or record_type.name

    try:
        if args.json:
            grid = convert(record_type, records, sheet_name, logger=logger)
            print(json.dumps(grid.to_dict(), indent=2))
            return 0

        sink = WorkbookSink(min_width=args.min_width, max_width=args.max_width)
        convert(record_type, records, sheet_name, sink=sink, logger=logger)
    except (IneligibleTypeError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    out_path = sink.save(args.output or Path(f"{record_type.name}.xlsx"))
    print(f"Wrote {len(records)} records to {out_path}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
