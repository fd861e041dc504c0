"""Tests for building sheets from record collections."""

import datetime
import enum
import logging
from dataclasses import dataclass
from decimal import Decimal

import pytest

from typed_sheets import column, convert, sheet_record
from typed_sheets.builder import GridBuilder
from typed_sheets.cells import CellKind
from typed_sheets.columns import ColumnDefinition
from typed_sheets.errors import IneligibleTypeError
from typed_sheets.projector import project
from typed_sheets.schema import Schema
from typed_sheets.sinks import Grid, GridSink


class Status(enum.Enum):
    ACTIVE = 1
    RETIRED = 2


@sheet_record
@dataclass
class Person:
    name: str
    age: int

    @column(0, "Name")
    def get_name(self):
        return self.name

    @column(1, "Age")
    def get_age(self):
        return self.age


@sheet_record
@dataclass
class Account:
    owner: str
    opened: datetime.date
    balance: float
    status: Status
    points: int

    @column(3, "Status")
    def get_status(self):
        return self.status

    @column(0, "Owner")
    def get_owner(self):
        return self.owner

    @column(2, "Balance")
    def get_balance(self):
        return self.balance

    @column(1, "Opened")
    def get_opened(self):
        return self.opened

    @column(4, "Points")
    def get_points(self):
        return self.points

    def audit(self):
        raise AssertionError("accessors without a column must never be called")


@sheet_record
@dataclass
class Gadget:
    label: str
    rank: int

    @column(0, "Label")
    def get_label(self):
        if self.label == "boom":
            raise RuntimeError("accessor failed")
        return self.label

    @column(1, "Extra")
    def get_extra(self):
        return Decimal("1.5") if self.rank else None


class RecordingSink(GridSink):
    """GridSink that records every call it receives."""

    def __init__(self):
        super().__init__()
        self.calls = []

    def create_sheet(self, name):
        self.calls.append(("create_sheet", name))
        return super().create_sheet(name)

    def create_row(self, sheet, index):
        self.calls.append(("create_row", index))
        return super().create_row(sheet, index)

    def set_cell(self, row, column, value):
        self.calls.append(("set_cell", column, value))
        super().set_cell(row, column, value)


PEOPLE_SCHEMA = """
enum Status { active, retired }

Person {
    name: string @column(0, "Name"),
    age: int64 @column(1, "Age")
}

Ranked {
    name: string @column(0, "Name"),
    rank: int16 @column(1, "Rank")
}

Member {
    name: string @column(0, "Name"),
    status: Status @column(1, "Status")
}
"""


class TestExampleScenario:
    """The two-person example, through both record-type front ends."""

    def _assert_people_grid(self, grid):
        assert isinstance(grid, Grid)
        assert grid.rows == [["Name", "Age"], ["Ana", 30], ["Ben", 41]]
        assert grid.column_count == 2
        assert grid.row_count == 3
        assert grid.filter_range == (0, 3, 0, 2)
        assert grid.sized_columns == [0, 1]

    def test_annotated_class(self):
        grid = convert(Person, [Person("Ana", 30), Person("Ben", 41)], "People")
        self._assert_people_grid(grid)
        assert grid.name == "People"

    def test_defined_record(self):
        person = Schema.parse(PEOPLE_SCHEMA).record_type("Person")
        records = [{"name": "Ana", "age": 30}, {"name": "Ben", "age": 41}]

        self._assert_people_grid(convert(person, records, "People"))


class TestGridBuilder:
    """Tests for GridBuilder.build and GridBuilder.convert."""

    def test_build_result(self):
        """Test the reported extent of a build."""
        sink = GridSink()
        result = GridBuilder().build(Person, [Person("Ana", 30)], "People", sink)

        assert result.row_count == 2
        assert result.column_count == 2
        assert result.sheet is sink.sheets["People"]
        assert result.sheet.filter_range is None
        assert result.sheet.sized_columns == []

    def test_header_at_annotated_positions(self):
        """Test that header text is placed by column index, not declaration order."""
        grid = convert(Account, [], "Accounts")

        assert grid.header == ["Owner", "Opened", "Balance", "Status", "Points"]
        assert all(grid.header)

    def test_empty_collection(self):
        """Test that an empty collection still gets a header row."""
        grid = convert(Person, [], "People")

        assert grid.rows == [["Name", "Age"]]
        assert grid.filter_range == (0, 1, 0, 2)

    def test_value_kinds(self):
        """Test cell payloads for each supported kind."""
        account = Account(
            owner="Ana",
            opened=datetime.date(2020, 2, 29),
            balance=12.5,
            status=Status.RETIRED,
            points=2**40,
        )

        grid = convert(Account, [account], "Accounts")

        assert grid.rows[1] == ["Ana", "2020-02-29", 12.5, "RETIRED", 2**40]

    def test_row_order_preserved(self):
        """Test that row i+1 holds record i."""
        people = [Person("Cy", 50), Person("Ana", 30), Person("Ben", 41)]

        grid = convert(Person, people, "People")

        assert [row[0] for row in grid.data_rows] == ["Cy", "Ana", "Ben"]

    def test_records_may_be_any_iterable(self):
        """Test that a generator is consumed once, in order."""
        grid = convert(Person, (Person(n, i) for i, n in enumerate("xyz")), "People")

        assert [row[0] for row in grid.data_rows] == ["x", "y", "z"]
        assert grid.row_count == 4

    def test_none_leaves_cell_unset(self):
        """Test that an absent value writes nothing and the row continues."""
        sink = RecordingSink()
        GridBuilder().build(Gadget, [Gadget("a", 0), Gadget("b", 1)], "G", sink)

        grid = sink.sheets["G"]
        assert grid.rows[1] == ["a"]
        assert grid.cell(1, 1) is None
        assert ("set_cell", 1, None) not in sink.calls

    def test_unknown_kind_leaves_cell_unset(self):
        """Test that an unsupported value kind writes nothing and does not fail."""
        grid = convert(Gadget, [Gadget("a", 1), Gadget("b", 1)], "G")

        assert grid.rows[1] == ["a"]
        assert grid.rows[2] == ["b"]
        assert grid.row_count == 3

    def test_accessor_failure_is_cell_local(self, caplog):
        """Test that a failing accessor empties one cell, logs, and the export completes."""
        log = logging.getLogger("tests.builder")
        records = [Gadget("a", 0), Gadget("boom", 0), Gadget("c", 0)]

        with caplog.at_level(logging.ERROR, logger="tests.builder"):
            grid = GridBuilder(log).convert(Gadget, records, "G", GridSink())

        assert [row[:1] for row in grid.data_rows] == [["a"], [], ["c"]]
        errors = [r for r in caplog.records if r.name == "tests.builder"]
        assert len(errors) == 1
        assert errors[0].levelno == logging.ERROR
        assert "get_label" in errors[0].getMessage()
        assert errors[0].exc_info is not None

    def test_accessor_without_column_not_invoked(self):
        """Test that methods without a column annotation are never called."""
        account = Account("Ana", datetime.date(2020, 1, 1), 1.0, Status.ACTIVE, 1)
        convert(Account, [account], "Accounts")

    def test_enum_field_accepted(self):
        """Test that an enum field passes the eligibility check."""
        member = Schema.parse(PEOPLE_SCHEMA).record_type("Member")
        status = Schema.parse(PEOPLE_SCHEMA).get_type("Status")

        grid = convert(member, [{"name": "Ana", "status": status.value_of("retired")}], "M")

        assert grid.rows[1] == ["Ana", "retired"]

    def test_defined_record_missing_key(self, caplog):
        """Test that a record missing a field leaves that cell empty without an error."""
        person = Schema.parse(PEOPLE_SCHEMA).record_type("Person")

        with caplog.at_level(logging.ERROR):
            grid = convert(person, [{"name": "Ana"}, {"age": 41}], "People")

        assert grid.rows[1] == ["Ana"]
        assert grid.rows[2] == [None, 41]
        assert not [r for r in caplog.records if r.levelno >= logging.ERROR]


class TestIneligibleType:
    """Tests for exports rejected by the eligibility check."""

    def test_int16_field_fails_before_any_output(self, caplog):
        """Test that the export fails fast and the sink never sees a sheet."""
        ranked = Schema.parse(PEOPLE_SCHEMA).record_type("Ranked")
        sink = RecordingSink()

        with caplog.at_level(logging.ERROR):
            with pytest.raises(IneligibleTypeError) as exc_info:
                GridBuilder().convert(ranked, [{"name": "a", "rank": 1}], "R", sink)

        assert exc_info.value.field_name == "rank"
        assert sink.calls == []
        assert sink.sheets == {}
        assert any(r.levelno == logging.ERROR for r in caplog.records)

    def test_unmapped_annotation_fails(self):
        """Test that a class field with no exportable type is rejected."""

        @dataclass
        class Flagged:
            name: str
            active: bool

            @column(0, "Name")
            def get_name(self):
                return self.name

        with pytest.raises(IneligibleTypeError) as exc_info:
            convert(Flagged, [Flagged("a", True)], "F")

        assert exc_info.value.field_name == "active"
        assert exc_info.value.type_name == "bit"

    def test_unexported_field_still_checked(self):
        """Test that fields are checked even when no column reads them."""

        @dataclass
        class Holder:
            name: str
            blob: bytes

            @column(0, "Name")
            def get_name(self):
                return self.name

        with pytest.raises(IneligibleTypeError):
            convert(Holder, [], "H")


class TestProject:
    """Tests for project."""

    def test_project_classifies(self):
        col = ColumnDefinition(index=0, header="X", name="x", accessor=lambda r: r * 2)

        cell = project(21, col)

        assert cell.kind is CellKind.INT32
        assert cell.payload == 42

    def test_project_failure(self, caplog):
        def broken(record):
            raise PermissionError("denied")

        col = ColumnDefinition(index=3, header="X", name="secret", accessor=broken)

        with caplog.at_level(logging.ERROR, logger="typed_sheets.projector"):
            cell = project(object(), col)

        assert cell.kind is CellKind.EMPTY
        assert "secret" in caplog.records[0].getMessage()
