"""Tests for JSON record loading and the export tool."""

import datetime
import enum
import json

import openpyxl
import pytest

from typed_sheets.export import main
from typed_sheets.json_records import coerce_value, load_records
from typed_sheets.records import enum_type_for
from typed_sheets.schema import Schema
from typed_sheets.types import EnumValue

SCHEMA = """
enum Status { active, retired }
define Money as float64

Person {
    name: string @column(0, "Name"),
    born: date @column(1, "Born"),
    status: Status @column(2, "Status"),
    pay: Money @column(3, "Pay")
}

Ranked {
    rank: int16 @column(0, "Rank")
}
"""

PEOPLE = [
    {"name": "Ana", "born": "1994-05-17", "status": "active", "pay": 1200.5},
    {"name": "Ben", "born": "1983-11-02", "status": "retired", "pay": 900},
]


class Shade(enum.Enum):
    LIGHT = "l"
    DARK = "d"


@pytest.fixture
def person():
    return Schema.parse(SCHEMA).record_type("Person")


@pytest.fixture
def files(tmp_path):
    schema_path = tmp_path / "people.tts"
    schema_path.write_text(SCHEMA, encoding="utf-8")
    records_path = tmp_path / "people.json"
    records_path.write_text(json.dumps(PEOPLE), encoding="utf-8")
    return schema_path, records_path


class TestLoadRecords:
    """Tests for load_records."""

    def test_coerces_declared_fields(self, person):
        records = load_records(PEOPLE, person)

        assert records[0]["born"] == datetime.date(1994, 5, 17)
        assert records[0]["status"] == EnumValue(variant_name="active", discriminant=0)
        assert records[1]["pay"] == 900
        assert records[0]["name"] == "Ana"

    def test_reads_file(self, person, files):
        _, records_path = files

        records = load_records(records_path, person)

        assert [r["name"] for r in records] == ["Ana", "Ben"]

    def test_keeps_unknown_keys_and_nulls(self, person):
        records = load_records([{"name": "Ana", "born": None, "extra": "x"}], person)

        assert records == [{"name": "Ana", "born": None, "extra": "x"}]

    def test_rejects_non_array(self, person):
        with pytest.raises(ValueError, match="JSON array"):
            load_records({"name": "Ana"}, person)

    def test_rejects_non_object_record(self, person):
        with pytest.raises(ValueError, match="Record 1"):
            load_records([{"name": "Ana"}, 3], person)

    def test_bad_date(self, person):
        with pytest.raises(ValueError, match="field 'born'"):
            load_records([{"born": "17/05/1994"}], person)

    def test_unknown_variant(self, person):
        with pytest.raises(ValueError, match="Unknown variant"):
            load_records([{"status": "gone"}], person)

    def test_python_enum(self):
        """Test that variant names of Python enums map to members."""
        shade = enum_type_for(Shade)

        assert coerce_value("DARK", shade) is Shade.DARK
        with pytest.raises(ValueError, match="Unknown variant"):
            coerce_value("GREY", shade)


class TestExportMain:
    """Tests for the typed-sheets-export entry point."""

    def test_writes_workbook(self, files, tmp_path, capsys):
        schema_path, records_path = files
        out = tmp_path / "people.xlsx"

        code = main([str(schema_path), "Person", str(records_path), "-o", str(out), "-s", "Staff"])

        assert code == 0
        assert "Wrote 2 records" in capsys.readouterr().err
        ws = openpyxl.load_workbook(out)["Staff"]
        rows = list(ws.iter_rows(values_only=True))
        assert rows == [
            ("Name", "Born", "Status", "Pay"),
            ("Ana", "1994-05-17", "active", 1200.5),
            ("Ben", "1983-11-02", "retired", 900),
        ]
        assert ws.auto_filter.ref == "A1:D3"

    def test_json_output(self, files, capsys):
        schema_path, records_path = files

        code = main([str(schema_path), "Person", str(records_path), "--json"])

        assert code == 0
        grid = json.loads(capsys.readouterr().out)
        assert grid["name"] == "Person"
        assert grid["rows"][2] == ["Ben", "1983-11-02", "retired", 900]
        assert grid["filter_range"] == [0, 3, 0, 4]

    def test_missing_file(self, files, tmp_path, capsys):
        schema_path, _ = files

        code = main([str(schema_path), "Person", str(tmp_path / "nope.json"), "--json"])

        assert code == 1
        assert "not found" in capsys.readouterr().err

    def test_unknown_type(self, files, capsys):
        schema_path, records_path = files

        code = main([str(schema_path), "Nobody", str(records_path), "--json"])

        assert code == 1
        err = capsys.readouterr().err
        assert "Unknown record type: Nobody" in err
        assert "Person, Ranked" in err

    def test_invalid_schema(self, files, tmp_path, capsys):
        _, records_path = files
        bad = tmp_path / "bad.tts"
        bad.write_text("Person { name: string @column(0) }", encoding="utf-8")

        code = main([str(bad), "Person", str(records_path), "--json"])

        assert code == 1
        assert "Invalid record definitions" in capsys.readouterr().err

    def test_ineligible_type(self, files, tmp_path, capsys):
        schema_path, _ = files
        records_path = tmp_path / "ranks.json"
        records_path.write_text('[{"rank": 1}]', encoding="utf-8")
        out = tmp_path / "ranks.xlsx"

        code = main([str(schema_path), "Ranked", str(records_path), "-o", str(out)])

        assert code == 1
        assert "rank" in capsys.readouterr().err
        assert not out.exists()

    def test_invalid_records(self, files, tmp_path, capsys):
        schema_path, _ = files
        records_path = tmp_path / "bad.json"
        records_path.write_text("{not json", encoding="utf-8")

        code = main([str(schema_path), "Person", str(records_path), "--json"])

        assert code == 1
        assert "Invalid records" in capsys.readouterr().err
