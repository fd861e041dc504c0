"""Example usage of the typed_sheets library."""

import datetime
import enum
from dataclasses import dataclass

from typed_sheets import Schema, WorkbookSink, column, convert, sheet_record


class Status(enum.Enum):
    ACTIVE = 1
    RETIRED = 2


# Annotated classes: columns are accessor methods
@sheet_record
@dataclass
class Person:
    name: str
    age: int
    born: datetime.date
    status: Status

    @column(0, "Name")
    def get_name(self):
        return self.name

    @column(1, "Age")
    def get_age(self):
        return self.age

    @column(2, "Born")
    def get_born(self):
        return self.born

    @column(3, "Status")
    def get_status(self):
        return self.status


people = [
    Person("Alice", 30, datetime.date(1994, 5, 17), Status.ACTIVE),
    Person("Bob", 61, datetime.date(1963, 1, 8), Status.RETIRED),
    Person("Charlie", 35, datetime.date(1989, 11, 2), Status.ACTIVE),
]

grid = convert(Person, people, "People")
for row in grid.rows:
    print(row)

# The same layout declared in the definition language
schema = Schema.parse("""
enum Status { active, retired }

Person {
    name: string @column(0, "Name"),
    age: int64 @column(1, "Age"),
    status: Status @column(2, "Status")
}
""")

sink = WorkbookSink()
convert(
    schema.record_type("Person"),
    [
        {"name": "Diana", "age": 28, "status": "active"},
        {"name": "Eve", "age": 22, "status": "retired"},
    ],
    "People",
    sink=sink,
)
print(f"Saved {sink.save('people.xlsx')}")
