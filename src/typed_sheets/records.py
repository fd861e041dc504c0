"""Record types built from annotated Python classes.

A class becomes exportable by marking accessor methods with
:func:`column`; its field types come from its annotations::

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
"""

from __future__ import annotations

import datetime
import enum
import inspect
import sys
import types
import typing
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from typed_sheets.columns import ColumnDefinition, validate_layout
from typed_sheets.types import (
    EnumTypeDefinition,
    EnumVariantDefinition,
    FieldDefinition,
    OpaqueTypeDefinition,
    RecordTypeDefinition,
    TypeDefinition,
    TypeRegistry,
)

COLUMN_ATTR = "__sheet_column__"
RECORD_ATTR = "__sheet_record__"

T = TypeVar("T")

# Builtin definitions Python annotations map onto
_BUILTINS = TypeRegistry()

_PYTHON_TYPE_NAMES: dict[Any, str] = {
    str: "string",
    int: "int64",
    float: "float64",
    datetime.date: "date",
    bool: "bit",
}


@dataclass(frozen=True)
class ColumnMarker:
    """Column metadata attached to an accessor by :func:`column`."""

    index: int
    header: str


def column(index: int, header: str) -> Callable[[T], T]:
    """Mark an accessor method as the column at ``index`` titled ``header``."""
    if isinstance(index, bool) or not isinstance(index, int):
        raise TypeError(f"Column index must be an int, got {type(index).__name__}")
    if not isinstance(header, str):
        raise TypeError(f"Column header must be a str, got {type(header).__name__}")
    if not header:
        raise ValueError("Column header must not be empty")

    def decorate(accessor: T) -> T:
        target = accessor.fget if isinstance(accessor, property) else accessor
        setattr(target, COLUMN_ATTR, ColumnMarker(index=index, header=header))
        return accessor

    return decorate


def sheet_record(cls: type[T]) -> type[T]:
    """Class decorator: build and attach the class's record type.

    Column layout errors surface here, when the class is defined.
    """
    setattr(cls, RECORD_ATTR, build_record_type(cls))
    return cls


def record_type_of(obj: RecordTypeDefinition | type) -> RecordTypeDefinition:
    """Return the record type for a definition or an annotated class.

    Classes not decorated with :func:`sheet_record` are built on demand and
    the result is cached on the class.
    """
    if isinstance(obj, RecordTypeDefinition):
        return obj
    if not isinstance(obj, type):
        raise TypeError(f"Expected a record type or a class, got {type(obj).__name__}")
    cached = vars(obj).get(RECORD_ATTR)
    if cached is None:
        cached = build_record_type(obj)
        setattr(obj, RECORD_ATTR, cached)
    return cached


def build_record_type(cls: type) -> RecordTypeDefinition:
    """Build a record type from a class and its bases.

    Every class in the MRO contributes the fields it annotates itself; only
    accessors defined on ``cls`` itself become columns.

    Raises:
        ColumnLayoutError: If the column indices are duplicated or gapped.
    """
    base: RecordTypeDefinition | None = None
    for klass in reversed(cls.__mro__[1:]):
        if klass is object:
            continue
        base = RecordTypeDefinition(
            name=klass.__qualname__, fields=_own_fields(klass), base=base
        )
    return RecordTypeDefinition(
        name=cls.__qualname__,
        fields=_own_fields(cls),
        base=base,
        columns=validate_layout(cls.__qualname__, _own_columns(cls)),
    )


def _own_fields(klass: type) -> list[FieldDefinition]:
    """Return the fields a class annotates itself, ClassVars excluded."""
    own = inspect.get_annotations(klass)
    if not own:
        return []
    try:
        hints = typing.get_type_hints(klass)
    except NameError:
        hints = _hints_by_field(klass, own)
    fields: list[FieldDefinition] = []
    for name in own:
        hint = hints.get(name, own[name])
        if typing.get_origin(hint) is typing.ClassVar:
            continue
        fields.append(FieldDefinition(name=name, type_def=type_for_annotation(hint)))
    return fields


def _hints_by_field(klass: type, own: dict[str, Any]) -> dict[str, Any]:
    """Evaluate each string annotation on its own.

    An annotation naming a type that is not reachable from the class (such as
    one local to a function) stays a string and maps to an opaque type.
    """
    module = sys.modules.get(klass.__module__)
    globalns = dict(vars(module)) if module is not None else {}
    localns = dict(vars(klass))
    hints: dict[str, Any] = {}
    for name, annotation in own.items():
        hints[name] = annotation
        if isinstance(annotation, str):
            try:
                hints[name] = eval(annotation, globalns, localns)
            except NameError:
                continue
    return hints


def _own_columns(cls: type) -> list[ColumnDefinition]:
    columns: list[ColumnDefinition] = []
    for name, member in vars(cls).items():
        accessor = member.fget if isinstance(member, property) else member
        marker = getattr(accessor, COLUMN_ATTR, None)
        if isinstance(marker, ColumnMarker):
            columns.append(
                ColumnDefinition(
                    index=marker.index, header=marker.header, name=name, accessor=accessor
                )
            )
    return columns


def type_for_annotation(annotation: Any) -> TypeDefinition:
    """Map a Python annotation onto a type definition.

    ``Optional[X]`` maps like ``X``. Annotations with no mapping become
    :class:`OpaqueTypeDefinition`.
    """
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return type_for_annotation(args[0])
    if origin is not None:
        return OpaqueTypeDefinition(name=str(annotation), python_type=annotation)

    type_name = _PYTHON_TYPE_NAMES.get(annotation)
    if type_name is not None:
        return _BUILTINS.get_or_raise(type_name)
    if isinstance(annotation, type) and issubclass(annotation, enum.Enum):
        return enum_type_for(annotation)

    name = annotation.__qualname__ if isinstance(annotation, type) else str(annotation)
    return OpaqueTypeDefinition(name=name, python_type=annotation)


def enum_type_for(enum_cls: type[enum.Enum]) -> EnumTypeDefinition:
    """Describe a Python ``Enum`` class as an enum type."""
    variants = []
    for position, member in enumerate(enum_cls):
        value = member.value
        disc = value if isinstance(value, int) and not isinstance(value, bool) else position
        variants.append(EnumVariantDefinition(name=member.name, discriminant=disc))
    return EnumTypeDefinition(
        name=enum_cls.__qualname__, variants=variants, python_type=enum_cls
    )
