"""Type definitions for the typed_sheets library."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterator

if TYPE_CHECKING:
    from typed_sheets.columns import ColumnDefinition


class PrimitiveType(Enum):
    """Built-in primitive types supported by the type system."""

    BIT = "bit"
    CHARACTER = "character"
    UINT8 = "uint8"
    INT8 = "int8"
    UINT16 = "uint16"
    INT16 = "int16"
    UINT32 = "uint32"
    INT32 = "int32"
    UINT64 = "uint64"
    INT64 = "int64"
    UINT128 = "uint128"
    INT128 = "int128"
    FLOAT32 = "float32"
    FLOAT64 = "float64"


# Mapping from type name strings to PrimitiveType enum values
PRIMITIVE_TYPE_NAMES: dict[str, PrimitiveType] = {pt.value: pt for pt in PrimitiveType}


@dataclass
class TypeDefinition:
    """Base class for all type definitions."""

    name: str

    @property
    def is_array(self) -> bool:
        """Return whether this type is an array type."""
        return False

    @property
    def is_enum(self) -> bool:
        """Return whether this type is an enum type."""
        return False

    def resolve_base_type(self) -> TypeDefinition:
        """Resolve through aliases to get the underlying type."""
        return self


@dataclass
class PrimitiveTypeDefinition(TypeDefinition):
    """Type definition wrapping a primitive type."""

    primitive: PrimitiveType


@dataclass
class AliasTypeDefinition(TypeDefinition):
    """Type definition for 'define X as Y' aliases."""

    base_type: TypeDefinition

    @property
    def is_array(self) -> bool:
        return self.base_type.is_array

    def resolve_base_type(self) -> TypeDefinition:
        """Resolve through aliases to get the underlying type."""
        return self.base_type.resolve_base_type()


@dataclass
class ArrayTypeDefinition(TypeDefinition):
    """Type definition for array types (e.g., uint8[])."""

    element_type: TypeDefinition

    @property
    def is_array(self) -> bool:
        return True


@dataclass
class StringTypeDefinition(TypeDefinition):
    """Built-in text type."""

    pass


@dataclass
class DateTypeDefinition(TypeDefinition):
    """Built-in calendar date type (no time of day, no zone)."""

    pass


@dataclass
class OpaqueTypeDefinition(TypeDefinition):
    """A Python class the type model has no mapping for.

    Record types built from annotated classes keep such fields so that
    the eligibility check can report them by name.
    """

    python_type: Any = None


def is_string_type(type_def: TypeDefinition) -> bool:
    """Check if a type resolves to the built-in string type."""
    return isinstance(type_def.resolve_base_type(), StringTypeDefinition)


def is_date_type(type_def: TypeDefinition) -> bool:
    """Check if a type resolves to the built-in date type."""
    return isinstance(type_def.resolve_base_type(), DateTypeDefinition)


@dataclass
class FieldDefinition:
    """Definition of a field within a composite type."""

    name: str
    type_def: TypeDefinition


@dataclass
class CompositeTypeDefinition(TypeDefinition):
    """Type definition for composite types (structs)."""

    fields: list[FieldDefinition] = field(default_factory=list)

    def get_field(self, name: str) -> FieldDefinition | None:
        """Get a field by name."""
        for f in self.fields:
            if f.name == name:
                return f
        return None


@dataclass
class RecordTypeDefinition(CompositeTypeDefinition):
    """A composite type that can be exported as a sheet.

    ``fields`` holds only the fields declared on this type; the fields of
    ``base`` (and its bases) are reached through :meth:`all_fields`.
    ``columns`` holds only the columns declared on this type, ordered by
    column index.
    """

    base: RecordTypeDefinition | None = None
    columns: list[ColumnDefinition] = field(default_factory=list)

    def inheritance_chain(self) -> list[RecordTypeDefinition]:
        """Return this type and its bases, root base first."""
        chain: list[RecordTypeDefinition] = []
        current: RecordTypeDefinition | None = self
        while current is not None:
            chain.append(current)
            current = current.base
        chain.reverse()
        return chain

    def all_fields(self) -> Iterator[FieldDefinition]:
        """Yield every field declared anywhere in the inheritance chain."""
        for record_type in self.inheritance_chain():
            yield from record_type.fields

    def get_field(self, name: str) -> FieldDefinition | None:
        """Get a field by name, searching the whole inheritance chain."""
        for f in self.all_fields():
            if f.name == name:
                return f
        return None


@dataclass
class EnumVariantDefinition:
    """A single variant within an enum type."""

    name: str
    discriminant: int


@dataclass
class EnumValue:
    """Runtime representation of an enum value from a defined enum type."""

    variant_name: str
    discriminant: int


@dataclass
class EnumTypeDefinition(TypeDefinition):
    """Enum type definition.

    Enums defined in the record-definition language carry their variants;
    enums mapped from a Python ``Enum`` class also keep the class.
    """

    variants: list[EnumVariantDefinition] = field(default_factory=list)
    has_explicit_values: bool = False  # True when any variant uses `= N`
    python_type: Any = None

    @property
    def is_enum(self) -> bool:
        return True

    def get_variant(self, name: str) -> EnumVariantDefinition | None:
        for v in self.variants:
            if v.name == name:
                return v
        return None

    def value_of(self, name: str) -> EnumValue:
        """Return the runtime value for a variant name.

        Raises:
            ValueError: If the enum has no variant with that name.
        """
        variant = self.get_variant(name)
        if variant is None:
            raise ValueError(f"Unknown variant '{name}' on enum '{self.name}'")
        return EnumValue(variant_name=variant.name, discriminant=variant.discriminant)


class TypeRegistry:
    """Registry of all defined types."""

    def __init__(self) -> None:
        self._types: dict[str, TypeDefinition] = {}
        self._register_builtins()

    def _register_builtins(self) -> None:
        """Register all primitive types plus string and date."""
        for pt in PrimitiveType:
            self._types[pt.value] = PrimitiveTypeDefinition(name=pt.value, primitive=pt)
        self._types["string"] = StringTypeDefinition(name="string")
        self._types["date"] = DateTypeDefinition(name="date")

    def register(self, type_def: TypeDefinition) -> None:
        """Register a type definition."""
        if type_def.name in self._types:
            raise ValueError(f"Type '{type_def.name}' is already defined")
        self._types[type_def.name] = type_def

    def get(self, name: str) -> TypeDefinition | None:
        """Get a type by name."""
        return self._types.get(name)

    def get_or_raise(self, name: str) -> TypeDefinition:
        """Get a type by name, raising if not found."""
        type_def = self._types.get(name)
        if type_def is None:
            raise KeyError(f"Type '{name}' not found")
        return type_def

    def get_array_type(self, element_type_name: str) -> ArrayTypeDefinition:
        """Get or create an array type for the given element type."""
        array_name = f"{element_type_name}[]"
        existing = self._types.get(array_name)
        if existing is not None:
            if not isinstance(existing, ArrayTypeDefinition):
                raise TypeError(f"Type '{array_name}' exists but is not an array type")
            return existing

        element_type = self.get_or_raise(element_type_name)
        array_type = ArrayTypeDefinition(name=array_name, element_type=element_type)
        self._types[array_name] = array_type
        return array_type

    def register_enum_stub(self, name: str) -> EnumTypeDefinition:
        """Pre-register an empty enum for forward-declaration support.

        Idempotent: returns existing stub if name is already an empty enum.
        Raises ValueError if name is registered with a non-empty type.
        """
        existing = self._types.get(name)
        if existing is not None:
            if isinstance(existing, EnumTypeDefinition) and not existing.variants:
                return existing
            raise ValueError(f"Type '{name}' is already defined")
        stub = EnumTypeDefinition(name=name, variants=[])
        self._types[name] = stub
        return stub

    def register_record_stub(self, name: str) -> RecordTypeDefinition:
        """Pre-register an empty record type for forward references.

        Idempotent: returns existing stub if name is already an empty record.
        Raises ValueError if name is registered with a non-empty type.
        """
        existing = self._types.get(name)
        if existing is not None:
            if isinstance(existing, RecordTypeDefinition) and not existing.fields:
                return existing
            raise ValueError(f"Type '{name}' is already defined")
        stub = RecordTypeDefinition(name=name, fields=[])
        self._types[name] = stub
        return stub

    def list_types(self) -> list[str]:
        """List all registered type names."""
        return list(self._types.keys())

    def list_record_types(self) -> list[str]:
        """List the names of all registered record types."""
        return [
            name for name, td in self._types.items() if isinstance(td, RecordTypeDefinition)
        ]

    def __contains__(self, name: str) -> bool:
        return name in self._types
