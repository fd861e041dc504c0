"""Schema class for record types declared in the definition language."""

from __future__ import annotations

from pathlib import Path

from typed_sheets.parsing import SchemaParser
from typed_sheets.types import RecordTypeDefinition, TypeDefinition, TypeRegistry


class Schema:
    """Parsed record definitions."""

    def __init__(self, registry: TypeRegistry) -> None:
        """Initialize a schema.

        Args:
            registry: Type registry with all type definitions.
        """
        self.registry = registry

    @classmethod
    def parse(cls, definitions: str) -> Schema:
        """Parse record definitions and create a schema.

        Args:
            definitions: Definition-language source.

        Returns:
            A new Schema instance.
        """
        return cls(SchemaParser().parse(definitions))

    @classmethod
    def load(cls, path: Path | str) -> Schema:
        """Parse record definitions from a file."""
        return cls.parse(Path(path).read_text(encoding="utf-8"))

    def get_type(self, name: str) -> TypeDefinition:
        """Get a type definition by name.

        Raises:
            KeyError: If the type is not found.
        """
        return self.registry.get_or_raise(name)

    def record_type(self, name: str) -> RecordTypeDefinition:
        """Get a record type by name.

        Raises:
            KeyError: If the type is not found.
            TypeError: If the type is not a record type.
        """
        type_def = self.registry.get_or_raise(name)
        if not isinstance(type_def, RecordTypeDefinition):
            raise TypeError(f"Type '{name}' is not a record type")
        return type_def

    def list_types(self) -> list[str]:
        """List all registered type names."""
        return self.registry.list_types()

    def list_record_types(self) -> list[str]:
        """List the names of all record types."""
        return self.registry.list_record_types()
