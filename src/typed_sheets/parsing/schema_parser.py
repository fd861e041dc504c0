"""Parser for the record definition language."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import ply.yacc as yacc

from typed_sheets.columns import ColumnDefinition, FieldAccessor, validate_layout
from typed_sheets.parsing.schema_lexer import SchemaLexer
from typed_sheets.types import (
    AliasTypeDefinition,
    EnumTypeDefinition,
    EnumVariantDefinition,
    FieldDefinition,
    RecordTypeDefinition,
    TypeDefinition,
    TypeRegistry,
)


@dataclass
class TypeRef:
    """Reference to a type, possibly as an array."""

    name: str
    is_array: bool = False


@dataclass
class ColumnSpec:
    """A ``@column(index, "Header")`` annotation."""

    index: int
    header: str


@dataclass
class FieldSpec:
    """Specification for a field before resolution."""

    name: str
    type_ref: TypeRef
    column: ColumnSpec | None = None


@dataclass
class RecordSpec:
    """Specification for a record type before resolution."""

    name: str
    fields: list[FieldSpec]
    base_name: str | None = None


@dataclass
class EnumVariantSpecDSL:
    """Specification for an enum variant before resolution."""

    name: str
    explicit_value: int | None = None


@dataclass
class EnumSpec:
    """Specification for an enum type before resolution."""

    name: str
    variants: list[EnumVariantSpecDSL]


@dataclass
class AliasSpec:
    """Specification for an alias before resolution."""

    name: str
    base_type_ref: TypeRef


class SchemaParser:
    """Parser for the record definition language."""

    tokens = SchemaLexer.tokens

    def __init__(self) -> None:
        self.lexer = SchemaLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore
        self.registry: TypeRegistry = TypeRegistry()
        self._specs: list[AliasSpec | RecordSpec | EnumSpec] = []
        self._errors: list[str] = []

    def p_schema(self, p: yacc.YaccProduction) -> None:
        """schema : statement_list"""
        p[0] = p[1]

    def p_statement_list_single(self, p: yacc.YaccProduction) -> None:
        """statement_list : statement"""
        p[0] = [p[1]]

    def p_statement_list_multiple(self, p: yacc.YaccProduction) -> None:
        """statement_list : statement_list statement"""
        p[0] = p[1]
        p[0].append(p[2])

    def p_statement(self, p: yacc.YaccProduction) -> None:
        """statement : alias_def
                     | record_def
                     | enum_def"""
        p[0] = p[1]

    def p_alias_def(self, p: yacc.YaccProduction) -> None:
        """alias_def : DEFINE IDENTIFIER AS type_ref"""
        p[0] = AliasSpec(name=p[2], base_type_ref=p[4])

    def p_record_def(self, p: yacc.YaccProduction) -> None:
        """record_def : IDENTIFIER LBRACE field_list RBRACE
                      | IDENTIFIER LBRACE field_list COMMA RBRACE"""
        p[0] = RecordSpec(name=p[1], fields=p[3])

    def p_record_def_empty(self, p: yacc.YaccProduction) -> None:
        """record_def : IDENTIFIER LBRACE RBRACE"""
        p[0] = RecordSpec(name=p[1], fields=[])

    def p_record_def_extends(self, p: yacc.YaccProduction) -> None:
        """record_def : IDENTIFIER EXTENDS IDENTIFIER LBRACE field_list RBRACE
                      | IDENTIFIER EXTENDS IDENTIFIER LBRACE field_list COMMA RBRACE"""
        p[0] = RecordSpec(name=p[1], fields=p[5], base_name=p[3])

    def p_record_def_extends_empty(self, p: yacc.YaccProduction) -> None:
        """record_def : IDENTIFIER EXTENDS IDENTIFIER LBRACE RBRACE"""
        p[0] = RecordSpec(name=p[1], fields=[], base_name=p[3])

    def p_field_list_single(self, p: yacc.YaccProduction) -> None:
        """field_list : field"""
        p[0] = [p[1]]

    def p_field_list_multiple(self, p: yacc.YaccProduction) -> None:
        """field_list : field_list COMMA field"""
        p[0] = p[1] + [p[3]]

    def p_field(self, p: yacc.YaccProduction) -> None:
        """field : IDENTIFIER COLON type_ref"""
        p[0] = FieldSpec(name=p[1], type_ref=p[3])

    def p_field_column(self, p: yacc.YaccProduction) -> None:
        """field : IDENTIFIER COLON type_ref annotation"""
        p[0] = FieldSpec(name=p[1], type_ref=p[3], column=p[4])

    # Annotation errors are collected and raised by parse() once ply returns
    def p_annotation(self, p: yacc.YaccProduction) -> None:
        """annotation : AT IDENTIFIER LPAREN INTEGER COMMA STRING RPAREN"""
        if self._expect_column_annotation(p):
            p[0] = ColumnSpec(index=p[4], header=p[6])

    def p_annotation_no_header(self, p: yacc.YaccProduction) -> None:
        """annotation : AT IDENTIFIER LPAREN INTEGER RPAREN"""
        if self._expect_column_annotation(p):
            self._errors.append(
                f"@column({p[4]}) needs a header, e.g. @column({p[4]}, \"Header\") "
                f"(line {p.lineno(2)})"
            )

    def _expect_column_annotation(self, p: yacc.YaccProduction) -> bool:
        if p[2] != "column":
            self._errors.append(f"Unknown annotation '@{p[2]}' (line {p.lineno(2)})")
            return False
        return True

    def p_enum_def(self, p: yacc.YaccProduction) -> None:
        """enum_def : ENUM IDENTIFIER LBRACE enum_variant_list RBRACE
                    | ENUM IDENTIFIER LBRACE enum_variant_list COMMA RBRACE"""
        p[0] = EnumSpec(name=p[2], variants=p[4])

    def p_enum_variant_list_single(self, p: yacc.YaccProduction) -> None:
        """enum_variant_list : enum_variant"""
        p[0] = [p[1]]

    def p_enum_variant_list_multiple(self, p: yacc.YaccProduction) -> None:
        """enum_variant_list : enum_variant_list COMMA enum_variant"""
        p[0] = p[1] + [p[3]]

    def p_enum_variant_bare(self, p: yacc.YaccProduction) -> None:
        """enum_variant : IDENTIFIER"""
        p[0] = EnumVariantSpecDSL(name=p[1])

    def p_enum_variant_value(self, p: yacc.YaccProduction) -> None:
        """enum_variant : IDENTIFIER EQUALS INTEGER"""
        p[0] = EnumVariantSpecDSL(name=p[1], explicit_value=p[3])

    def p_type_ref_simple(self, p: yacc.YaccProduction) -> None:
        """type_ref : IDENTIFIER"""
        p[0] = TypeRef(name=p[1], is_array=False)

    def p_type_ref_array(self, p: yacc.YaccProduction) -> None:
        """type_ref : IDENTIFIER LBRACKET RBRACKET"""
        p[0] = TypeRef(name=p[1], is_array=True)

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise SyntaxError(f"Syntax error at '{p.value}' (line {p.lineno})")
        else:
            raise SyntaxError("Syntax error at end of input")

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self.parser = yacc.yacc(module=self, **kwargs)

    def parse(self, data: str) -> TypeRegistry:
        """Parse record definitions and return a populated TypeRegistry."""
        if self.parser is None:
            self.build(debug=False, write_tables=False)

        self.registry = TypeRegistry()
        self._specs = []
        self._errors = []

        if not data.strip() or not self.lexer.tokenize(data):
            return self.registry

        self.lexer.lexer.lineno = 1
        specs = self.parser.parse(data, lexer=self.lexer.lexer)
        if self._errors:
            raise SyntaxError(self._errors[0])
        self._specs = specs or []

        self._resolve_specs()
        return self.registry

    def _resolve_enum_spec(self, spec: EnumSpec) -> None:
        """Resolve an enum spec and populate its stub."""
        variants: list[EnumVariantDefinition] = []
        seen: set[str] = set()
        auto_disc = 0
        for vspec in spec.variants:
            if vspec.name in seen:
                raise ValueError(f"Enum '{spec.name}': duplicate variant '{vspec.name}'")
            seen.add(vspec.name)
            if vspec.explicit_value is not None:
                disc = vspec.explicit_value
                auto_disc = disc + 1
            else:
                disc = auto_disc
                auto_disc += 1
            variants.append(EnumVariantDefinition(name=vspec.name, discriminant=disc))

        stub = self.registry.get(spec.name)
        if isinstance(stub, EnumTypeDefinition):
            stub.variants = variants
            stub.has_explicit_values = any(v.explicit_value is not None for v in spec.variants)

    def _resolve_record_spec(self, spec: RecordSpec) -> None:
        """Resolve a record spec and populate its stub."""
        base: RecordTypeDefinition | None = None
        if spec.base_name is not None:
            base_def = self.registry.get_or_raise(spec.base_name)
            if not isinstance(base_def, RecordTypeDefinition):
                raise ValueError(
                    f"Record '{spec.name}' cannot extend '{spec.base_name}': not a record type"
                )
            base = base_def

        fields: list[FieldDefinition] = []
        columns: list[ColumnDefinition] = []
        for field_spec in spec.fields:
            if any(f.name == field_spec.name for f in fields):
                raise ValueError(f"Record '{spec.name}': duplicate field '{field_spec.name}'")
            field_type = self._resolve_type_ref(field_spec.type_ref)
            fields.append(FieldDefinition(name=field_spec.name, type_def=field_type))
            if field_spec.column is not None:
                columns.append(
                    ColumnDefinition(
                        index=field_spec.column.index,
                        header=field_spec.column.header,
                        name=field_spec.name,
                        accessor=FieldAccessor(field_spec.name),
                    )
                )

        # Mutate the existing stub in-place
        stub = self.registry.get(spec.name)
        if not isinstance(stub, RecordTypeDefinition):
            raise TypeError(f"'{spec.name}' is not a record type")
        stub.fields = fields
        stub.base = base
        stub.columns = validate_layout(spec.name, columns)

    def _resolve_type_ref(self, type_ref: TypeRef) -> TypeDefinition:
        """Resolve a type reference to a type definition."""
        if type_ref.is_array:
            return self.registry.get_array_type(type_ref.name)
        return self.registry.get_or_raise(type_ref.name)

    def _resolve_specs(self) -> None:
        """Resolve all specs into type definitions using two-phase resolution.

        Phase 1: Pre-register stubs for all records and enums so that
        forward references resolve.
        Phase 2: Iteratively resolve aliases and populate the stubs.
        """
        # Phase 1: Pre-register record and enum stubs
        seen: set[str] = set()
        for spec in self._specs:
            if spec.name in seen or spec.name in self.registry:
                raise ValueError(f"Type '{spec.name}' is already defined")
            seen.add(spec.name)
            if isinstance(spec, RecordSpec):
                self.registry.register_record_stub(spec.name)
            elif isinstance(spec, EnumSpec):
                self.registry.register_enum_stub(spec.name)

        # Phase 2: Iteratively resolve
        unresolved = list(self._specs)
        max_iterations = len(unresolved) + 1
        for _ in range(max_iterations):
            if not unresolved:
                break

            still_unresolved: list[AliasSpec | RecordSpec | EnumSpec] = []
            progress = False

            for spec in unresolved:
                try:
                    if isinstance(spec, AliasSpec):
                        base_type = self._resolve_type_ref(spec.base_type_ref)
                        self.registry.register(
                            AliasTypeDefinition(name=spec.name, base_type=base_type)
                        )
                    elif isinstance(spec, RecordSpec):
                        self._resolve_record_spec(spec)
                    elif isinstance(spec, EnumSpec):
                        self._resolve_enum_spec(spec)
                    progress = True
                except KeyError:
                    # Dependency not yet resolved
                    still_unresolved.append(spec)

            unresolved = still_unresolved

            if not progress and unresolved:
                raise ValueError(f"Cannot resolve types: {[s.name for s in unresolved]}")

        self._check_inheritance()

    def _check_inheritance(self) -> None:
        """Reject inheritance cycles and fields redeclared from a base."""
        for name in self.registry.list_record_types():
            record = self.registry.get_or_raise(name)
            if not isinstance(record, RecordTypeDefinition):
                raise TypeError(f"'{name}' is not a record type")
            visited: set[str] = set()
            current: RecordTypeDefinition | None = record
            while current is not None:
                if current.name in visited:
                    raise ValueError(f"Record '{name}' has an inheritance cycle")
                visited.add(current.name)
                current = current.base

            field_names: set[str] = set()
            for f in record.all_fields():
                if f.name in field_names:
                    raise ValueError(
                        f"Record '{name}': field '{f.name}' is already declared by a base"
                    )
                field_names.add(f.name)
