"""Weave Type System.

Primitive types: number, string, bool (`str` is accepted for string).
Named types resolve at check time to a struct or a string-literal union.
`satisfies` is the single satisfaction rule shared by struct construction,
function-call argument checking and method dispatch.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol, Union

from weave.ast_nodes import Statement, TypeAnnotation
from weave.errors import SourceLocation, ScriptError, type_error
from weave.values import Value, NumberValue, StringValue, BoolValue, StructInstance


# ---------------------------------------------------------------------------
# Type References
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TypeRef:
    """Base type reference."""
    name: str = ""

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class PrimitiveType(TypeRef):
    pass


@dataclass(frozen=True)
class NamedType(TypeRef):
    pass


NUMBER = PrimitiveType("number")
STRING = PrimitiveType("string")
BOOL = PrimitiveType("bool")

PRIMITIVES: dict[str, PrimitiveType] = {
    "number": NUMBER,
    "string": STRING,
    "str": STRING,
    "bool": BOOL,
}

_PRIMITIVE_VALUES: dict[PrimitiveType, type] = {
    NUMBER: NumberValue,
    STRING: StringValue,
    BOOL: BoolValue,
}


def resolve_type_annotation(ann: TypeAnnotation) -> TypeRef:
    """Turn a source annotation into a TypeRef. Named types are not looked up yet."""
    return PRIMITIVES.get(ann.name) or NamedType(ann.name)


# ---------------------------------------------------------------------------
# Declared types and functions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TypeAlias:
    name: str
    literals: tuple[str, ...]
    location: Optional[SourceLocation] = None

    def __str__(self) -> str:
        return " | ".join(f'"{lit}"' for lit in self.literals)


@dataclass(frozen=True)
class StructDef:
    name: str
    fields: tuple[tuple[str, TypeRef], ...]
    location: Optional[SourceLocation] = None

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.fields)

    def get_field_type(self, field_name: str) -> Optional[TypeRef]:
        for name, typ in self.fields:
            if name == field_name:
                return typ
        return None


@dataclass(frozen=True)
class FunctionDef:
    name: str
    params: tuple[tuple[str, TypeRef], ...]
    return_type: Optional[TypeRef] = None
    body: tuple[Statement, ...] = field(default_factory=tuple)
    location: Optional[SourceLocation] = None

    @property
    def arity(self) -> int:
        return len(self.params)

    @property
    def receiver_type(self) -> Optional[TypeRef]:
        """Type of the first parameter, the key for method-call dispatch."""
        if self.params:
            return self.params[0][1]
        return None

    def signature(self) -> str:
        params = ", ".join(f"{n}: {t}" for n, t in self.params)
        ret = f" -> {self.return_type}" if self.return_type else ""
        return f"fn {self.name}({params}){ret}"


class TypeLookup(Protocol):
    def lookup_type(self, name: str) -> Union[TypeAlias, StructDef, None]: ...


# ---------------------------------------------------------------------------
# Satisfaction
# ---------------------------------------------------------------------------

def satisfies(
    value: Value,
    type_ref: TypeRef,
    registry: TypeLookup,
    location: Optional[SourceLocation] = None,
) -> bool:
    """Check whether a runtime value satisfies a declared type.

    Raises a type error when a named type resolves to nothing.
    """
    if isinstance(type_ref, PrimitiveType):
        return isinstance(value, _PRIMITIVE_VALUES[type_ref])

    target = registry.lookup_type(type_ref.name)
    if isinstance(target, StructDef):
        return isinstance(value, StructInstance) and value.struct_name == target.name
    if isinstance(target, TypeAlias):
        return isinstance(value, StringValue) and value.value in target.literals

    raise ScriptError(type_error(
        f"unknown type '{type_ref.name}'",
        location,
        expected_type=type_ref.name,
    ))


def describe_type(type_ref: TypeRef, registry: TypeLookup) -> str:
    """Human-readable expected type, spelling out union members."""
    target = None if isinstance(type_ref, PrimitiveType) else registry.lookup_type(type_ref.name)
    if isinstance(target, TypeAlias):
        return f"{type_ref.name} ({target})"
    return str(type_ref)
