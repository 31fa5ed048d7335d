"""Weave runtime values.

Number, String, Bool, StructInstance, FunctionRef and Unit. Union-typed
values are plain Strings; membership in a union is checked at the call or
construction boundary, not carried on the value.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class Value:
    """Base runtime value."""

    @property
    def type_name(self) -> str:
        return "unknown"

    def display(self) -> str:
        raise NotImplementedError

    def describe(self) -> str:
        """Short description used in diagnostics: `string "bogus"`, `Pizza instance`."""
        return f"{self.type_name} {self.display()}"


@dataclass(frozen=True)
class NumberValue(Value):
    value: float = 0.0

    @property
    def type_name(self) -> str:
        return "number"

    def display(self) -> str:
        return format_number(self.value)


@dataclass(frozen=True)
class StringValue(Value):
    value: str = ""

    @property
    def type_name(self) -> str:
        return "string"

    def display(self) -> str:
        return self.value

    def describe(self) -> str:
        return f'string "{self.value}"'


@dataclass(frozen=True)
class BoolValue(Value):
    value: bool = False

    @property
    def type_name(self) -> str:
        return "bool"

    def display(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class StructInstance(Value):
    struct_name: str = ""
    # Insertion order follows the struct declaration
    fields: dict[str, Value] = field(default_factory=dict)

    @property
    def type_name(self) -> str:
        return self.struct_name

    def display(self) -> str:
        parts = ", ".join(f"{name}: {_nested_display(v)}" for name, v in self.fields.items())
        return f"{self.struct_name} {{ {parts} }}"

    def describe(self) -> str:
        return f"{self.struct_name} instance"


@dataclass(frozen=True)
class FunctionRef(Value):
    name: str = ""

    @property
    def type_name(self) -> str:
        return "function"

    def display(self) -> str:
        return f"<fn {self.name}>"

    def describe(self) -> str:
        return f"function '{self.name}'"


@dataclass(frozen=True)
class UnitValue(Value):

    @property
    def type_name(self) -> str:
        return "nil"

    def display(self) -> str:
        return "nil"

    def describe(self) -> str:
        return "nil"


UNIT = UnitValue()
TRUE = BoolValue(True)
FALSE = BoolValue(False)


def format_number(n: float) -> str:
    if math.isnan(n):
        return "NaN"
    if math.isinf(n):
        return "inf" if n > 0 else "-inf"
    # Shortest round-trip digits, always written out positionally: 1e-07 prints as 0.0000001
    text = format(Decimal(repr(n)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _nested_display(value: Value) -> str:
    if isinstance(value, StringValue):
        return f'"{value.value}"'
    return value.display()


def is_truthy(value: Value) -> bool:
    if isinstance(value, BoolValue):
        return value.value
    return not isinstance(value, UnitValue)


def make_bool(flag: bool) -> BoolValue:
    return TRUE if flag else FALSE
