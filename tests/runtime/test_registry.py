"""Weave Registry & Type Satisfaction Tests — REG-001 through REG-004."""

import pytest

from weave.parser import parse
from weave.registry import build_registry
from weave.types import NUMBER, STRING, BOOL, NamedType, satisfies, describe_type
from weave.values import NumberValue, StringValue, BoolValue, StructInstance
from weave.errors import ScriptError, ErrorKind, SourceLocation


PIZZA_DECLS = """
type Size = "small" | "medium" | "large"
struct Pizza { size: Size, price: number }
fn tax(p: Pizza, rate: number) -> number { return p.price * rate }
fn shout(s: string) { print(s) }
"""


def registry_for(source):
    return build_registry(parse(source))


class TestREG001:
    """REG-001: Declaration collection.
    Pass Criteria: aliases, structs and functions are collected with their signatures.
    """

    def test_collects_everything(self):
        reg = registry_for(PIZZA_DECLS)
        assert list(reg.aliases) == ["Size"]
        assert reg.aliases["Size"].literals == ("small", "medium", "large")
        assert reg.structs["Pizza"].field_names == ("size", "price")
        assert reg.structs["Pizza"].get_field_type("size") == NamedType("Size")
        assert reg.functions["tax"].arity == 2
        assert reg.functions["tax"].signature() == "fn tax(p: Pizza, rate: number) -> number"

    def test_forward_declarations_are_visible(self):
        reg = registry_for('greet("x")\nfn greet(n: string) { print(n) }')
        assert reg.lookup_function("greet") is not None

    def test_union_literals_are_deduplicated_in_order(self):
        reg = registry_for('type T = "b" | "a" | "b"')
        assert reg.aliases["T"].literals == ("b", "a")

    def test_str_is_a_string_synonym(self):
        reg = registry_for("fn f(s: str) { }")
        assert reg.functions["f"].params[0][1] == STRING

    def test_registry_is_read_only(self):
        reg = registry_for(PIZZA_DECLS)
        with pytest.raises(TypeError):
            reg.functions["extra"] = reg.functions["tax"]


class TestREG002:
    """REG-002: Redeclaration.
    Pass Criteria: a name declared twice, or a reserved primitive name, is a NameError.
    """

    def test_duplicate_function(self):
        with pytest.raises(ScriptError) as exc:
            registry_for("fn f() { }\nfn f() { }")
        err = exc.value.error
        assert err.kind == ErrorKind.NAME
        assert err.location.line == 2
        assert "already declared" in err.message

    def test_struct_and_function_share_a_namespace(self):
        with pytest.raises(ScriptError) as exc:
            registry_for("struct P { a: number }\nfn P() { }")
        assert exc.value.kind == ErrorKind.NAME

    def test_primitive_name_cannot_be_a_type(self):
        with pytest.raises(ScriptError) as exc:
            registry_for('type number = "one"')
        assert exc.value.kind == ErrorKind.NAME

    def test_duplicate_field(self):
        with pytest.raises(ScriptError) as exc:
            registry_for("struct P { a: number, a: string }")
        assert exc.value.error.message == "duplicate field 'a' in 'P'"

    def test_duplicate_parameter(self):
        with pytest.raises(ScriptError) as exc:
            registry_for("fn f(a: number, a: number) { }")
        assert exc.value.kind == ErrorKind.NAME


class TestREG003:
    """REG-003: Satisfaction rule.
    Pass Criteria: primitives match by tag, structs by name, unions by membership.
    """

    def setup_method(self):
        self.reg = registry_for(PIZZA_DECLS)

    def test_primitives(self):
        assert satisfies(NumberValue(1.0), NUMBER, self.reg)
        assert satisfies(StringValue("a"), STRING, self.reg)
        assert satisfies(BoolValue(True), BOOL, self.reg)
        assert not satisfies(StringValue("1"), NUMBER, self.reg)
        assert not satisfies(NumberValue(0.0), BOOL, self.reg)

    def test_union_membership(self):
        size = NamedType("Size")
        assert satisfies(StringValue("large"), size, self.reg)
        assert not satisfies(StringValue("Large"), size, self.reg)
        assert not satisfies(NumberValue(1.0), size, self.reg)

    def test_struct_nominal(self):
        pizza = NamedType("Pizza")
        inst = StructInstance("Pizza", {"size": StringValue("small"), "price": NumberValue(3.0)})
        assert satisfies(inst, pizza, self.reg)
        assert not satisfies(StructInstance("Other", {}), pizza, self.reg)
        assert not satisfies(StringValue("Pizza"), pizza, self.reg)

    def test_unknown_type_is_type_error(self):
        with pytest.raises(ScriptError) as exc:
            satisfies(NumberValue(1.0), NamedType("Ghost"), self.reg)
        assert exc.value.kind == ErrorKind.TYPE
        assert "unknown type 'Ghost'" in exc.value.error.message

    def test_describe_union(self):
        assert describe_type(NamedType("Size"), self.reg) == 'Size ("small" | "medium" | "large")'
        assert describe_type(NUMBER, self.reg) == "number"


class TestREG004:
    """REG-004: Method dispatch table.
    Pass Criteria: dot-calls resolve by (name, first parameter type).
    """

    def setup_method(self):
        self.reg = registry_for(PIZZA_DECLS)

    def test_dispatch_table_keys(self):
        assert set(self.reg.dispatch_table) == {("tax", "Pizza"), ("shout", "string")}

    def test_resolve_matching_receiver(self):
        inst = StructInstance("Pizza", {"size": StringValue("small"), "price": NumberValue(3.0)})
        assert self.reg.resolve_method("tax", inst).name == "tax"
        assert self.reg.resolve_method("shout", StringValue("hey")).name == "shout"

    def test_resolve_non_matching_receiver(self):
        assert self.reg.resolve_method("tax", NumberValue(1.0)) is None
        assert self.reg.resolve_method("missing", NumberValue(1.0)) is None

    def test_zero_parameter_functions_are_not_methods(self):
        reg = registry_for("fn hello() { }")
        assert len(reg.dispatch_table) == 0
        assert reg.method_candidates("hello") == ()

    def test_candidates_are_looked_up_by_name(self):
        assert [fn.name for fn in self.reg.method_candidates("tax")] == ["tax"]
        assert self.reg.method_candidates("base_price") == ()

    def test_union_receiver_falls_back_to_satisfaction(self):
        reg = registry_for(PIZZA_DECLS + 'fn label(s: Size) -> string { return s }')
        assert ("label", "Size") in reg.dispatch_table
        assert reg.resolve_method("label", StringValue("small")).name == "label"
        assert reg.resolve_method("label", StringValue("tiny")) is None

    def test_unknown_receiver_type_error_carries_location(self):
        reg = registry_for("fn f(x: Ghost) { }")
        where = SourceLocation(3, 8)
        with pytest.raises(ScriptError) as exc:
            reg.resolve_method("f", NumberValue(1.0), where)
        assert exc.value.kind == ErrorKind.TYPE
        assert exc.value.error.location == where
