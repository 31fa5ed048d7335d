"""Weave Runtime Value Tests — VAL-001 through VAL-002."""

from weave.values import (
    NumberValue, StringValue, BoolValue, StructInstance, FunctionRef, UNIT,
    format_number, is_truthy,
)


class TestVAL001:
    """VAL-001: Display strings.
    Pass Criteria: each value kind prints the way `print` shows it.
    """

    def test_numbers(self):
        assert format_number(2.0) == "2"
        assert format_number(-3.0) == "-3"
        assert format_number(2.5) == "2.5"
        assert format_number(0.1 + 0.2) == "0.30000000000000004"
        assert format_number(float("inf")) == "inf"
        assert format_number(float("-inf")) == "-inf"
        assert format_number(float("nan")) == "NaN"

    def test_numbers_never_use_exponent_form(self):
        assert format_number(1e-7) == "0.0000001"
        assert format_number(-2.5e-5) == "-0.000025"
        assert format_number(1e16) == "10000000000000000"
        assert format_number(1e23) == "100000000000000000000000"
        assert format_number(1.5e21) == "1500000000000000000000"

    def test_scalars(self):
        assert StringValue("hi").display() == "hi"
        assert BoolValue(True).display() == "true"
        assert UNIT.display() == "nil"
        assert FunctionRef("tax").display() == "<fn tax>"

    def test_struct_quotes_nested_strings(self):
        inst = StructInstance("Pizza", {"size": StringValue("large"), "price": NumberValue(12.0)})
        assert inst.display() == 'Pizza { size: "large", price: 12 }'

    def test_describe(self):
        assert StringValue("bogus").describe() == 'string "bogus"'
        assert NumberValue(1.0).describe() == "number 1"
        assert StructInstance("Pizza", {}).describe() == "Pizza instance"


class TestVAL002:
    """VAL-002: Equality and truthiness.
    Pass Criteria: values compare structurally; only false and nil are falsy.
    """

    def test_structural_equality(self):
        a = StructInstance("P", {"x": NumberValue(1.0)})
        b = StructInstance("P", {"x": NumberValue(1.0)})
        assert a == b
        assert NumberValue(1.0) != StringValue("1")

    def test_truthiness(self):
        assert not is_truthy(BoolValue(False))
        assert not is_truthy(UNIT)
        assert is_truthy(NumberValue(0.0))
        assert is_truthy(StringValue(""))
