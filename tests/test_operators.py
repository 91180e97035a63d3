"""Tests for unary/binary operator folding with Java promotion."""

import math

import pytest

from lintfold.evaluate import (
    FALSE,
    NULL,
    TRUE,
    UNKNOWN,
    ValueKind,
    apply_binary,
    apply_unary,
    byte_value,
    char_value,
    double_value,
    float_value,
    int_value,
    long_value,
    short_value,
    string_value,
)
from lintfold.model.expressions import BinaryOp, UnaryOp

INT_MAX = 2**31 - 1
INT_MIN = -(2**31)


# ---------------------------------------------------------------------------
# Unary
# ---------------------------------------------------------------------------

class TestUnary:
    def test_not(self):
        assert apply_unary(UnaryOp.NOT, TRUE) is FALSE

    def test_not_on_int_is_unknown(self):
        assert apply_unary(UnaryOp.NOT, int_value(1)).is_unknown

    def test_plus_is_identity(self):
        v = short_value(3)
        assert apply_unary(UnaryOp.PLUS, v) is v

    def test_minus_promotes_small_types(self):
        assert apply_unary(UnaryOp.MINUS, byte_value(5)) == int_value(-5)

    def test_minus_int_min_wraps(self):
        assert apply_unary(UnaryOp.MINUS, int_value(INT_MIN)) == int_value(INT_MIN)

    def test_minus_keeps_wide_kinds(self):
        assert apply_unary(UnaryOp.MINUS, long_value(5)) == long_value(-5)
        assert apply_unary(UnaryOp.MINUS, double_value(1.5)) == double_value(-1.5)
        assert apply_unary(UnaryOp.MINUS, float_value(1.5)) == float_value(-1.5)

    def test_bitwise_not(self):
        assert apply_unary(UnaryOp.BITWISE_NOT, int_value(5)) == int_value(-6)
        assert apply_unary(UnaryOp.BITWISE_NOT, long_value(0)) == long_value(-1)

    def test_bitwise_not_on_double_is_unknown(self):
        assert apply_unary(UnaryOp.BITWISE_NOT, double_value(1.0)).is_unknown

    @pytest.mark.parametrize("op", [
        UnaryOp.PREFIX_INCREMENT,
        UnaryOp.PREFIX_DECREMENT,
        UnaryOp.POSTFIX_INCREMENT,
        UnaryOp.POSTFIX_DECREMENT,
    ])
    def test_increments_never_fold(self, op):
        assert apply_unary(op, int_value(1)).is_unknown

    def test_unknown_operand(self):
        assert apply_unary(UnaryOp.MINUS, UNKNOWN) is UNKNOWN


# ---------------------------------------------------------------------------
# Numeric promotion
# ---------------------------------------------------------------------------

class TestPromotion:
    def test_int_plus_long_is_long(self):
        assert apply_binary(BinaryOp.PLUS, int_value(2), long_value(3)) == long_value(5)

    def test_float_plus_double_is_double(self):
        result = apply_binary(BinaryOp.PLUS, float_value(1.5), double_value(2.5))
        assert result == double_value(4.0)

    def test_float_plus_int_is_float(self):
        result = apply_binary(BinaryOp.PLUS, float_value(1.5), int_value(1))
        assert result.kind == ValueKind.FLOAT
        assert result.data == 2.5

    def test_byte_arithmetic_is_int(self):
        result = apply_binary(BinaryOp.PLUS, byte_value(100), byte_value(100))
        assert result == int_value(200)

    def test_char_arithmetic_is_int(self):
        assert apply_binary(BinaryOp.PLUS, char_value("a"), int_value(1)) == int_value(98)

    def test_float_precision_kept(self):
        result = apply_binary(BinaryOp.PLUS, float_value(0.1), float_value(0.2))
        assert result.kind == ValueKind.FLOAT
        assert result == float_value(float_value(0.1).data + float_value(0.2).data)

    def test_int_operand_rounds_to_float_first(self):
        # (float) 16777217 is 16777216f, so adding 1f ties back to 16777216f
        result = apply_binary(BinaryOp.PLUS, int_value(16777217), float_value(1.0))
        assert result == float_value(16777216.0)

    def test_long_operand_rounds_once_to_float(self):
        result = apply_binary(BinaryOp.PLUS, long_value(2**60 + 2**36 + 1), float_value(0.0))
        assert result.data == float(2**60 + 2**37)


class TestIntegerArithmetic:
    def test_overflow_wraps(self):
        assert apply_binary(BinaryOp.PLUS, int_value(INT_MAX), int_value(1)) == int_value(INT_MIN)

    def test_long_does_not_overflow_at_int(self):
        result = apply_binary(BinaryOp.PLUS, long_value(INT_MAX), int_value(1))
        assert result == long_value(INT_MAX + 1)

    def test_multiply_wraps(self):
        result = apply_binary(BinaryOp.MULTIPLY, int_value(65536), int_value(65536))
        assert result == int_value(0)

    def test_division_truncates_toward_zero(self):
        assert apply_binary(BinaryOp.DIV, int_value(7), int_value(-2)) == int_value(-3)
        assert apply_binary(BinaryOp.DIV, int_value(-7), int_value(2)) == int_value(-3)

    def test_remainder_sign_follows_dividend(self):
        assert apply_binary(BinaryOp.MOD, int_value(-7), int_value(3)) == int_value(-1)
        assert apply_binary(BinaryOp.MOD, int_value(7), int_value(-3)) == int_value(1)

    def test_int_min_divided_by_minus_one(self):
        result = apply_binary(BinaryOp.DIV, int_value(INT_MIN), int_value(-1))
        assert result == int_value(INT_MIN)

    def test_division_by_zero_is_unknown(self):
        assert apply_binary(BinaryOp.DIV, int_value(1), int_value(0)).is_unknown
        assert apply_binary(BinaryOp.MOD, long_value(1), long_value(0)).is_unknown


class TestFloatingArithmetic:
    def test_division_by_zero_is_infinite(self):
        result = apply_binary(BinaryOp.DIV, double_value(1.0), double_value(0.0))
        assert result.data == math.inf

    def test_negative_division_by_zero(self):
        result = apply_binary(BinaryOp.DIV, double_value(-1.0), double_value(0.0))
        assert result.data == -math.inf

    def test_zero_over_zero_is_nan(self):
        result = apply_binary(BinaryOp.DIV, double_value(0.0), int_value(0))
        assert math.isnan(result.data)

    def test_remainder(self):
        result = apply_binary(BinaryOp.MOD, double_value(-5.5), double_value(2.0))
        assert result == double_value(-1.5)

    def test_remainder_by_zero_is_nan(self):
        result = apply_binary(BinaryOp.MOD, double_value(1.0), double_value(0.0))
        assert math.isnan(result.data)


# ---------------------------------------------------------------------------
# Bitwise and shifts
# ---------------------------------------------------------------------------

class TestBitwise:
    def test_and_or_xor(self):
        assert apply_binary(BinaryOp.BITWISE_AND, int_value(6), int_value(3)) == int_value(2)
        assert apply_binary(BinaryOp.BITWISE_OR, int_value(6), int_value(3)) == int_value(7)
        assert apply_binary(BinaryOp.BITWISE_XOR, int_value(6), int_value(3)) == int_value(5)

    def test_long_operand_widens(self):
        assert apply_binary(BinaryOp.BITWISE_OR, int_value(1), long_value(2)) == long_value(3)

    def test_on_floating_is_unknown(self):
        assert apply_binary(BinaryOp.BITWISE_AND, double_value(1.0), int_value(1)).is_unknown


class TestShifts:
    def test_int_shift_distance_is_masked(self):
        assert apply_binary(BinaryOp.SHIFT_LEFT, int_value(1), int_value(33)) == int_value(2)

    def test_long_shift(self):
        assert apply_binary(BinaryOp.SHIFT_LEFT, long_value(1), int_value(33)) == long_value(2**33)

    def test_width_follows_left_operand(self):
        # int << long stays an int
        assert apply_binary(BinaryOp.SHIFT_LEFT, int_value(1), long_value(1)) == int_value(2)

    def test_overflow_into_sign_bit(self):
        assert apply_binary(BinaryOp.SHIFT_LEFT, int_value(1), int_value(31)) == int_value(INT_MIN)

    def test_arithmetic_right_shift(self):
        assert apply_binary(BinaryOp.SHIFT_RIGHT, int_value(-8), int_value(1)) == int_value(-4)

    def test_unsigned_right_shift(self):
        assert apply_binary(BinaryOp.UNSIGNED_SHIFT_RIGHT, int_value(-1), int_value(28)) == int_value(15)
        assert apply_binary(BinaryOp.UNSIGNED_SHIFT_RIGHT, long_value(-1), int_value(60)) == long_value(15)

    def test_shift_floating_is_unknown(self):
        assert apply_binary(BinaryOp.SHIFT_LEFT, double_value(1.0), int_value(1)).is_unknown


# ---------------------------------------------------------------------------
# Comparisons and booleans
# ---------------------------------------------------------------------------

class TestComparisons:
    def test_mixed_numeric_equality(self):
        assert apply_binary(BinaryOp.EQUALS, int_value(1), double_value(1.0)) is TRUE

    def test_ordering(self):
        assert apply_binary(BinaryOp.LESS, int_value(1), int_value(2)) is TRUE
        assert apply_binary(BinaryOp.GREATER_OR_EQUALS, long_value(1), int_value(2)) is FALSE

    def test_char_compares_by_code_unit(self):
        assert apply_binary(BinaryOp.LESS, char_value("a"), char_value("b")) is TRUE

    def test_int_compared_as_float(self):
        assert apply_binary(BinaryOp.EQUALS, int_value(16777217), float_value(16777216.0)) is TRUE
        assert apply_binary(BinaryOp.EQUALS, int_value(16777217), double_value(16777216.0)) is FALSE

    def test_nan_is_unordered(self):
        nan = double_value(math.nan)
        assert apply_binary(BinaryOp.EQUALS, nan, nan) is FALSE
        assert apply_binary(BinaryOp.NOT_EQUALS, nan, nan) is TRUE


class TestBooleans:
    @pytest.mark.parametrize("op,expected", [
        (BinaryOp.LOGICAL_AND, FALSE),
        (BinaryOp.LOGICAL_OR, TRUE),
        (BinaryOp.BITWISE_AND, FALSE),
        (BinaryOp.BITWISE_OR, TRUE),
        (BinaryOp.BITWISE_XOR, TRUE),
        (BinaryOp.EQUALS, FALSE),
        (BinaryOp.NOT_EQUALS, TRUE),
    ])
    def test_operators(self, op, expected):
        assert apply_binary(op, TRUE, FALSE) is expected

    def test_arithmetic_on_booleans_is_unknown(self):
        assert apply_binary(BinaryOp.PLUS, TRUE, TRUE).is_unknown

    def test_boolean_with_int_is_unknown(self):
        assert apply_binary(BinaryOp.EQUALS, TRUE, int_value(1)).is_unknown


# ---------------------------------------------------------------------------
# Strings
# ---------------------------------------------------------------------------

class TestStrings:
    def test_concatenation(self):
        assert apply_binary(BinaryOp.PLUS, string_value("a"), string_value("b")) == string_value("ab")

    def test_string_plus_int(self):
        assert apply_binary(BinaryOp.PLUS, string_value("a"), int_value(1)) == string_value("a1")

    def test_int_plus_string(self):
        assert apply_binary(BinaryOp.PLUS, int_value(1), string_value("a")) == string_value("1a")

    def test_string_plus_char(self):
        assert apply_binary(BinaryOp.PLUS, string_value("x"), char_value("y")) == string_value("xy")

    def test_string_plus_double(self):
        assert apply_binary(BinaryOp.PLUS, string_value("v"), double_value(2.0)) == string_value("v2.0")

    def test_string_plus_null(self):
        assert apply_binary(BinaryOp.PLUS, string_value("v"), NULL) == string_value("vnull")

    def test_string_equality_is_unknown(self):
        # Reference identity is a runtime property.
        assert apply_binary(BinaryOp.EQUALS, string_value("a"), string_value("a")).is_unknown

    def test_unknown_operand(self):
        assert apply_binary(BinaryOp.PLUS, string_value("a"), UNKNOWN) is UNKNOWN
