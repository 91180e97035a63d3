"""Operator folding over Values with Java numeric promotion.

Binary numeric operations classify the operand pair as *integer* (neither
side is float/double) and *wide* (long for integers, double for floating
point) and compute at that promoted width only. Results of byte, short
and char arithmetic are ints, as in Java.
"""

from __future__ import annotations

import logging
import math

from lintfold.model.expressions import BinaryOp, UnaryOp

from ._values import (
    UNKNOWN,
    Value,
    ValueKind,
    bool_value,
    double_value,
    float_value,
    int_to_float32,
    int_value,
    java_string,
    long_value,
    string_value,
    wrap_signed,
)

logger = logging.getLogger(__name__)


_COMPARISONS = frozenset({
    BinaryOp.EQUALS,
    BinaryOp.NOT_EQUALS,
    BinaryOp.IDENTITY_EQUALS,
    BinaryOp.IDENTITY_NOT_EQUALS,
    BinaryOp.GREATER,
    BinaryOp.GREATER_OR_EQUALS,
    BinaryOp.LESS,
    BinaryOp.LESS_OR_EQUALS,
})

_SHIFTS = frozenset({
    BinaryOp.SHIFT_LEFT,
    BinaryOp.SHIFT_RIGHT,
    BinaryOp.UNSIGNED_SHIFT_RIGHT,
})

_BITWISE = frozenset({
    BinaryOp.BITWISE_AND,
    BinaryOp.BITWISE_OR,
    BinaryOp.BITWISE_XOR,
})

_ARITHMETIC = frozenset({
    BinaryOp.PLUS,
    BinaryOp.MINUS,
    BinaryOp.MULTIPLY,
    BinaryOp.DIV,
    BinaryOp.MOD,
})


# ---------------------------------------------------------------------------
# Unary
# ---------------------------------------------------------------------------

def apply_unary(op: UnaryOp, operand: Value) -> Value:
    """Fold a unary operator. Increments and decrements never fold."""
    if operand.is_unknown:
        return UNKNOWN

    if op == UnaryOp.NOT:
        if operand.is_boolean:
            return bool_value(not operand.data)
        return UNKNOWN

    if op == UnaryOp.PLUS:
        return operand

    if op == UnaryOp.BITWISE_NOT:
        if operand.kind == ValueKind.LONG:
            return long_value(~operand.data)
        if operand.is_integral:
            return int_value(~operand.data)
        return UNKNOWN

    if op == UnaryOp.MINUS:
        kind = operand.kind
        if kind == ValueKind.LONG:
            return long_value(-operand.data)
        if kind == ValueKind.DOUBLE:
            return double_value(-operand.data)
        if kind == ValueKind.FLOAT:
            return float_value(-operand.data)
        if operand.is_integral:
            return int_value(-operand.data)
        return UNKNOWN

    return UNKNOWN


# ---------------------------------------------------------------------------
# Binary
# ---------------------------------------------------------------------------

def apply_binary(op: BinaryOp, left: Value, right: Value) -> Value:
    """Fold a binary operator over two known values.

    Any combination Java would reject (or that needs runtime state, such
    as reference identity) yields UNKNOWN.
    """
    if left.is_unknown or right.is_unknown:
        return UNKNOWN

    if left.is_string or right.is_string:
        return _string_binary(op, left, right)

    if left.is_boolean and right.is_boolean:
        return _boolean_binary(op, left.data, right.data)

    if left.is_numeric and right.is_numeric:
        return _numeric_binary(op, left, right)

    return UNKNOWN


def _string_binary(op: BinaryOp, left: Value, right: Value) -> Value:
    if op != BinaryOp.PLUS:
        return UNKNOWN
    lhs = java_string(left)
    rhs = java_string(right)
    if lhs is None or rhs is None:
        return UNKNOWN
    return string_value(lhs + rhs)


def _boolean_binary(op: BinaryOp, left: bool, right: bool) -> Value:
    if op in (BinaryOp.LOGICAL_OR, BinaryOp.BITWISE_OR):
        return bool_value(left or right)
    if op in (BinaryOp.LOGICAL_AND, BinaryOp.BITWISE_AND):
        return bool_value(left and right)
    if op == BinaryOp.BITWISE_XOR:
        return bool_value(left != right)
    if op in (BinaryOp.EQUALS, BinaryOp.IDENTITY_EQUALS):
        return bool_value(left == right)
    if op in (BinaryOp.NOT_EQUALS, BinaryOp.IDENTITY_NOT_EQUALS):
        return bool_value(left != right)
    return UNKNOWN


def _numeric_binary(op: BinaryOp, left: Value, right: Value) -> Value:
    is_integer = not (left.is_floating or right.is_floating)
    if is_integer:
        is_wide = ValueKind.LONG in (left.kind, right.kind)
    else:
        is_wide = ValueKind.DOUBLE in (left.kind, right.kind)

    if op in _COMPARISONS:
        if is_integer:
            return _compare(op, left.data, right.data)
        return _compare(op, _to_floating(left, is_wide), _to_floating(right, is_wide))

    if op in _BITWISE:
        if not is_integer:
            return UNKNOWN
        a, b = left.data, right.data
        if op == BinaryOp.BITWISE_AND:
            result = a & b
        elif op == BinaryOp.BITWISE_OR:
            result = a | b
        else:
            result = a ^ b
        return long_value(result) if is_wide else int_value(result)

    if op in _SHIFTS:
        if not is_integer:
            return UNKNOWN
        return _shift(op, left, right.data)

    if op in _ARITHMETIC:
        if is_integer:
            return _integer_arithmetic(op, left.data, right.data, 64 if is_wide else 32)
        return _floating_arithmetic(
            op, _to_floating(left, is_wide), _to_floating(right, is_wide), is_wide,
        )

    return UNKNOWN


def _to_floating(value: Value, is_wide: bool) -> float:
    # float operands are already float32; integral ones round once into the promoted type
    if is_wide or value.is_floating:
        return float(value.data)
    return int_to_float32(value.data)


def _compare(op: BinaryOp, a: int | float, b: int | float) -> Value:
    if op in (BinaryOp.EQUALS, BinaryOp.IDENTITY_EQUALS):
        return bool_value(a == b)
    if op in (BinaryOp.NOT_EQUALS, BinaryOp.IDENTITY_NOT_EQUALS):
        return bool_value(a != b)
    if op == BinaryOp.GREATER:
        return bool_value(a > b)
    if op == BinaryOp.GREATER_OR_EQUALS:
        return bool_value(a >= b)
    if op == BinaryOp.LESS:
        return bool_value(a < b)
    return bool_value(a <= b)


def _shift(op: BinaryOp, left: Value, distance: int) -> Value:
    # The shift width is the promoted type of the left operand alone.
    bits = 64 if left.kind == ValueKind.LONG else 32
    make = long_value if bits == 64 else int_value
    n = distance & (bits - 1)
    a = left.data
    if op == BinaryOp.SHIFT_LEFT:
        return make(a << n)
    if op == BinaryOp.SHIFT_RIGHT:
        return make(a >> n)
    return make((a & ((1 << bits) - 1)) >> n)


def _integer_arithmetic(op: BinaryOp, a: int, b: int, bits: int) -> Value:
    make = long_value if bits == 64 else int_value
    a = wrap_signed(a, bits)
    b = wrap_signed(b, bits)
    if op == BinaryOp.PLUS:
        return make(a + b)
    if op == BinaryOp.MINUS:
        return make(a - b)
    if op == BinaryOp.MULTIPLY:
        return make(a * b)

    if b == 0:
        logger.debug("Integer %s by constant zero; result is unknown", op.name.lower())
        return UNKNOWN
    quotient = abs(a) // abs(b)
    if (a < 0) != (b < 0):
        quotient = -quotient
    if op == BinaryOp.DIV:
        return make(quotient)
    return make(a - b * quotient)


def _floating_arithmetic(op: BinaryOp, a: float, b: float, is_wide: bool) -> Value:
    make = double_value if is_wide else float_value
    if op == BinaryOp.PLUS:
        return make(a + b)
    if op == BinaryOp.MINUS:
        return make(a - b)
    if op == BinaryOp.MULTIPLY:
        return make(a * b)
    if op == BinaryOp.DIV:
        if b == 0.0:
            if a == 0.0 or math.isnan(a):
                return make(math.nan)
            return make(math.copysign(1.0, a) * math.copysign(math.inf, b))
        return make(a / b)
    # Remainder keeps the sign of the dividend.
    if b == 0.0 or math.isinf(a) or math.isnan(a) or math.isnan(b):
        return make(math.nan)
    return make(math.fmod(a, b))
