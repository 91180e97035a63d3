"""Value system for the constant evaluator.

Provides the tagged ``Value`` result type, Java primitive width handling
(wrap-around, float32 rounding, narrowing casts) and Java string
conversion, the foundation for all operator folding.
"""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from lintfold.model.expressions import LiteralExpr, LiteralType
from lintfold.model.types import PrimitiveType


class ValueKind(str, Enum):
    NULL = "null"
    BOOLEAN = "boolean"
    BYTE = "byte"
    SHORT = "short"
    CHAR = "char"
    INT = "int"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    STRING = "string"
    ARRAY = "array"
    UNKNOWN = "unknown"


_INTEGRAL_KINDS = frozenset({
    ValueKind.BYTE, ValueKind.SHORT, ValueKind.CHAR, ValueKind.INT, ValueKind.LONG,
})

_FLOATING_KINDS = frozenset({
    ValueKind.FLOAT, ValueKind.DOUBLE,
})

_NUMERIC_KINDS = _INTEGRAL_KINDS | _FLOATING_KINDS


# ---------------------------------------------------------------------------
# Width helpers
# ---------------------------------------------------------------------------

def wrap_signed(value: int, bits: int) -> int:
    """Two's-complement wrap of *value* into a signed *bits*-wide integer."""
    mask = (1 << bits) - 1
    value &= mask
    if value >> (bits - 1):
        value -= 1 << bits
    return value


def to_float32(value: float) -> float:
    """Round a Python float to the nearest IEEE single-precision value."""
    if math.isnan(value) or math.isinf(value):
        return value
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def int_to_float32(value: int) -> float:
    """Round an integer to the nearest single-precision value in one step.

    Going through a double first can round twice for longs wider than
    53 bits, so the mantissa is cut to 24 bits here (ties to even).
    """
    magnitude = abs(value)
    shift = magnitude.bit_length() - 24
    if shift > 0:
        kept, rest = divmod(magnitude, 1 << shift)
        half = 1 << (shift - 1)
        if rest > half or (rest == half and kept & 1):
            kept += 1
        magnitude = kept << shift
    return to_float32(math.copysign(float(magnitude), value))


def float_to_integral(value: float, bits: int) -> int:
    """Java narrowing of a floating value to int/long: NaN -> 0, saturating."""
    if math.isnan(value):
        return 0
    lo = -(1 << (bits - 1))
    hi = (1 << (bits - 1)) - 1
    if value == math.inf or value >= hi:
        return hi
    if value == -math.inf or value <= lo:
        return lo
    return int(value)  # truncate toward zero


# ---------------------------------------------------------------------------
# Value
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Value:
    """Result of evaluating an expression.

    *data* holds the Python payload: bool, int (integral kinds, including
    the UTF-16 code unit of a char), float, str, or a tuple of Values for
    arrays. *element_kind* is set for arrays only; None means a mixed
    reference array.
    """

    kind: ValueKind
    data: object = None
    element_kind: ValueKind | None = None

    @property
    def is_unknown(self) -> bool:
        return self.kind == ValueKind.UNKNOWN

    @property
    def is_known(self) -> bool:
        return self.kind != ValueKind.UNKNOWN

    @property
    def is_numeric(self) -> bool:
        return self.kind in _NUMERIC_KINDS

    @property
    def is_integral(self) -> bool:
        return self.kind in _INTEGRAL_KINDS

    @property
    def is_floating(self) -> bool:
        return self.kind in _FLOATING_KINDS

    @property
    def is_boolean(self) -> bool:
        return self.kind == ValueKind.BOOLEAN

    @property
    def is_string(self) -> bool:
        return self.kind == ValueKind.STRING

    @property
    def is_array(self) -> bool:
        return self.kind == ValueKind.ARRAY

    @property
    def elements(self) -> tuple[Value, ...]:
        if self.kind != ValueKind.ARRAY:
            raise TypeError(f"{self.kind.value} value has no elements")
        return self.data

    def to_python(self) -> object:
        """Plain Python payload: chars become 1-char strings, arrays lists."""
        if self.kind == ValueKind.CHAR:
            return chr(self.data)
        if self.kind == ValueKind.ARRAY:
            return [e.to_python() for e in self.data]
        return self.data

    def __repr__(self) -> str:
        if self.kind in (ValueKind.UNKNOWN, ValueKind.NULL):
            return f"Value.{self.kind.name}"
        if self.kind == ValueKind.ARRAY:
            kind = self.element_kind.value if self.element_kind else "object"
            return f"Value(array<{kind}>{list(self.data)!r})"
        return f"Value({self.kind.value} {self.to_python()!r})"


UNKNOWN = Value(ValueKind.UNKNOWN)
NULL = Value(ValueKind.NULL)
TRUE = Value(ValueKind.BOOLEAN, True)
FALSE = Value(ValueKind.BOOLEAN, False)


def bool_value(value: bool) -> Value:
    return TRUE if value else FALSE


def byte_value(value: int) -> Value:
    return Value(ValueKind.BYTE, wrap_signed(value, 8))


def short_value(value: int) -> Value:
    return Value(ValueKind.SHORT, wrap_signed(value, 16))


def char_value(value: int | str) -> Value:
    if isinstance(value, str):
        value = ord(value)
    return Value(ValueKind.CHAR, value & 0xFFFF)


def int_value(value: int) -> Value:
    return Value(ValueKind.INT, wrap_signed(value, 32))


def long_value(value: int) -> Value:
    return Value(ValueKind.LONG, wrap_signed(value, 64))


def float_value(value: float) -> Value:
    return Value(ValueKind.FLOAT, to_float32(float(value)))


def double_value(value: float) -> Value:
    return Value(ValueKind.DOUBLE, float(value))


def string_value(value: str) -> Value:
    return Value(ValueKind.STRING, value)


def array_value(elements: list[Value] | tuple[Value, ...], element_kind: ValueKind | None) -> Value:
    return Value(ValueKind.ARRAY, tuple(elements), element_kind)


_MAKERS = {
    ValueKind.BYTE: byte_value,
    ValueKind.SHORT: short_value,
    ValueKind.CHAR: char_value,
    ValueKind.INT: int_value,
    ValueKind.LONG: long_value,
    ValueKind.FLOAT: float_value,
    ValueKind.DOUBLE: double_value,
}


# ---------------------------------------------------------------------------
# Literal conversion
# ---------------------------------------------------------------------------

def literal_value(node: LiteralExpr) -> Value:
    """Convert an IR literal into its Value."""
    lt = node.literal_type
    if lt == LiteralType.NULL:
        return NULL
    if lt == LiteralType.BOOLEAN:
        return bool_value(node.value)
    if lt == LiteralType.STRING:
        return string_value(node.value)
    if lt == LiteralType.CHAR:
        return char_value(node.value)
    return _MAKERS[ValueKind(lt.value)](node.value)


# ---------------------------------------------------------------------------
# Type defaults and primitive mapping
# ---------------------------------------------------------------------------

def kind_of_primitive(ptype: PrimitiveType) -> ValueKind:
    return ValueKind(ptype.value)


def type_default(kind: ValueKind | None) -> Value:
    """Return the default zero-value for an element kind.

    Reference kinds (string, arrays, mixed) default to null.
    """
    if kind == ValueKind.BOOLEAN:
        return FALSE
    if kind in _FLOATING_KINDS:
        return _MAKERS[kind](0.0)
    if kind in _INTEGRAL_KINDS:
        return _MAKERS[kind](0)
    return NULL


def common_kind(kinds: list[ValueKind]) -> ValueKind | None:
    """Best common element kind for an array of values.

    Uniform kinds are kept; all-numeric kinds widen to the widest one;
    anything else is a mixed reference array (None).
    """
    if not kinds:
        return None
    first = kinds[0]
    if all(k == first for k in kinds):
        return first
    present = set(kinds)
    if not present <= _NUMERIC_KINDS:
        return None
    for wide in (ValueKind.DOUBLE, ValueKind.FLOAT, ValueKind.LONG, ValueKind.INT):
        if wide in present:
            return wide
    if present == {ValueKind.BYTE, ValueKind.SHORT}:
        return ValueKind.SHORT
    # char does not widen into byte/short or vice versa
    return ValueKind.INT


# ---------------------------------------------------------------------------
# Casts
# ---------------------------------------------------------------------------

def cast_value(value: Value, target: ValueKind) -> Value:
    """Apply a Java primitive cast to a numeric *value*.

    Floating to integral truncates toward zero (saturating, NaN -> 0);
    narrowing between integral types wraps. Non-numeric values and
    non-numeric targets pass through unchanged.
    """
    if not value.is_numeric or target not in _NUMERIC_KINDS:
        return value
    data = value.data
    if target == ValueKind.FLOAT and not value.is_floating:
        return float_value(int_to_float32(data))
    if target in _FLOATING_KINDS:
        return _MAKERS[target](float(data))
    if value.is_floating:
        if target == ValueKind.LONG:
            return long_value(float_to_integral(data, 64))
        data = float_to_integral(data, 32)
    return _MAKERS[target](data)


_WIDENING = {
    ValueKind.BYTE: frozenset({
        ValueKind.SHORT, ValueKind.INT, ValueKind.LONG, ValueKind.FLOAT, ValueKind.DOUBLE,
    }),
    ValueKind.SHORT: frozenset({
        ValueKind.INT, ValueKind.LONG, ValueKind.FLOAT, ValueKind.DOUBLE,
    }),
    ValueKind.CHAR: frozenset({
        ValueKind.INT, ValueKind.LONG, ValueKind.FLOAT, ValueKind.DOUBLE,
    }),
    ValueKind.INT: frozenset({ValueKind.LONG, ValueKind.FLOAT, ValueKind.DOUBLE}),
    ValueKind.LONG: frozenset({ValueKind.FLOAT, ValueKind.DOUBLE}),
    ValueKind.FLOAT: frozenset({ValueKind.DOUBLE}),
}

_CONSTANT_NARROWING_SOURCES = frozenset({
    ValueKind.BYTE, ValueKind.SHORT, ValueKind.CHAR, ValueKind.INT,
})

_CONSTANT_NARROWING_TARGETS = frozenset({
    ValueKind.BYTE, ValueKind.SHORT, ValueKind.CHAR,
})


def widen(value: Value, target: ValueKind) -> Value:
    """Assignment conversion used for typed array elements.

    Widening primitive conversions always apply. An int-or-narrower
    constant may narrow into a byte, short or char slot only when the
    value is representable there. Anything else (floating into integral,
    double into float, long into int) returns UNKNOWN.
    """
    if value.kind == target:
        return value
    if target in _NUMERIC_KINDS and value.is_numeric:
        if target in _WIDENING.get(value.kind, ()):
            return cast_value(value, target)
        if value.kind in _CONSTANT_NARROWING_SOURCES and target in _CONSTANT_NARROWING_TARGETS:
            narrowed = cast_value(value, target)
            return narrowed if narrowed.data == value.data else UNKNOWN
        return UNKNOWN
    if target not in _NUMERIC_KINDS and target != ValueKind.BOOLEAN and not value.is_numeric:
        return value if value.kind in (target, ValueKind.NULL) else UNKNOWN
    return UNKNOWN


# ---------------------------------------------------------------------------
# Java string conversion
# ---------------------------------------------------------------------------

def _shortest_float32_repr(value: float) -> str:
    for precision in range(1, 10):
        text = f"{value:.{precision}g}"
        if to_float32(float(text)) == value:
            return text
    return repr(value)


def _format_java_floating(value: float, shortest: str) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0.0:
        return "-0.0" if math.copysign(1.0, value) < 0 else "0.0"

    sign = "-" if value < 0 else ""
    digits_tuple = Decimal(shortest.lstrip("-")).normalize().as_tuple()
    digits = "".join(str(d) for d in digits_tuple.digits)
    exponent = digits_tuple.exponent + len(digits) - 1  # scientific exponent

    if 1e-3 <= abs(value) < 1e7:
        if exponent >= 0:
            int_part = digits[: exponent + 1].ljust(exponent + 1, "0")
            frac_part = digits[exponent + 1:] or "0"
        else:
            int_part = "0"
            frac_part = "0" * (-exponent - 1) + digits
        return f"{sign}{int_part}.{frac_part}"

    mantissa = digits[0] + "." + (digits[1:] or "0")
    return f"{sign}{mantissa}E{exponent}"


def java_string(value: Value) -> str | None:
    """``String.valueOf`` for a folded value, or None if not representable."""
    kind = value.kind
    if kind == ValueKind.STRING:
        return value.data
    if kind == ValueKind.NULL:
        return "null"
    if kind == ValueKind.BOOLEAN:
        return "true" if value.data else "false"
    if kind == ValueKind.CHAR:
        return chr(value.data)
    if kind in _INTEGRAL_KINDS:
        return str(value.data)
    if kind == ValueKind.FLOAT:
        return _format_java_floating(value.data, _shortest_float32_repr(value.data))
    if kind == ValueKind.DOUBLE:
        return _format_java_floating(value.data, repr(value.data))
    return None
