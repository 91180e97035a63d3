"""Expression AST nodes for the analysis IR."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, model_validator

from .types import TypeRef


class LiteralType(str, Enum):
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


class UnaryOp(str, Enum):
    NOT = "!"
    PLUS = "+"
    MINUS = "-"
    BITWISE_NOT = "~"
    PREFIX_INCREMENT = "++x"
    PREFIX_DECREMENT = "--x"
    POSTFIX_INCREMENT = "x++"
    POSTFIX_DECREMENT = "x--"


class BinaryOp(str, Enum):
    PLUS = "+"
    MINUS = "-"
    MULTIPLY = "*"
    DIV = "/"
    MOD = "%"
    SHIFT_LEFT = "<<"
    SHIFT_RIGHT = ">>"
    UNSIGNED_SHIFT_RIGHT = ">>>"
    BITWISE_AND = "&"
    BITWISE_OR = "|"
    BITWISE_XOR = "^"
    LOGICAL_AND = "&&"
    LOGICAL_OR = "||"
    EQUALS = "=="
    NOT_EQUALS = "!="
    IDENTITY_EQUALS = "==="
    IDENTITY_NOT_EQUALS = "!=="
    GREATER = ">"
    GREATER_OR_EQUALS = ">="
    LESS = "<"
    LESS_OR_EQUALS = "<="


class AssignOp(str, Enum):
    ASSIGN = "="
    PLUS_ASSIGN = "+="
    MINUS_ASSIGN = "-="
    MULTIPLY_ASSIGN = "*="
    DIV_ASSIGN = "/="
    MOD_ASSIGN = "%="
    AND_ASSIGN = "&="
    OR_ASSIGN = "|="
    XOR_ASSIGN = "^="
    SHIFT_LEFT_ASSIGN = "<<="
    SHIFT_RIGHT_ASSIGN = ">>="
    UNSIGNED_SHIFT_RIGHT_ASSIGN = ">>>="


_INT_RANGES: dict[LiteralType, tuple[int, int]] = {
    LiteralType.BYTE: (-(1 << 7), (1 << 7) - 1),
    LiteralType.SHORT: (-(1 << 15), (1 << 15) - 1),
    LiteralType.INT: (-(1 << 31), (1 << 31) - 1),
    LiteralType.LONG: (-(1 << 63), (1 << 63) - 1),
}


class LiteralExpr(BaseModel):
    """A typed constant (e.g. true, 42, 42L, 1.5f, 'c', "text", null).

    Char literals hold a one-character string.
    """

    kind: Literal["literal"] = "literal"
    value: bool | int | float | str | None = None
    literal_type: LiteralType

    @model_validator(mode="after")
    def _value_matches_type(self):
        lt = self.literal_type
        v = self.value
        if lt == LiteralType.NULL:
            ok = v is None
        elif lt == LiteralType.BOOLEAN:
            ok = isinstance(v, bool)
        elif lt in _INT_RANGES:
            lo, hi = _INT_RANGES[lt]
            ok = isinstance(v, int) and not isinstance(v, bool) and lo <= v <= hi
        elif lt in (LiteralType.FLOAT, LiteralType.DOUBLE):
            ok = isinstance(v, (int, float)) and not isinstance(v, bool)
        elif lt == LiteralType.CHAR:
            ok = isinstance(v, str) and len(v) == 1 and ord(v) <= 0xFFFF
        else:
            ok = isinstance(v, str)
        if not ok:
            raise ValueError(
                f"value {v!r} is not a valid {lt.value} literal"
            )
        return self


class UnaryExpr(BaseModel):
    kind: Literal["unary"] = "unary"
    op: UnaryOp
    operand: Expression


class BinaryExpr(BaseModel):
    kind: Literal["binary"] = "binary"
    op: BinaryOp
    left: Expression
    right: Expression


class PolyadicExpr(BaseModel):
    """A chain of the same operator: ``a + b + c``, evaluated left to right."""

    kind: Literal["polyadic"] = "polyadic"
    op: BinaryOp
    operands: list[Expression]

    @model_validator(mode="after")
    def _at_least_two(self):
        if len(self.operands) < 2:
            raise ValueError(
                f"polyadic expression needs at least 2 operands, "
                f"got {len(self.operands)}"
            )
        return self


class ConditionalExpr(BaseModel):
    """Ternary: ``condition ? then_expr : else_expr``."""

    kind: Literal["conditional"] = "conditional"
    condition: Expression
    then_expr: Expression
    else_expr: Expression


class CastExpr(BaseModel):
    """Explicit type cast: ``(target_type) operand``."""

    kind: Literal["cast"] = "cast"
    target_type: TypeRef
    operand: Expression


class ParenthesizedExpr(BaseModel):
    kind: Literal["parenthesized"] = "parenthesized"
    expression: Expression


class ReferenceExpr(BaseModel):
    """Name reference, optionally qualified: ``name`` or ``qualifier.name``.

    *resolved* is the id of the declaration the name binds to, or None
    when it could not be resolved (e.g. an R class outside the unit).
    """

    kind: Literal["reference"] = "reference"
    name: str
    qualifier: Expression | None = None
    resolved: str | None = None


class CallExpr(BaseModel):
    """Method call: ``receiver.method_name(args)``.

    *resolved* names a Method declaration inside the unit; for library
    methods only *declaring_class* (qualified name) is known.
    """

    kind: Literal["call"] = "call"
    method_name: str
    receiver: Expression | None = None
    args: list[Expression] = []
    resolved: str | None = None
    declaring_class: str | None = None


class NewArrayExpr(BaseModel):
    """Array creation: ``new T[n]`` or ``new T[] { a, b, c }``.

    *element_type* is the component type of the created array.
    """

    kind: Literal["new_array"] = "new_array"
    element_type: TypeRef
    dimensions: list[Expression] = []
    initializer: list[Expression] | None = None

    @model_validator(mode="after")
    def _dimensions_or_initializer(self):
        if self.initializer is None and not self.dimensions:
            raise ValueError(
                "array creation needs dimensions or an initializer"
            )
        if self.initializer is not None and self.dimensions:
            raise ValueError(
                "array creation cannot have both dimensions and an initializer"
            )
        return self


class AssignmentExpr(BaseModel):
    kind: Literal["assignment"] = "assignment"
    op: AssignOp = AssignOp.ASSIGN
    target: Expression
    value: Expression


Expression = Annotated[
    Union[
        LiteralExpr,
        UnaryExpr,
        BinaryExpr,
        PolyadicExpr,
        ConditionalExpr,
        CastExpr,
        ParenthesizedExpr,
        ReferenceExpr,
        CallExpr,
        NewArrayExpr,
        AssignmentExpr,
    ],
    Field(discriminator="kind"),
]

# Rebuild models with recursive Expression references.
UnaryExpr.model_rebuild()
BinaryExpr.model_rebuild()
PolyadicExpr.model_rebuild()
ConditionalExpr.model_rebuild()
CastExpr.model_rebuild()
ParenthesizedExpr.model_rebuild()
ReferenceExpr.model_rebuild()
CallExpr.model_rebuild()
NewArrayExpr.model_rebuild()
AssignmentExpr.model_rebuild()
