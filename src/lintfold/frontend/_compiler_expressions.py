"""Expression compilation methods for the AST compiler.

Handles constants, names, attribute chains, binary/boolean/unary
operators, comparisons, calls (including casts and the array
pseudo-functions) and ternary expressions.
"""

from __future__ import annotations

import ast
from typing import TYPE_CHECKING

from lintfold.model.expressions import (
    BinaryExpr,
    BinaryOp,
    CallExpr,
    CastExpr,
    ConditionalExpr,
    Expression,
    LiteralExpr,
    LiteralType,
    NewArrayExpr,
    PolyadicExpr,
    ReferenceExpr,
    UnaryExpr,
    UnaryOp,
)
from lintfold.model.types import ArrayTypeRef, ClassTypeRef, PrimitiveType, PrimitiveTypeRef

from ._compiler import (
    ARRAY_OF,
    NEW_ARRAY,
    UNSIGNED_SHIFT,
    ClassScope,
    CompileError,
    _BINOP_MAP,
    _BOOLOP_MAP,
    _CMPOP_MAP,
    _PRIMITIVE_NAMES,
    _REJECTED_BINOP_MESSAGES,
    _UNARYOP_MAP,
    dotted_name,
    resolve_type,
)

if TYPE_CHECKING:
    from ._compiler import CompileContext

_INT_RANGE = (-(1 << 31), (1 << 31) - 1)
_LONG_RANGE = (-(1 << 63), (1 << 63) - 1)

_INTEGRAL_RANGES: dict[PrimitiveType, tuple[int, int]] = {
    PrimitiveType.BYTE: (-(1 << 7), (1 << 7) - 1),
    PrimitiveType.SHORT: (-(1 << 15), (1 << 15) - 1),
    PrimitiveType.INT: _INT_RANGE,
    PrimitiveType.LONG: _LONG_RANGE,
}


def _in_range(value: int, bounds: tuple[int, int]) -> bool:
    return bounds[0] <= value <= bounds[1]


def _numeric_constant(node: ast.expr) -> int | float | None:
    """Value of a (possibly negated) numeric constant, else None."""
    negate = False
    if isinstance(node, ast.UnaryOp) and isinstance(node.op, ast.USub):
        negate = True
        node = node.operand
    if not isinstance(node, ast.Constant):
        return None
    value = node.value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return -value if negate else value


# ---------------------------------------------------------------------------
# Expression mixin
# ---------------------------------------------------------------------------

class _ExpressionMixin:
    """Mixin providing expression compilation methods for ASTCompiler."""

    ctx: CompileContext

    def _compile_constant(self, node: ast.Constant) -> Expression:
        value = node.value
        # bool check before int (bool is subclass of int)
        if isinstance(value, bool):
            return LiteralExpr(value=value, literal_type=LiteralType.BOOLEAN)
        if value is None:
            return LiteralExpr(literal_type=LiteralType.NULL)
        if isinstance(value, int):
            return self._int_literal(value, node)
        if isinstance(value, float):
            return LiteralExpr(value=value, literal_type=LiteralType.DOUBLE)
        if isinstance(value, str):
            return LiteralExpr(value=value, literal_type=LiteralType.STRING)
        raise CompileError(f"Unsupported constant type: {type(value).__name__}", node, self.ctx)

    def _int_literal(self, value: int, node: ast.AST) -> LiteralExpr:
        # Like Java, a literal is an int unless only a long can hold it.
        if _in_range(value, _INT_RANGE):
            return LiteralExpr(value=value, literal_type=LiteralType.INT)
        if _in_range(value, _LONG_RANGE):
            return LiteralExpr(value=value, literal_type=LiteralType.LONG)
        raise CompileError(f"Integer literal {value} does not fit in a long", node, self.ctx)

    # -- names -------------------------------------------------------------

    def _compile_name(self, node: ast.Name) -> Expression:
        found = self.ctx.lookup(node.id)
        return ReferenceExpr(name=node.id, resolved=found[0] if found else None)

    def _compile_attribute(self, node: ast.Attribute) -> Expression:
        # self.x -> x
        if isinstance(node.value, ast.Name) and node.value.id == "self":
            return self._compile_self_attribute(node)

        qualifier = self.compile_expression(node.value)
        resolved = None
        owner = self._class_of(node.value)
        if owner is not None and node.attr in owner.fields:
            resolved = owner.fields[node.attr]
        return ReferenceExpr(name=node.attr, qualifier=qualifier, resolved=resolved)

    def _compile_self_attribute(self, node: ast.Attribute) -> Expression:
        scope = self.ctx.current_class
        found = scope.lookup_field(node.attr) if scope is not None else None
        if found is None:
            raise CompileError(f"Unknown field 'self.{node.attr}'", node, self.ctx)
        return ReferenceExpr(name=node.attr, resolved=found[0])

    def _class_of(self, node: ast.expr) -> ClassScope | None:
        """Class in the unit that a Name/Attribute chain names, if any."""
        if isinstance(node, ast.Name):
            if self.ctx.lookup(node.id) is not None:
                return None
            return self.ctx.lookup_class(node.id)
        if isinstance(node, ast.Attribute):
            outer = self._class_of(node.value)
            if outer is not None:
                return outer.inner.get(node.attr)
        return None

    # -- operators ---------------------------------------------------------

    def _compile_binop(self, node: ast.BinOp) -> Expression:
        rejected_msg = _REJECTED_BINOP_MESSAGES.get(type(node.op))
        if rejected_msg is not None:
            raise CompileError(rejected_msg, node, self.ctx)
        op = _BINOP_MAP.get(type(node.op))
        if op is None:
            raise CompileError(
                f"Unsupported binary operator: {type(node.op).__name__}",
                node, self.ctx,
            )

        # a + b + c parses as (a + b) + c; flatten same-operator chains.
        chain = [node.right]
        left = node.left
        while isinstance(left, ast.BinOp) and type(left.op) is type(node.op):
            chain.append(left.right)
            left = left.left
        chain.append(left)
        operands = [self.compile_expression(n) for n in reversed(chain)]
        if len(operands) == 2:
            return BinaryExpr(op=op, left=operands[0], right=operands[1])
        return PolyadicExpr(op=op, operands=operands)

    def _compile_boolop(self, node: ast.BoolOp) -> Expression:
        op = _BOOLOP_MAP[type(node.op)]
        operands = [self.compile_expression(v) for v in node.values]
        if len(operands) == 2:
            return BinaryExpr(op=op, left=operands[0], right=operands[1])
        return PolyadicExpr(op=op, operands=operands)

    def _compile_compare(self, node: ast.Compare) -> Expression:
        if len(node.ops) != 1:
            raise CompileError(
                "Chained comparisons are not supported; combine them with 'and'",
                node, self.ctx,
            )
        op = _CMPOP_MAP.get(type(node.ops[0]))
        if op is None:
            raise CompileError(
                f"Unsupported comparison operator: {type(node.ops[0]).__name__}",
                node, self.ctx,
            )
        left = self.compile_expression(node.left)
        right = self.compile_expression(node.comparators[0])
        return BinaryExpr(op=op, left=left, right=right)

    def _compile_unaryop(self, node: ast.UnaryOp) -> Expression:
        if isinstance(node.op, ast.USub):
            # -2147483648 is an int literal, not a negated long.
            value = _numeric_constant(node)
            if isinstance(value, int):
                return self._int_literal(value, node)
            if isinstance(value, float):
                return LiteralExpr(value=value, literal_type=LiteralType.DOUBLE)
        op = _UNARYOP_MAP[type(node.op)]
        return UnaryExpr(op=op, operand=self.compile_expression(node.operand))

    def _compile_ifexp(self, node: ast.IfExp) -> Expression:
        return ConditionalExpr(
            condition=self.compile_expression(node.test),
            then_expr=self.compile_expression(node.body),
            else_expr=self.compile_expression(node.orelse),
        )

    # -- calls -------------------------------------------------------------

    def _compile_call(self, node: ast.Call) -> Expression:
        if node.keywords:
            raise CompileError("Keyword arguments are not supported", node, self.ctx)

        func = node.func
        if isinstance(func, ast.Name) and self.ctx.lookup(func.id) is None:
            name = func.id
            if name in _PRIMITIVE_NAMES:
                return self._compile_cast(name, node)
            if name == NEW_ARRAY:
                return self._compile_new_array(node)
            if name == ARRAY_OF:
                return self._compile_array_of(node)
            if name == UNSIGNED_SHIFT:
                return self._compile_unsigned_shift(node)
            return self._compile_method_call(name, None, node)

        if isinstance(func, ast.Attribute):
            if isinstance(func.value, ast.Name) and func.value.id == "self":
                return self._compile_method_call(func.attr, None, node)
            return self._compile_method_call(func.attr, func.value, node)

        raise CompileError(
            f"Unsupported call target: {ast.unparse(func)}",
            node, self.ctx,
        )

    def _compile_method_call(self, name: str, receiver: ast.expr | None, node: ast.Call) -> Expression:
        args = [self.compile_expression(a) for a in node.args]
        if receiver is None:
            scope = self.ctx.current_class
            found = scope.lookup_method(name) if scope is not None else None
            if found is None:
                return CallExpr(method_name=name, args=args)
            method_id, owner = found
            return CallExpr(
                method_name=name,
                args=args,
                resolved=method_id,
                declaring_class=owner.qualified_name,
            )

        receiver_expr = self.compile_expression(receiver)
        owner = self._class_of(receiver)
        if owner is not None and name in owner.methods:
            return CallExpr(
                method_name=name,
                receiver=receiver_expr,
                args=args,
                resolved=owner.methods[name],
                declaring_class=owner.qualified_name,
            )
        return CallExpr(
            method_name=name,
            receiver=receiver_expr,
            args=args,
            declaring_class=self._receiver_class(receiver),
        )

    def _receiver_class(self, receiver: ast.expr) -> str | None:
        """Qualified class of a library call's receiver, where it can be told."""
        found = None
        if isinstance(receiver, ast.Name):
            found = self.ctx.lookup(receiver.id)
        elif (
            isinstance(receiver, ast.Attribute)
            and isinstance(receiver.value, ast.Name)
            and receiver.value.id == "self"
            and self.ctx.current_class is not None
        ):
            found = self.ctx.current_class.lookup_field(receiver.attr)
        if found is not None:
            data_type = found[1]
            return data_type.name if isinstance(data_type, ClassTypeRef) else None
        # Static call on a class outside the unit: android.text.TextUtils.isEmpty(...)
        return dotted_name(receiver)

    def _compile_cast(self, name: str, node: ast.Call) -> Expression:
        """``int(x)``, ``long(3)``, ``char('a')``: Java casts and typed literals.

        A constant argument that the target type can hold becomes a
        literal of that type, the way ``3L`` or ``1.5f`` would in Java.
        """
        target = _PRIMITIVE_NAMES[name]
        if len(node.args) != 1:
            raise CompileError(f"{name}() takes exactly one argument", node, self.ctx)
        if target == PrimitiveType.BOOLEAN:
            raise CompileError("There are no casts to boolean", node, self.ctx)
        arg = node.args[0]

        literal = self._typed_literal(target, arg)
        if literal is not None:
            return literal
        return CastExpr(
            target_type=PrimitiveTypeRef(type=target),
            operand=self.compile_expression(arg),
        )

    def _typed_literal(self, target: PrimitiveType, arg: ast.expr) -> LiteralExpr | None:
        if target == PrimitiveType.CHAR:
            if isinstance(arg, ast.Constant) and isinstance(arg.value, str) and len(arg.value) == 1:
                return LiteralExpr(value=arg.value, literal_type=LiteralType.CHAR)
            return None
        value = _numeric_constant(arg)
        if value is None:
            return None
        literal_type = LiteralType(target.value)
        if target in (PrimitiveType.FLOAT, PrimitiveType.DOUBLE):
            return LiteralExpr(value=float(value), literal_type=literal_type)
        if isinstance(value, int) and _in_range(value, _INTEGRAL_RANGES[target]):
            return LiteralExpr(value=value, literal_type=literal_type)
        return None

    def _compile_new_array(self, node: ast.Call) -> Expression:
        """``new_array(T, n)`` -> ``new T[n]``; more sizes add dimensions."""
        if len(node.args) < 2:
            raise CompileError(f"{NEW_ARRAY}() needs an element type and a length", node, self.ctx)
        element_type = resolve_type(node.args[0], node=node, ctx=self.ctx)
        if element_type is None:
            raise CompileError("Array element type cannot be None", node, self.ctx)
        dimensions = [self.compile_expression(a) for a in node.args[1:]]
        for _ in dimensions[1:]:
            element_type = ArrayTypeRef(element_type=element_type)
        return NewArrayExpr(element_type=element_type, dimensions=dimensions)

    def _compile_array_of(self, node: ast.Call) -> Expression:
        """``array_of(T, a, b)`` -> ``new T[] { a, b }``."""
        if not node.args:
            raise CompileError(f"{ARRAY_OF}() needs an element type", node, self.ctx)
        element_type = resolve_type(node.args[0], node=node, ctx=self.ctx)
        if element_type is None:
            raise CompileError("Array element type cannot be None", node, self.ctx)
        elements = [self.compile_expression(a) for a in node.args[1:]]
        return NewArrayExpr(element_type=element_type, initializer=elements)

    def _compile_unsigned_shift(self, node: ast.Call) -> Expression:
        """``ushr(a, n)`` -> ``a >>> n``."""
        if len(node.args) != 2:
            raise CompileError(f"{UNSIGNED_SHIFT}() takes exactly two arguments", node, self.ctx)
        return BinaryExpr(
            op=BinaryOp.UNSIGNED_SHIFT_RIGHT,
            left=self.compile_expression(node.args[0]),
            right=self.compile_expression(node.args[1]),
        )
