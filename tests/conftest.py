"""Shared test helpers for the lintfold test suite."""

import ast
import textwrap

from lintfold.evaluate import IRAdapter
from lintfold.frontend import ASTCompiler, CompileContext, compile_unit
from lintfold.model.expressions import LiteralExpr, LiteralType, ReferenceExpr
from lintfold.model.statements import ReturnStatement
from lintfold.model.traversal import walk
from lintfold.model.unit import Method
from lintfold.model.variables import Field


def build(source: str, package: str = "com.example"):
    """Compile *source* and return ``(unit, adapter)``."""
    unit = compile_unit(source, package=package)
    return unit, IRAdapter(unit)


def compile_expr(source: str, ctx: CompileContext | None = None):
    """Compile a single Python expression string to an IR expression."""
    if ctx is None:
        ctx = CompileContext()
    tree = ast.parse(textwrap.dedent(source).strip(), mode="eval")
    return ASTCompiler(ctx).compile_expression(tree.body)


def method(unit, name: str) -> Method:
    for cls in unit.classes:
        for node in walk(cls):
            if isinstance(node, Method) and node.name == name:
                return node
    raise LookupError(f"no method {name!r}")


def field(unit, name: str) -> Field:
    for cls in unit.classes:
        for node in walk(cls):
            if isinstance(node, Field) and node.name == name:
                return node
    raise LookupError(f"no field {name!r}")


def returned(unit, method_name: str = "f"):
    """Value expression of the last ``return`` in *method_name*."""
    found = None
    for node in walk(method(unit, method_name)):
        if isinstance(node, ReturnStatement) and node.value is not None:
            found = node.value
    if found is None:
        raise LookupError(f"{method_name}() returns nothing")
    return found


def refs(unit, name: str, method_name: str | None = None) -> list[ReferenceExpr]:
    """Every reference named *name*, in program order."""
    roots = [method(unit, method_name)] if method_name else unit.classes
    return [
        node
        for root in roots
        for node in walk(root)
        if isinstance(node, ReferenceExpr) and node.name == name
    ]


def int_lit(value: int) -> LiteralExpr:
    return LiteralExpr(value=value, literal_type=LiteralType.INT)


def str_lit(value: str) -> LiteralExpr:
    return LiteralExpr(value=value, literal_type=LiteralType.STRING)
