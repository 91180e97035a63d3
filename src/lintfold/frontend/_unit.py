"""ASTCompiler and the unit-level entry points.

``compile_unit`` turns Python-syntax class definitions into a
``CompilationUnit``::

    unit = compile_unit('''
        class Greeter:
            GREETING: Final[str] = "hello"

            def greet(self, loud: bool) -> str:
                text: str = GREETING
                if loud:
                    text = text + "!"
                return text
    ''', package="com.example")

Compilation runs in two passes. The first collects every class, field
and method into ``ClassScope`` objects so that bodies may refer to
declarations that appear later in the source. The second compiles field
initializers and method bodies with every name bound to its declaration
id.
"""

from __future__ import annotations

import ast
import inspect
import logging
import textwrap
from collections.abc import Callable
from typing import Any

from lintfold.model.expressions import Expression
from lintfold.model.statements import Statement
from lintfold.model.unit import ClassDecl, CompilationUnit, Method
from lintfold.model.variables import Field, Parameter

from ._compiler import (
    ClassScope,
    CompileContext,
    CompileError,
    LocalBinding,
    _REJECTED_NODES,
    dotted_name,
    resolve_annotation,
)
from ._compiler_expressions import _ExpressionMixin
from ._compiler_statements import _StatementMixin

logger = logging.getLogger(__name__)

_NESTED_DEFINITIONS: dict[type, str] = {
    ast.FunctionDef: "Nested functions are not supported",
    ast.ClassDef: "Classes can only be declared at module or class level",
    ast.Import: "Imports are only allowed at module level",
    ast.ImportFrom: "Imports are only allowed at module level",
}


# ---------------------------------------------------------------------------
# ASTCompiler
# ---------------------------------------------------------------------------

class ASTCompiler(_StatementMixin, _ExpressionMixin):
    """Compiles Python AST nodes into analysis IR nodes."""

    def __init__(self, ctx: CompileContext) -> None:
        self.ctx = ctx

    # -----------------------------------------------------------------------
    # Public entry points
    # -----------------------------------------------------------------------

    def compile_statements(self, nodes: list[ast.stmt]) -> list[Statement]:
        """Compile a list of AST statement nodes into IR statements."""
        return self._compile_body_list(nodes)

    def compile_expression(self, node: ast.expr) -> Expression:
        """Compile a single AST expression node into an IR expression."""
        if type(node) in _REJECTED_NODES:
            raise CompileError(_REJECTED_NODES[type(node)], node, self.ctx)

        handler = self._EXPRESSION_HANDLERS.get(type(node))
        if handler is None:
            raise CompileError(
                f"Unsupported Python syntax: {type(node).__name__}",
                node, self.ctx,
            )
        return handler(self, node)

    def _compile_statement(self, node: ast.stmt) -> list[Statement]:
        """Compile a single AST statement node into IR statements."""
        if type(node) in _REJECTED_NODES:
            raise CompileError(_REJECTED_NODES[type(node)], node, self.ctx)
        if type(node) in _NESTED_DEFINITIONS:
            raise CompileError(_NESTED_DEFINITIONS[type(node)], node, self.ctx)

        handler = self._STATEMENT_HANDLERS.get(type(node))
        if handler is None:
            raise CompileError(
                f"Unsupported Python syntax: {type(node).__name__}",
                node, self.ctx,
            )
        return handler(self, node)

    # Statement handler dispatch table
    _STATEMENT_HANDLERS: dict[type[ast.stmt], Callable[[ASTCompiler, Any], list[Statement]]] = {
        ast.Assign: _StatementMixin._compile_assign,
        ast.AugAssign: _StatementMixin._compile_augassign,
        ast.AnnAssign: _StatementMixin._compile_annassign,
        ast.If: _StatementMixin._compile_if,
        ast.For: _StatementMixin._compile_for,
        ast.While: _StatementMixin._compile_while,
        ast.Try: _StatementMixin._compile_try,
        ast.Return: _StatementMixin._compile_return,
        ast.Raise: _StatementMixin._compile_raise,
        ast.Break: _StatementMixin._compile_break,
        ast.Continue: _StatementMixin._compile_continue,
        ast.Pass: _StatementMixin._compile_pass,
        ast.Expr: _StatementMixin._compile_expr_stmt,
    }

    # Expression handler dispatch table
    _EXPRESSION_HANDLERS: dict[type[ast.expr], Callable[[ASTCompiler, Any], Expression]] = {
        ast.Constant: _ExpressionMixin._compile_constant,
        ast.Name: _ExpressionMixin._compile_name,
        ast.Attribute: _ExpressionMixin._compile_attribute,
        ast.BinOp: _ExpressionMixin._compile_binop,
        ast.BoolOp: _ExpressionMixin._compile_boolop,
        ast.Compare: _ExpressionMixin._compile_compare,
        ast.UnaryOp: _ExpressionMixin._compile_unaryop,
        ast.Call: _ExpressionMixin._compile_call,
        ast.IfExp: _ExpressionMixin._compile_ifexp,
    }


# ---------------------------------------------------------------------------
# Pass 1: declarations
# ---------------------------------------------------------------------------

def _method_id(qualified_name: str, name: str) -> str:
    return f"{qualified_name}.{name}()"


def _declare_class(
    node: ast.ClassDef,
    qualified_name: str,
    outer: ClassScope | None,
    ctx: CompileContext,
) -> ClassScope:
    scope = ClassScope(name=node.name, qualified_name=qualified_name, outer=outer)
    for item in node.body:
        if isinstance(item, ast.AnnAssign):
            if not isinstance(item.target, ast.Name):
                raise CompileError("Field declarations must use simple names", item, ctx)
            name = item.target.id
            _check_unique(scope, name, item, ctx)
            declared = resolve_annotation(item.annotation, node=item, ctx=ctx)
            scope.fields[name] = f"{qualified_name}.{name}"
            scope.field_types[name] = declared.data_type
        elif isinstance(item, ast.FunctionDef):
            if item.name in scope.methods:
                raise CompileError(
                    f"Duplicate method '{item.name}' in class {node.name}; "
                    f"overloads are not supported",
                    item, ctx,
                )
            scope.methods[item.name] = _method_id(qualified_name, item.name)
        elif isinstance(item, ast.ClassDef):
            _check_unique(scope, item.name, item, ctx)
            scope.inner[item.name] = _declare_class(
                item, f"{qualified_name}.{item.name}", scope, ctx,
            )
    return scope


def _check_unique(scope: ClassScope, name: str, node: ast.AST, ctx: CompileContext) -> None:
    if name in scope.fields or name in scope.inner:
        raise CompileError(f"Duplicate declaration '{name}' in class {scope.name}", node, ctx)


# ---------------------------------------------------------------------------
# Pass 2: bodies
# ---------------------------------------------------------------------------

def _compile_class(
    node: ast.ClassDef,
    scope: ClassScope,
    compiler: ASTCompiler,
    *,
    is_static: bool,
) -> ClassDecl:
    ctx = compiler.ctx
    if node.bases or node.keywords:
        raise CompileError(f"Class {node.name} cannot have base classes", node, ctx)

    fields: list[Field] = []
    methods: list[Method] = []
    inner_classes: list[ClassDecl] = []
    for index, item in enumerate(node.body):
        ctx.current_class = scope
        if isinstance(item, ast.AnnAssign):
            fields.append(_compile_field(item, scope, compiler))
        elif isinstance(item, ast.FunctionDef):
            methods.append(_compile_method(item, scope, compiler))
        elif isinstance(item, ast.ClassDef):
            inner_classes.append(_compile_class(
                item, scope.inner[item.name], compiler, is_static=True,
            ))
        elif isinstance(item, ast.Pass):
            continue
        elif (
            index == 0
            and isinstance(item, ast.Expr)
            and isinstance(item.value, ast.Constant)
            and isinstance(item.value.value, str)
        ):
            continue
        else:
            raise CompileError(
                f"Unsupported class member: {type(item).__name__}. Classes hold "
                f"annotated fields, methods and nested classes.",
                item, ctx,
            )
    ctx.current_class = scope.outer

    annotations = [_decorator_name(d, ctx) for d in node.decorator_list]
    return ClassDecl(
        name=node.name,
        fields=fields,
        methods=methods,
        inner_classes=inner_classes,
        is_static=is_static,
        annotations=annotations,
    )


def _compile_field(node: ast.AnnAssign, scope: ClassScope, compiler: ASTCompiler) -> Field:
    """Class attributes are static fields, as in ``static final int X = 1``."""
    ctx = compiler.ctx
    name = node.target.id
    declared = resolve_annotation(node.annotation, node=node, ctx=ctx)
    initializer = None
    if node.value is not None:
        initializer = compiler.compile_expression(node.value)
    return Field(
        id=scope.fields[name],
        name=name,
        data_type=declared.data_type,
        initializer=initializer,
        is_final=declared.is_final,
        is_static=True,
        annotations=declared.annotations,
    )


def _compile_method(node: ast.FunctionDef, scope: ClassScope, compiler: ASTCompiler) -> Method:
    ctx = compiler.ctx
    is_static = False
    annotations: list[str] = []
    for decorator in node.decorator_list:
        name = _decorator_name(decorator, ctx)
        if name == "staticmethod":
            is_static = True
        else:
            annotations.append(name)

    args = node.args
    if args.vararg or args.kwarg or args.kwonlyargs or args.posonlyargs:
        raise CompileError(
            f"Method {node.name}() may only take plain positional parameters",
            node, ctx,
        )
    params = list(args.args)
    if not is_static:
        if not params:
            raise CompileError(f"Method {node.name}() must take 'self'", node, ctx)
        params = params[1:]

    method_id = scope.methods[node.name]
    ctx.enter_method(method_id)
    try:
        parameters = []
        for arg in params:
            parameters.append(_compile_parameter(arg, method_id, ctx))
            ctx.locals[arg.arg] = LocalBinding(
                id=parameters[-1].id, data_type=parameters[-1].data_type,
            )

        return_type = None
        if node.returns is not None:
            declared = resolve_annotation(node.returns, node=node, ctx=ctx)
            return_type = declared.data_type
            annotations.extend(declared.annotations)

        body = None
        if not _is_stub(node.body):
            body = compiler.compile_statements(node.body)
    finally:
        ctx.leave_method()

    return Method(
        id=method_id,
        name=node.name,
        parameters=parameters,
        return_type=return_type,
        body=body,
        is_static=is_static,
        annotations=annotations,
    )


def _compile_parameter(arg: ast.arg, method_id: str, ctx: CompileContext) -> Parameter:
    data_type = None
    is_final = False
    annotations: list[str] = []
    if arg.annotation is not None:
        declared = resolve_annotation(arg.annotation, node=arg, ctx=ctx)
        data_type = declared.data_type
        is_final = declared.is_final
        annotations = declared.annotations
    return Parameter(
        id=f"{method_id}.{arg.arg}",
        name=arg.arg,
        data_type=data_type,
        is_final=is_final,
        annotations=annotations,
    )


def _is_stub(body: list[ast.stmt]) -> bool:
    """A body of only a docstring and/or ``...`` declares a library method."""
    stmts = body
    if (
        stmts
        and isinstance(stmts[0], ast.Expr)
        and isinstance(stmts[0].value, ast.Constant)
        and isinstance(stmts[0].value.value, str)
    ):
        stmts = stmts[1:]
    return not stmts or (
        len(stmts) == 1
        and isinstance(stmts[0], ast.Expr)
        and isinstance(stmts[0].value, ast.Constant)
        and stmts[0].value.value is Ellipsis
    )


def _decorator_name(node: ast.expr, ctx: CompileContext) -> str:
    name = dotted_name(node)
    if name is None:
        raise CompileError(
            f"Decorators must be plain names: {ast.unparse(node)}",
            node, ctx,
        )
    return name


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def compile_unit(
    source: str,
    *,
    package: str = "",
    file_name: str = "<string>",
    line_offset: int = 0,
) -> CompilationUnit:
    """Compile Python-syntax class definitions into a ``CompilationUnit``.

    Parameters
    ----------
    source:
        Module source holding class definitions. Common indentation is
        removed first, so triple-quoted snippets work as-is.
    package:
        Package of the unit; qualified names and declaration ids are
        prefixed with it.
    file_name, line_offset:
        Used for the location reported by ``CompileError``.

    Raises
    ------
    CompileError
        For syntax errors and for Python constructs that have no place
        in the analysis IR.
    """
    source = textwrap.dedent(source)
    ctx = CompileContext(source_file=file_name, source_line_offset=line_offset)
    try:
        tree = ast.parse(source, filename=file_name)
    except SyntaxError as e:
        raise CompileError(f"Syntax error in {file_name}: {e.msg}", e, ctx) from e

    class_nodes: list[ast.ClassDef] = []
    for index, item in enumerate(tree.body):
        if isinstance(item, ast.ClassDef):
            class_nodes.append(item)
        elif isinstance(item, (ast.Import, ast.ImportFrom)):
            continue
        elif (
            index == 0
            and isinstance(item, ast.Expr)
            and isinstance(item.value, ast.Constant)
            and isinstance(item.value.value, str)
        ):
            continue
        else:
            raise CompileError(
                f"Only class definitions are allowed at module level, "
                f"got {type(item).__name__}",
                item, ctx,
            )

    for node in class_nodes:
        if node.name in ctx.top_classes:
            raise CompileError(f"Duplicate class '{node.name}'", node, ctx)
        qualified_name = f"{package}.{node.name}" if package else node.name
        ctx.top_classes[node.name] = _declare_class(node, qualified_name, None, ctx)

    compiler = ASTCompiler(ctx)
    classes = [
        _compile_class(node, ctx.top_classes[node.name], compiler, is_static=False)
        for node in class_nodes
    ]
    logger.debug(
        "compiled %s: %d top-level class(es)", file_name, len(classes),
    )
    return CompilationUnit(package=package, file_name=file_name, classes=classes)


def compile_class(cls: type, *, package: str = "") -> CompilationUnit:
    """Compile the source of a Python class object (never executing its methods)."""
    try:
        source_lines, start_lineno = inspect.getsourcelines(cls)
        file_name = inspect.getsourcefile(cls) or "<unknown>"
    except (OSError, TypeError) as e:
        raise CompileError(f"Cannot read source of {cls.__qualname__}: {e}") from e
    return compile_unit(
        "".join(source_lines),
        package=package,
        file_name=file_name,
        line_offset=start_lineno - 1,
    )
