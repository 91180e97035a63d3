"""Statement compilation methods for the AST compiler.

Handles assignments (plain, augmented and annotated declarations),
if/elif/else, for, while, try/except/finally, return, raise, break,
continue, pass and expression statements.
"""

from __future__ import annotations

import ast
from typing import TYPE_CHECKING

from lintfold.model.expressions import AssignmentExpr, Expression, ReferenceExpr
from lintfold.model.statements import (
    BreakStatement,
    CatchClause,
    ContinueStatement,
    DeclarationStatement,
    EmptyStatement,
    ExpressionStatement,
    ForEachStatement,
    IfStatement,
    ReturnStatement,
    Statement,
    ThrowStatement,
    TryStatement,
    WhileStatement,
)
from lintfold.model.types import ClassTypeRef, PrimitiveType, PrimitiveTypeRef
from lintfold.model.variables import LocalVariable

from ._compiler import (
    CompileError,
    LocalBinding,
    _AUGOP_MAP,
    _REJECTED_BINOP_MESSAGES,
    dotted_name,
    resolve_annotation,
)

if TYPE_CHECKING:
    from ._compiler import CompileContext

_THROWABLE = "java.lang.Throwable"


# ---------------------------------------------------------------------------
# Statement mixin
# ---------------------------------------------------------------------------

class _StatementMixin:
    """Mixin providing statement compilation methods for ASTCompiler."""

    ctx: CompileContext

    def _compile_assign(self, node: ast.Assign) -> list[Statement]:
        if len(node.targets) != 1:
            raise CompileError("Chained assignment (a = b = c) is not supported", node, self.ctx)
        target = self._compile_target(node.targets[0], node)
        value = self.compile_expression(node.value)
        return [ExpressionStatement(
            expression=AssignmentExpr(target=target, value=value),
        )]

    def _compile_target(self, target_node: ast.expr, stmt_node: ast.stmt) -> Expression:
        """Compile an assignment target (LHS)."""
        if isinstance(target_node, ast.Name):
            name = target_node.id
            found = self.ctx.lookup(name)
            if found is None:
                raise CompileError(
                    f"Undeclared variable '{name}'. Use a type annotation "
                    f"(e.g. '{name}: int = 0') to declare a local.",
                    stmt_node, self.ctx,
                )
            return ReferenceExpr(name=name, resolved=found[0])
        if isinstance(target_node, ast.Attribute):
            return self.compile_expression(target_node)
        raise CompileError(
            f"Unsupported assignment target: {type(target_node).__name__}",
            stmt_node, self.ctx,
        )

    def _compile_augassign(self, node: ast.AugAssign) -> list[Statement]:
        rejected_msg = _REJECTED_BINOP_MESSAGES.get(type(node.op))
        if rejected_msg is not None:
            raise CompileError(rejected_msg, node, self.ctx)
        op = _AUGOP_MAP.get(type(node.op))
        if op is None:
            raise CompileError(
                f"Unsupported augmented assignment operator: {type(node.op).__name__}",
                node, self.ctx,
            )
        target = self._compile_target(node.target, node)
        value = self.compile_expression(node.value)
        return [ExpressionStatement(
            expression=AssignmentExpr(op=op, target=target, value=value),
        )]

    def _compile_annassign(self, node: ast.AnnAssign) -> list[Statement]:
        """Handle a local declaration: ``x: int = 0``."""
        if not isinstance(node.target, ast.Name):
            raise CompileError(
                "Type annotations are only supported on simple names",
                node, self.ctx,
            )
        name = node.target.id
        declared = resolve_annotation(node.annotation, node=node, ctx=self.ctx)
        if declared.is_static:
            raise CompileError("ClassVar is only allowed on class attributes", node, self.ctx)

        # The initializer sees the names visible before this declaration.
        initializer = None
        if node.value is not None:
            initializer = self.compile_expression(node.value)

        local_id = self.ctx.next_local_id(name)
        self.ctx.locals[name] = LocalBinding(id=local_id, data_type=declared.data_type)
        return [DeclarationStatement(variables=[LocalVariable(
            id=local_id,
            name=name,
            data_type=declared.data_type,
            initializer=initializer,
            is_final=declared.is_final,
            annotations=declared.annotations,
        )])]

    def _compile_if(self, node: ast.If) -> list[Statement]:
        # elif chains nest naturally: orelse holds a single If.
        cond = self.compile_expression(node.test)
        then_body = self._compile_body_list(node.body)
        else_body = self._compile_body_list(node.orelse)
        return [IfStatement(condition=cond, then_body=then_body, else_body=else_body)]

    def _compile_for(self, node: ast.For) -> list[Statement]:
        if not isinstance(node.target, ast.Name):
            raise CompileError(
                "For loop variable must be a simple name",
                node, self.ctx,
            )
        if node.orelse:
            raise CompileError("for/else is not supported", node, self.ctx)

        iterable = self.compile_expression(node.iter)
        data_type = None
        if (
            isinstance(node.iter, ast.Call)
            and isinstance(node.iter.func, ast.Name)
            and node.iter.func.id == "range"
        ):
            data_type = PrimitiveTypeRef(type=PrimitiveType.INT)

        name = node.target.id
        local_id = self.ctx.next_local_id(name)
        self.ctx.locals[name] = LocalBinding(id=local_id, data_type=data_type)
        body = self._compile_body_list(node.body)
        return [ForEachStatement(
            variable=LocalVariable(id=local_id, name=name, data_type=data_type),
            iterable=iterable,
            body=body,
        )]

    def _compile_while(self, node: ast.While) -> list[Statement]:
        if node.orelse:
            raise CompileError("while/else is not supported", node, self.ctx)
        cond = self.compile_expression(node.test)
        body = self._compile_body_list(node.body)
        return [WhileStatement(condition=cond, body=body)]

    def _compile_try(self, node: ast.Try) -> list[Statement]:
        if node.orelse:
            raise CompileError("try/else is not supported", node, self.ctx)
        body = self._compile_body_list(node.body)
        catches = [self._compile_handler(h) for h in node.handlers]
        finally_body = self._compile_body_list(node.finalbody)
        return [TryStatement(body=body, catches=catches, finally_body=finally_body)]

    def _compile_handler(self, handler: ast.ExceptHandler) -> CatchClause:
        type_name = _THROWABLE
        if handler.type is not None:
            type_name = dotted_name(handler.type)
            if type_name is None:
                raise CompileError(
                    "except clauses must name a single exception class",
                    handler, self.ctx,
                )
        name = handler.name or "_"
        local_id = self.ctx.next_local_id(name)
        data_type = ClassTypeRef(name=type_name)
        self.ctx.locals[name] = LocalBinding(id=local_id, data_type=data_type)
        return CatchClause(
            parameter=LocalVariable(id=local_id, name=name, data_type=data_type),
            body=self._compile_body_list(handler.body),
        )

    def _compile_return(self, node: ast.Return) -> list[Statement]:
        if node.value is None:
            return [ReturnStatement()]
        return [ReturnStatement(value=self.compile_expression(node.value))]

    def _compile_raise(self, node: ast.Raise) -> list[Statement]:
        if node.exc is None:
            raise CompileError("Bare 'raise' is not supported", node, self.ctx)
        if node.cause is not None:
            raise CompileError("'raise ... from ...' is not supported", node, self.ctx)
        return [ThrowStatement(exception=self.compile_expression(node.exc))]

    def _compile_break(self, node: ast.Break) -> list[Statement]:
        return [BreakStatement()]

    def _compile_continue(self, node: ast.Continue) -> list[Statement]:
        return [ContinueStatement()]

    def _compile_pass(self, node: ast.Pass) -> list[Statement]:
        return [EmptyStatement()]

    def _compile_expr_stmt(self, node: ast.Expr) -> list[Statement]:
        # Docstrings and `...` placeholders
        if isinstance(node.value, ast.Constant) and (
            isinstance(node.value.value, str) or node.value.value is Ellipsis
        ):
            return []
        return [ExpressionStatement(expression=self.compile_expression(node.value))]

    def _compile_body_list(self, stmts: list[ast.stmt]) -> list[Statement]:
        """Compile a list of AST statements."""
        result: list[Statement] = []
        for s in stmts:
            result.extend(self._compile_statement(s))
        return result
