"""Statement AST nodes for the analysis IR."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, model_validator

from .expressions import Expression
from .variables import LocalVariable


class ExpressionStatement(BaseModel):
    """An expression evaluated for its effect (assignment, call, ...)."""

    kind: Literal["expression_stmt"] = "expression_stmt"
    expression: Expression


class DeclarationStatement(BaseModel):
    """One or more local declarations: ``int a = 1, b;``."""

    kind: Literal["declaration"] = "declaration"
    variables: list[LocalVariable]

    @model_validator(mode="after")
    def _not_empty(self):
        if not self.variables:
            raise ValueError("declaration statement needs at least one variable")
        return self


class BlockStatement(BaseModel):
    """A plain ``{ ... }`` block."""

    kind: Literal["block"] = "block"
    statements: list[Statement] = []


class IfStatement(BaseModel):
    kind: Literal["if"] = "if"
    condition: Expression
    then_body: list[Statement] = []
    else_body: list[Statement] = []


class WhileStatement(BaseModel):
    kind: Literal["while"] = "while"
    condition: Expression
    body: list[Statement] = []


class DoWhileStatement(BaseModel):
    kind: Literal["do_while"] = "do_while"
    body: list[Statement] = []
    condition: Expression


class ForStatement(BaseModel):
    """Classic ``for (init; condition; update) body``."""

    kind: Literal["for"] = "for"
    init: list[Statement] = []
    condition: Expression | None = None
    update: list[Expression] = []
    body: list[Statement] = []


class ForEachStatement(BaseModel):
    """``for (variable : iterable) body``."""

    kind: Literal["for_each"] = "for_each"
    variable: LocalVariable
    iterable: Expression
    body: list[Statement] = []


class SwitchCase(BaseModel):
    """One ``case`` group. An empty *labels* list is the ``default`` case."""

    labels: list[Expression] = []
    body: list[Statement] = []


class SwitchStatement(BaseModel):
    kind: Literal["switch"] = "switch"
    selector: Expression
    cases: list[SwitchCase] = []


class CatchClause(BaseModel):
    parameter: LocalVariable
    body: list[Statement] = []


class TryStatement(BaseModel):
    kind: Literal["try"] = "try"
    body: list[Statement] = []
    catches: list[CatchClause] = []
    finally_body: list[Statement] = []


class ReturnStatement(BaseModel):
    kind: Literal["return"] = "return"
    value: Expression | None = None


class ThrowStatement(BaseModel):
    kind: Literal["throw"] = "throw"
    exception: Expression


class BreakStatement(BaseModel):
    kind: Literal["break"] = "break"


class ContinueStatement(BaseModel):
    kind: Literal["continue"] = "continue"


class EmptyStatement(BaseModel):
    kind: Literal["empty"] = "empty"


Statement = Annotated[
    Union[
        ExpressionStatement,
        DeclarationStatement,
        BlockStatement,
        IfStatement,
        WhileStatement,
        DoWhileStatement,
        ForStatement,
        ForEachStatement,
        SwitchStatement,
        TryStatement,
        ReturnStatement,
        ThrowStatement,
        BreakStatement,
        ContinueStatement,
        EmptyStatement,
    ],
    Field(discriminator="kind"),
]

# Rebuild models with recursive Statement references.
ExpressionStatement.model_rebuild()
DeclarationStatement.model_rebuild()
BlockStatement.model_rebuild()
IfStatement.model_rebuild()
WhileStatement.model_rebuild()
DoWhileStatement.model_rebuild()
ForStatement.model_rebuild()
ForEachStatement.model_rebuild()
SwitchCase.model_rebuild()
SwitchStatement.model_rebuild()
CatchClause.model_rebuild()
TryStatement.model_rebuild()
ReturnStatement.model_rebuild()
ThrowStatement.model_rebuild()
