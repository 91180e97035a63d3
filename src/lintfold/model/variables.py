"""Variable declarations for the analysis IR.

Every declaration carries a unit-wide unique *id*; ReferenceExpr nodes
bind to declarations through it. Annotations are stored as qualified
names (e.g. ``androidx.annotation.StringRes``).
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from .expressions import Expression, LiteralExpr
from .types import TypeRef


class LocalVariable(BaseModel):
    """A local variable declared inside a method body."""

    kind: Literal["local"] = "local"
    id: str
    name: str
    data_type: TypeRef | None = None
    initializer: Expression | None = None
    is_final: bool = False
    annotations: list[str] = []


class Parameter(BaseModel):
    """A method parameter."""

    kind: Literal["parameter"] = "parameter"
    id: str
    name: str
    data_type: TypeRef | None = None
    is_final: bool = False
    annotations: list[str] = []


class Field(BaseModel):
    """A class field.

    *constant_value* is a compile-time constant already computed by the
    host (e.g. from class files); it takes precedence over *initializer*.
    """

    kind: Literal["field"] = "field"
    id: str
    name: str
    data_type: TypeRef | None = None
    initializer: Expression | None = None
    constant_value: LiteralExpr | None = None
    is_final: bool = False
    is_static: bool = False
    annotations: list[str] = []


LocalVariable.model_rebuild()
Field.model_rebuild()
