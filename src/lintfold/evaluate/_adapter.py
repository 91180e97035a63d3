"""Expression adapter: the seam between a program tree and the evaluators.

The evaluators never inspect tree nodes directly. They ask an
``ExpressionAdapter`` for a node's structural kind and parts, and for the
modifiers, initializer and annotations of declarations. Nodes and
declarations are opaque handles to them.

``IRAdapter`` implements the protocol over a ``lintfold.model``
``CompilationUnit``. It indexes parents and declarations once at
construction and is read-only afterwards.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel

from lintfold.model.expressions import (
    AssignmentExpr,
    AssignOp,
    BinaryExpr,
    BinaryOp,
    CallExpr,
    CastExpr,
    ConditionalExpr,
    LiteralExpr,
    NewArrayExpr,
    ParenthesizedExpr,
    PolyadicExpr,
    ReferenceExpr,
    UnaryExpr,
    UnaryOp,
)
from lintfold.model.statements import (
    BlockStatement,
    DeclarationStatement,
    ExpressionStatement,
    IfStatement,
)
from lintfold.model.traversal import iter_children
from lintfold.model.types import ArrayTypeRef, ClassTypeRef, PrimitiveTypeRef, TypeRef
from lintfold.model.unit import ClassDecl, CompilationUnit, Method
from lintfold.model.variables import Field, LocalVariable, Parameter

from ._values import Value, ValueKind, kind_of_primitive, literal_value


class AdapterError(Exception):
    """Raised when a tree cannot be indexed or a lookup names nothing."""


class NodeKind(str, Enum):
    LITERAL = "literal"
    UNARY = "unary"
    BINARY = "binary"
    POLYADIC = "polyadic"
    CONDITIONAL = "conditional"
    CAST = "cast"
    PARENTHESIZED = "parenthesized"
    REFERENCE = "reference"
    CALL = "call"
    ARRAY = "array"
    ASSIGNMENT = "assignment"
    IF = "if"
    BLOCK = "block"
    DECLARATION_GROUP = "declaration_group"
    EXPRESSION_STATEMENT = "expression_statement"
    DECLARATION = "declaration"
    METHOD = "method"
    OTHER = "other"


class DeclarationKind(str, Enum):
    LOCAL = "local"
    PARAMETER = "parameter"
    FIELD = "field"
    METHOD = "method"


@dataclass(frozen=True)
class ArrayParts:
    """Array construction: an explicit *elements* list or a *length*.

    *element_kind* is the component kind for primitive and String
    components, ``ValueKind.ARRAY`` for nested arrays and None for other
    reference components.
    """

    element_kind: ValueKind | None
    elements: list[Any] | None
    dimensions: list[Any]


@dataclass(frozen=True)
class CallParts:
    method_name: str
    receiver: Any
    args: list[Any]
    declaring_class: str | None


@dataclass(frozen=True)
class ClassInfo:
    """A class enclosing a declaration."""

    name: str
    qualified_name: str
    is_static: bool


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------

@runtime_checkable
class ExpressionAdapter(Protocol):
    """Capabilities a tree backend provides to the evaluators."""

    # Structure

    def node_kind(self, node: Any) -> NodeKind: ...

    def children(self, node: Any) -> list[Any]: ...

    def parent(self, node: Any) -> Any | None: ...

    def enclosing_method(self, node: Any) -> Any | None: ...

    # Expression parts

    def literal(self, node: Any) -> Value: ...

    def unary_parts(self, node: Any) -> tuple[UnaryOp, Any]: ...

    def binary_parts(self, node: Any) -> tuple[BinaryOp, Any, Any]: ...

    def polyadic_parts(self, node: Any) -> tuple[BinaryOp, list[Any]]: ...

    def conditional_parts(self, node: Any) -> tuple[Any, Any | None, Any | None]: ...

    def cast_parts(self, node: Any) -> tuple[ValueKind | None, Any]: ...

    def inner(self, node: Any) -> Any: ...

    def array_parts(self, node: Any) -> ArrayParts: ...

    def assignment_parts(self, node: Any) -> tuple[AssignOp, Any, Any]: ...

    def call_parts(self, node: Any) -> CallParts: ...

    def reference_parts(self, node: Any) -> tuple[str, Any | None]: ...

    def reference_path(self, node: Any) -> list[str] | None: ...

    def resolve(self, node: Any) -> Any | None: ...

    # Declarations

    def declaration_of(self, node: Any) -> Any | None: ...

    def declaration_kind(self, decl: Any) -> DeclarationKind: ...

    def declaration_key(self, decl: Any) -> Hashable: ...

    def declaration_name(self, decl: Any) -> str: ...

    def declared_kind(self, decl: Any) -> ValueKind | None: ...

    def is_final(self, decl: Any) -> bool: ...

    def is_static(self, decl: Any) -> bool: ...

    def initializer(self, decl: Any) -> Any | None: ...

    def constant_value(self, decl: Any) -> Value | None: ...

    def annotations(self, decl: Any) -> list[str]: ...

    def containing_classes(self, decl: Any) -> list[ClassInfo]: ...

    def package_of(self, decl: Any) -> str: ...


# ---------------------------------------------------------------------------
# IR implementation
# ---------------------------------------------------------------------------

_NODE_KINDS: dict[type, NodeKind] = {
    LiteralExpr: NodeKind.LITERAL,
    UnaryExpr: NodeKind.UNARY,
    BinaryExpr: NodeKind.BINARY,
    PolyadicExpr: NodeKind.POLYADIC,
    ConditionalExpr: NodeKind.CONDITIONAL,
    CastExpr: NodeKind.CAST,
    ParenthesizedExpr: NodeKind.PARENTHESIZED,
    ReferenceExpr: NodeKind.REFERENCE,
    CallExpr: NodeKind.CALL,
    NewArrayExpr: NodeKind.ARRAY,
    AssignmentExpr: NodeKind.ASSIGNMENT,
    IfStatement: NodeKind.IF,
    BlockStatement: NodeKind.BLOCK,
    DeclarationStatement: NodeKind.DECLARATION_GROUP,
    ExpressionStatement: NodeKind.EXPRESSION_STATEMENT,
    LocalVariable: NodeKind.DECLARATION,
    Parameter: NodeKind.DECLARATION,
    Method: NodeKind.METHOD,
}

_DECLARATION_KINDS: dict[type, DeclarationKind] = {
    LocalVariable: DeclarationKind.LOCAL,
    Parameter: DeclarationKind.PARAMETER,
    Field: DeclarationKind.FIELD,
    Method: DeclarationKind.METHOD,
}

_TYPE_NODES = (PrimitiveTypeRef, ClassTypeRef, ArrayTypeRef)


def _kind_of_type(ref: TypeRef | None) -> ValueKind | None:
    if isinstance(ref, PrimitiveTypeRef):
        return kind_of_primitive(ref.type)
    if isinstance(ref, ClassTypeRef) and ref.is_string:
        return ValueKind.STRING
    if isinstance(ref, ArrayTypeRef):
        return ValueKind.ARRAY
    return None


class IRAdapter:
    """``ExpressionAdapter`` over a ``CompilationUnit``.

    Node identity is object identity: every model instance may occupy a
    single position in the unit.
    """

    def __init__(self, unit: CompilationUnit) -> None:
        self.unit = unit
        self._parents: dict[int, BaseModel | None] = {}
        self._nodes: dict[int, BaseModel] = {}
        self._declarations: dict[str, BaseModel] = {}
        self._classes: dict[str, list[ClassDecl]] = {}
        self._index()

    # -- indexing ----------------------------------------------------------

    def _index(self) -> None:
        stack: list[tuple[BaseModel, BaseModel | None, list[ClassDecl]]] = [
            (cls, None, []) for cls in reversed(self.unit.classes)
        ]
        while stack:
            node, parent, outer = stack.pop()
            key = id(node)
            if key in self._nodes:
                raise AdapterError(
                    f"{type(node).__name__} instance appears more than once "
                    f"in {self.unit.file_name}"
                )
            self._nodes[key] = node
            self._parents[key] = parent

            if isinstance(node, ClassDecl):
                outer = [node, *outer]
            elif type(node) in _DECLARATION_KINDS:
                if node.id in self._declarations:
                    raise AdapterError(f"duplicate declaration id {node.id!r}")
                self._declarations[node.id] = node
                self._classes[node.id] = outer

            for child in reversed(list(iter_children(node))):
                if isinstance(child, _TYPE_NODES):
                    continue
                stack.append((child, node, outer))

    def declaration(self, decl_id: str) -> BaseModel:
        """Look up a declaration by id."""
        try:
            return self._declarations[decl_id]
        except KeyError:
            raise AdapterError(
                f"no declaration {decl_id!r} in {self.unit.file_name}"
            ) from None

    def __contains__(self, node: object) -> bool:
        return id(node) in self._nodes and self._nodes[id(node)] is node

    def iter_nodes(self) -> Iterator[BaseModel]:
        """Every indexed node in pre-order. Type references are not nodes."""
        yield from self._nodes.values()

    # -- structure ---------------------------------------------------------

    def node_kind(self, node: Any) -> NodeKind:
        return _NODE_KINDS.get(type(node), NodeKind.OTHER)

    def children(self, node: Any) -> list[Any]:
        return [c for c in iter_children(node) if not isinstance(c, _TYPE_NODES)]

    def parent(self, node: Any) -> Any | None:
        if node not in self:
            return None
        return self._parents[id(node)]

    def enclosing_method(self, node: Any) -> Any | None:
        current = self.parent(node)
        while current is not None:
            if isinstance(current, Method):
                return current
            if isinstance(current, ClassDecl):
                return None
            current = self.parent(current)
        return None

    # -- expression parts --------------------------------------------------

    def literal(self, node: LiteralExpr) -> Value:
        return literal_value(node)

    def unary_parts(self, node: UnaryExpr) -> tuple[UnaryOp, Any]:
        return node.op, node.operand

    def binary_parts(self, node: BinaryExpr) -> tuple[BinaryOp, Any, Any]:
        return node.op, node.left, node.right

    def polyadic_parts(self, node: PolyadicExpr) -> tuple[BinaryOp, list[Any]]:
        return node.op, list(node.operands)

    def conditional_parts(self, node: Any) -> tuple[Any, Any | None, Any | None]:
        if isinstance(node, ConditionalExpr):
            return node.condition, node.then_expr, node.else_expr
        # Statement-level ifs have no value branches.
        return node.condition, None, None

    def cast_parts(self, node: CastExpr) -> tuple[ValueKind | None, Any]:
        target = node.target_type
        kind = kind_of_primitive(target.type) if isinstance(target, PrimitiveTypeRef) else None
        return kind, node.operand

    def inner(self, node: ParenthesizedExpr) -> Any:
        return node.expression

    def array_parts(self, node: NewArrayExpr) -> ArrayParts:
        elements = list(node.initializer) if node.initializer is not None else None
        return ArrayParts(
            element_kind=_kind_of_type(node.element_type),
            elements=elements,
            dimensions=list(node.dimensions),
        )

    def assignment_parts(self, node: AssignmentExpr) -> tuple[AssignOp, Any, Any]:
        return node.op, node.target, node.value

    def call_parts(self, node: CallExpr) -> CallParts:
        declaring_class = node.declaring_class
        if declaring_class is None and node.resolved in self._classes:
            outer = self._classes[node.resolved]
            if outer:
                declaring_class = self._qualified_name(outer)
        return CallParts(node.method_name, node.receiver, list(node.args), declaring_class)

    def reference_parts(self, node: ReferenceExpr) -> tuple[str, Any | None]:
        return node.name, node.qualifier

    def reference_path(self, node: Any) -> list[str] | None:
        path: list[str] = []
        current = node
        while isinstance(current, ReferenceExpr):
            path.append(current.name)
            current = current.qualifier
        if current is not None:
            return None
        path.reverse()
        return path

    def resolve(self, node: Any) -> Any | None:
        decl_id = getattr(node, "resolved", None)
        if decl_id is None:
            return None
        return self._declarations.get(decl_id)

    # -- declarations ------------------------------------------------------

    def declaration_of(self, node: Any) -> Any | None:
        if isinstance(node, (LocalVariable, Parameter)):
            return node
        return None

    def declaration_kind(self, decl: Any) -> DeclarationKind:
        return _DECLARATION_KINDS[type(decl)]

    def declaration_key(self, decl: Any) -> str:
        return decl.id

    def declaration_name(self, decl: Any) -> str:
        return decl.name

    def declared_kind(self, decl: Any) -> ValueKind | None:
        return _kind_of_type(getattr(decl, "data_type", None))

    def is_final(self, decl: Any) -> bool:
        return getattr(decl, "is_final", False)

    def is_static(self, decl: Any) -> bool:
        return getattr(decl, "is_static", False)

    def initializer(self, decl: Any) -> Any | None:
        return getattr(decl, "initializer", None)

    def constant_value(self, decl: Any) -> Value | None:
        constant = getattr(decl, "constant_value", None)
        if constant is None:
            return None
        return literal_value(constant)

    def annotations(self, decl: Any) -> list[str]:
        return list(decl.annotations)

    def containing_classes(self, decl: Any) -> list[ClassInfo]:
        outer = self._classes.get(decl.id, [])
        return [
            ClassInfo(
                name=cls.name,
                qualified_name=self._qualified_name(outer[i:]),
                is_static=cls.is_static,
            )
            for i, cls in enumerate(outer)
        ]

    def package_of(self, decl: Any) -> str:
        return self.unit.package

    def _qualified_name(self, outer: list[ClassDecl]) -> str:
        names = [cls.name for cls in reversed(outer)]
        if self.unit.package:
            names.insert(0, self.unit.package)
        return ".".join(names)
