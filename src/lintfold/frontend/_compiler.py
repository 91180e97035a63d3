"""AST compiler core: errors, compile context, scopes and operator maps.

The front-end reads Python-syntax class definitions (via ``ast.parse``,
never executed) and emits a ``CompilationUnit`` of the analysis IR with
every name bound to its declaration id.

Key concepts:

- **CompileContext**: source location plus the scopes visible while a
  field initializer or method body is compiled.
- **ClassScope**: fields, methods and nested classes of one class,
  collected before any body is compiled so forward references resolve.
- **Annotations**: Java primitive names (``int``, ``long``, ``char``,
  ...) are primitive types; ``Final[...]`` marks a declaration final and
  ``Annotated[T, "pkg.Ann"]`` attaches qualified annotation names.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass, field

from lintfold.model.expressions import AssignOp, BinaryOp, UnaryOp
from lintfold.model.types import (
    TYPE_STRING,
    ArrayTypeRef,
    ClassTypeRef,
    PrimitiveType,
    PrimitiveTypeRef,
    TypeRef,
)


# ---------------------------------------------------------------------------
# CompileError
# ---------------------------------------------------------------------------

class CompileError(Exception):
    """Error during AST compilation with source location."""

    def __init__(self, message: str, node: ast.AST | None = None, ctx: CompileContext | None = None):
        self.source_file = "<unknown>"
        self.source_line: int | None = None
        if ctx is not None:
            self.source_file = ctx.source_file
        if node is not None:
            lineno = getattr(node, "lineno", None)
            if lineno is not None:
                offset = ctx.source_line_offset if ctx is not None else 0
                self.source_line = lineno + offset
        loc = ""
        if self.source_line is not None:
            loc = f" ({self.source_file}:{self.source_line})"
        super().__init__(f"{message}{loc}")


# ---------------------------------------------------------------------------
# Scopes
# ---------------------------------------------------------------------------

@dataclass
class ClassScope:
    """Declarations of one class, visible to its bodies and nested classes."""

    name: str
    qualified_name: str
    outer: ClassScope | None = None
    fields: dict[str, str] = field(default_factory=dict)
    """field name -> declaration id"""

    field_types: dict[str, TypeRef | None] = field(default_factory=dict)
    methods: dict[str, str] = field(default_factory=dict)
    """method name -> declaration id"""

    inner: dict[str, ClassScope] = field(default_factory=dict)

    def lookup_field(self, name: str) -> tuple[str, TypeRef | None] | None:
        scope: ClassScope | None = self
        while scope is not None:
            if name in scope.fields:
                return scope.fields[name], scope.field_types[name]
            scope = scope.outer
        return None

    def lookup_method(self, name: str) -> tuple[str, ClassScope] | None:
        scope: ClassScope | None = self
        while scope is not None:
            if name in scope.methods:
                return scope.methods[name], scope
            scope = scope.outer
        return None


@dataclass
class LocalBinding:
    id: str
    data_type: TypeRef | None


# ---------------------------------------------------------------------------
# CompileContext
# ---------------------------------------------------------------------------

@dataclass
class CompileContext:
    """Mutable state carried through compilation."""

    source_file: str = "<string>"
    source_line_offset: int = 0

    top_classes: dict[str, ClassScope] = field(default_factory=dict)
    """top-level class name -> scope"""

    current_class: ClassScope | None = None
    method_id: str | None = None

    locals: dict[str, LocalBinding] = field(default_factory=dict)
    """name -> binding of the parameters and locals of the current method"""

    _local_counter: int = 0

    def enter_method(self, method_id: str) -> None:
        self.method_id = method_id
        self.locals = {}
        self._local_counter = 0

    def leave_method(self) -> None:
        self.method_id = None
        self.locals = {}

    def next_local_id(self, name: str) -> str:
        """Unique id for a local; redeclared names get fresh ids."""
        local_id = f"{self.method_id}#{name}.{self._local_counter}"
        self._local_counter += 1
        return local_id

    def lookup(self, name: str) -> tuple[str, TypeRef | None] | None:
        """Resolve a bare name: locals and parameters first, then fields."""
        if name in self.locals:
            binding = self.locals[name]
            return binding.id, binding.data_type
        if self.current_class is not None:
            return self.current_class.lookup_field(name)
        return None

    def lookup_class(self, name: str) -> ClassScope | None:
        """Resolve a bare class name: nested classes in scope, then top-level."""
        scope = self.current_class
        while scope is not None:
            if scope.name == name and scope.outer is None:
                return scope
            if name in scope.inner:
                return scope.inner[name]
            scope = scope.outer
        return self.top_classes.get(name)


# ---------------------------------------------------------------------------
# AST operator maps
# ---------------------------------------------------------------------------

_BINOP_MAP: dict[type, BinaryOp] = {
    ast.Add: BinaryOp.PLUS,
    ast.Sub: BinaryOp.MINUS,
    ast.Mult: BinaryOp.MULTIPLY,
    ast.Div: BinaryOp.DIV,
    ast.FloorDiv: BinaryOp.DIV,
    ast.Mod: BinaryOp.MOD,
    ast.BitAnd: BinaryOp.BITWISE_AND,
    ast.BitOr: BinaryOp.BITWISE_OR,
    ast.BitXor: BinaryOp.BITWISE_XOR,
    ast.LShift: BinaryOp.SHIFT_LEFT,
    ast.RShift: BinaryOp.SHIFT_RIGHT,
}

_AUGOP_MAP: dict[type, AssignOp] = {
    ast.Add: AssignOp.PLUS_ASSIGN,
    ast.Sub: AssignOp.MINUS_ASSIGN,
    ast.Mult: AssignOp.MULTIPLY_ASSIGN,
    ast.Div: AssignOp.DIV_ASSIGN,
    ast.FloorDiv: AssignOp.DIV_ASSIGN,
    ast.Mod: AssignOp.MOD_ASSIGN,
    ast.BitAnd: AssignOp.AND_ASSIGN,
    ast.BitOr: AssignOp.OR_ASSIGN,
    ast.BitXor: AssignOp.XOR_ASSIGN,
    ast.LShift: AssignOp.SHIFT_LEFT_ASSIGN,
    ast.RShift: AssignOp.SHIFT_RIGHT_ASSIGN,
}

_CMPOP_MAP: dict[type, BinaryOp] = {
    ast.Eq: BinaryOp.EQUALS,
    ast.NotEq: BinaryOp.NOT_EQUALS,
    ast.Is: BinaryOp.IDENTITY_EQUALS,
    ast.IsNot: BinaryOp.IDENTITY_NOT_EQUALS,
    ast.Gt: BinaryOp.GREATER,
    ast.GtE: BinaryOp.GREATER_OR_EQUALS,
    ast.Lt: BinaryOp.LESS,
    ast.LtE: BinaryOp.LESS_OR_EQUALS,
}

_BOOLOP_MAP: dict[type, BinaryOp] = {
    ast.And: BinaryOp.LOGICAL_AND,
    ast.Or: BinaryOp.LOGICAL_OR,
}

_UNARYOP_MAP: dict[type, UnaryOp] = {
    ast.Not: UnaryOp.NOT,
    ast.UAdd: UnaryOp.PLUS,
    ast.USub: UnaryOp.MINUS,
    ast.Invert: UnaryOp.BITWISE_NOT,
}

_REJECTED_BINOP_MESSAGES: dict[type, str] = {
    ast.Pow: "Exponentiation (**) has no Java operator; use Math.pow(a, b)",
    ast.MatMult: "Matrix multiplication (@) has no Java operator",
}

# Java primitive names usable as types and as cast functions.
_PRIMITIVE_NAMES: dict[str, PrimitiveType] = {p.value: p for p in PrimitiveType}
_PRIMITIVE_NAMES["bool"] = PrimitiveType.BOOLEAN

_STRING_NAMES = frozenset({"str", "String", TYPE_STRING})

# Pseudo-functions the compiler expands into IR nodes.
NEW_ARRAY = "new_array"
ARRAY_OF = "array_of"
UNSIGNED_SHIFT = "ushr"

# Complete set of rejected AST node types
_REJECTED_NODES: dict[type, str] = {
    ast.AsyncFunctionDef: "Async functions are not supported",
    ast.Delete: "del statements are not supported",
    ast.With: "with statements are not supported",
    ast.AsyncWith: "async with statements are not supported",
    ast.AsyncFor: "async for statements are not supported",
    ast.Assert: "assert statements are not supported",
    ast.Global: "global statements are not supported",
    ast.Nonlocal: "nonlocal statements are not supported",
    ast.Match: "match statements are not supported",
    ast.NamedExpr: "Walrus operator (:=) is not supported",
    ast.Lambda: "Lambda expressions are not supported",
    ast.Dict: "Dict literals are not supported",
    ast.Set: "Set literals are not supported",
    ast.List: "List literals are not supported; use array_of(T, ...)",
    ast.Tuple: "Tuple literals are not supported",
    ast.ListComp: "List comprehensions are not supported",
    ast.SetComp: "Set comprehensions are not supported",
    ast.DictComp: "Dict comprehensions are not supported",
    ast.GeneratorExp: "Generator expressions are not supported",
    ast.Await: "await expressions are not supported",
    ast.Yield: "yield expressions are not supported",
    ast.YieldFrom: "yield from expressions are not supported",
    ast.FormattedValue: "f-string expressions are not supported",
    ast.JoinedStr: "f-strings are not supported",
    ast.Starred: "Star unpacking is not supported",
    ast.Slice: "Slice operations are not supported",
}


# ---------------------------------------------------------------------------
# Annotation resolution
# ---------------------------------------------------------------------------

@dataclass
class DeclaredType:
    """A resolved declaration annotation."""

    data_type: TypeRef | None
    is_final: bool = False
    is_static: bool = False
    annotations: list[str] = field(default_factory=list)


def dotted_name(node: ast.expr) -> str | None:
    """``a.b.c`` for a Name/Attribute chain, else None."""
    parts: list[str] = []
    while isinstance(node, ast.Attribute):
        parts.append(node.attr)
        node = node.value
    if not isinstance(node, ast.Name):
        return None
    parts.append(node.id)
    return ".".join(reversed(parts))


def resolve_type(ann: ast.expr, *, node: ast.AST | None = None, ctx: CompileContext | None = None) -> TypeRef | None:
    """Resolve a type expression to a TypeRef.

    Handles primitive and class names, dotted and string class names,
    ``list[T]`` for arrays and ``None`` (no type).
    """
    if isinstance(ann, ast.Constant):
        if ann.value is None:
            return None
        if isinstance(ann.value, str):
            return _named_type(ann.value)
    if isinstance(ann, (ast.Name, ast.Attribute)):
        name = dotted_name(ann)
        if name is not None:
            return _named_type(name)
    if isinstance(ann, ast.Subscript) and dotted_name(ann.value) in ("list", "List"):
        element = resolve_type(ann.slice, node=node, ctx=ctx)
        if element is None:
            raise CompileError("Array element type cannot be None", node or ann, ctx)
        return ArrayTypeRef(element_type=element)
    raise CompileError(f"Unsupported type annotation: {ast.unparse(ann)}", node or ann, ctx)


def _named_type(name: str) -> TypeRef:
    if name in _PRIMITIVE_NAMES:
        return PrimitiveTypeRef(type=_PRIMITIVE_NAMES[name])
    if name in _STRING_NAMES:
        return ClassTypeRef(name=TYPE_STRING)
    return ClassTypeRef(name=name)


def resolve_annotation(ann: ast.expr, *, node: ast.AST | None = None, ctx: CompileContext | None = None) -> DeclaredType:
    """Resolve a declaration annotation, unwrapping ``Final``, ``ClassVar`` and ``Annotated``."""
    if isinstance(ann, ast.Subscript):
        wrapper = dotted_name(ann.value)
        if wrapper is not None:
            wrapper = wrapper.rsplit(".", 1)[-1]
        if wrapper in ("Final", "ClassVar"):
            inner = resolve_annotation(ann.slice, node=node, ctx=ctx)
            if wrapper == "Final":
                inner.is_final = True
            else:
                inner.is_static = True
            return inner
        if wrapper == "Annotated":
            if not isinstance(ann.slice, ast.Tuple) or len(ann.slice.elts) < 2:
                raise CompileError("Annotated[...] needs a type and at least one annotation", node or ann, ctx)
            base, *extras = ann.slice.elts
            inner = resolve_annotation(base, node=node, ctx=ctx)
            for extra in extras:
                inner.annotations.append(_annotation_name(extra, node, ctx))
            return inner
    return DeclaredType(data_type=resolve_type(ann, node=node, ctx=ctx))


def _annotation_name(extra: ast.expr, node: ast.AST | None, ctx: CompileContext | None) -> str:
    if isinstance(extra, ast.Constant) and isinstance(extra.value, str):
        return extra.value
    name = dotted_name(extra)
    if name is None:
        raise CompileError(
            f"Annotation must be a qualified name or string: {ast.unparse(extra)}",
            node or extra, ctx,
        )
    return name
