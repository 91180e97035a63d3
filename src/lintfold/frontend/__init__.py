"""lintfold front-end: Python-syntax classes to analysis IR.

Entry point::

    from lintfold.frontend import compile_unit

    unit = compile_unit(source, package="com.example")

Java primitive names (``int``, ``long``, ``char``, ...) are types and
casts, ``Final[...]`` marks a declaration final, ``Annotated[T, "Ann"]``
attaches annotations, ``new_array(T, n)`` / ``array_of(T, a, b)`` create
arrays and ``ushr(a, n)`` is Java's ``>>>``.
"""

from ._compiler import ARRAY_OF, NEW_ARRAY, UNSIGNED_SHIFT, CompileContext, CompileError
from ._unit import ASTCompiler, compile_class, compile_unit

__all__ = [
    "compile_unit",
    "compile_class",
    "ASTCompiler",
    "CompileContext",
    "CompileError",
    "NEW_ARRAY",
    "ARRAY_OF",
    "UNSIGNED_SHIFT",
]
