"""Type references for the analysis IR.

Only what the evaluator needs to reason about is modelled:

- PrimitiveTypeRef: the eight Java primitive types (cast targets, array
  element types, literal types).
- ClassTypeRef: a reference type named by its fully qualified name.
- ArrayTypeRef: ``element_type[]``.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------

class PrimitiveType(str, Enum):
    """Java primitive types."""

    BOOLEAN = "boolean"

    # Integral
    BYTE = "byte"
    SHORT = "short"
    CHAR = "char"
    INT = "int"
    LONG = "long"

    # Floating point
    FLOAT = "float"
    DOUBLE = "double"


TYPE_STRING = "java.lang.String"


# ---------------------------------------------------------------------------
# Type References
# ---------------------------------------------------------------------------

class PrimitiveTypeRef(BaseModel):
    """Reference to a primitive type (int, long, boolean, ...)."""

    kind: Literal["primitive"] = "primitive"
    type: PrimitiveType


class ClassTypeRef(BaseModel):
    """Reference to a class type by qualified name (e.g. java.lang.String)."""

    kind: Literal["class"] = "class"
    name: str

    @property
    def is_string(self) -> bool:
        return self.name in (TYPE_STRING, "String")


class ArrayTypeRef(BaseModel):
    """Array type: element_type[]."""

    kind: Literal["array"] = "array"
    element_type: TypeRef


TypeRef = Annotated[
    Union[
        PrimitiveTypeRef,
        ClassTypeRef,
        ArrayTypeRef,
    ],
    Field(discriminator="kind"),
]


def primitive(ptype: PrimitiveType | str) -> PrimitiveTypeRef:
    """Shorthand for ``PrimitiveTypeRef(type=ptype)``."""
    return PrimitiveTypeRef(type=PrimitiveType(ptype))


def string_type() -> ClassTypeRef:
    return ClassTypeRef(name=TYPE_STRING)


ArrayTypeRef.model_rebuild()
