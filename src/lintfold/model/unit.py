"""Classes, methods and the top-level CompilationUnit container."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, model_validator

from .statements import Statement
from .traversal import walk
from .types import TypeRef
from .variables import Field, LocalVariable, Parameter


class Method(BaseModel):
    """A method declaration. *body* is None for abstract/library methods."""

    kind: Literal["method"] = "method"
    id: str
    name: str
    parameters: list[Parameter] = []
    return_type: TypeRef | None = None
    body: list[Statement] | None = None
    is_static: bool = False
    annotations: list[str] = []


class ClassDecl(BaseModel):
    """A class with its fields, methods and nested classes.

    The qualified name is derived from the unit package and the nesting
    (``com.example.R.string`` for class ``string`` nested in ``R``).
    """

    kind: Literal["class"] = "class"
    name: str
    fields: list[Field] = []
    methods: list[Method] = []
    inner_classes: list[ClassDecl] = []
    is_static: bool = False
    annotations: list[str] = []


class CompilationUnit(BaseModel):
    """One source file: a package and its top-level classes."""

    package: str = ""
    file_name: str = "<unknown>"
    classes: list[ClassDecl] = []

    @model_validator(mode="after")
    def _unique_declaration_ids(self):
        seen: set[str] = set()
        for cls in self.classes:
            for node in walk(cls):
                if isinstance(node, (Field, Method, Parameter, LocalVariable)):
                    if node.id in seen:
                        raise ValueError(
                            f"duplicate declaration id {node.id!r}"
                        )
                    seen.add(node.id)
        return self


ClassDecl.model_rebuild()
Method.model_rebuild()
