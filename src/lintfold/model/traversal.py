"""Generic traversal over IR models.

IR nodes are pydantic models whose children live in model fields, either
directly or inside lists. Traversal visits fields in declaration order,
which is also program order for every node kind in the IR.
"""

from __future__ import annotations

from collections.abc import Iterator

from pydantic import BaseModel


def iter_children(node: BaseModel) -> Iterator[BaseModel]:
    """Yield the direct child models of *node* in field order."""
    for name in type(node).model_fields:
        value = getattr(node, name)
        if isinstance(value, BaseModel):
            yield value
        elif isinstance(value, list):
            for item in value:
                if isinstance(item, BaseModel):
                    yield item


def walk(node: BaseModel) -> Iterator[BaseModel]:
    """Pre-order traversal of *node* and all of its descendants."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(list(iter_children(current))))
