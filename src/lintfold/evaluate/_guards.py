"""Narrowing guard: refuse initializer-derived constants under a checking ``if``."""

from __future__ import annotations

import logging
from typing import Any

from ._adapter import ExpressionAdapter, NodeKind

logger = logging.getLogger(__name__)

_GUARDS = frozenset({NodeKind.IF, NodeKind.CONDITIONAL})


def references(adapter: ExpressionAdapter, expression: Any, declaration: Any) -> bool:
    """True if any reference inside *expression* resolves to *declaration*."""
    key = adapter.declaration_key(declaration)
    stack = [expression]
    while stack:
        node = stack.pop()
        if adapter.node_kind(node) == NodeKind.REFERENCE:
            resolved = adapter.resolve(node)
            if resolved is not None and adapter.declaration_key(resolved) == key:
                return True
        stack.extend(adapter.children(node))
    return False


def is_within(adapter: ExpressionAdapter, node: Any, ancestor: Any) -> bool:
    """True if *node* is *ancestor* or one of its descendants."""
    current = node
    while current is not None:
        if current is ancestor:
            return True
        current = adapter.parent(current)
    return False


def surrounded_by_variable_check(adapter: ExpressionAdapter, node: Any, declaration: Any) -> bool:
    """True if an enclosing ``if`` (or ternary) tests *declaration* around *node*.

    Uses inside the tested condition itself are not guarded.
    """
    current = adapter.parent(node)
    while current is not None:
        if adapter.node_kind(current) in _GUARDS:
            condition = adapter.conditional_parts(current)[0]
            if references(adapter, condition, declaration) and not is_within(adapter, node, condition):
                logger.debug(
                    "%s is checked by an enclosing condition; initializer not trusted",
                    adapter.declaration_name(declaration),
                )
                return True
        current = adapter.parent(current)
    return False
