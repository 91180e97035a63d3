"""Backward reaching-value analysis ("last assignment").

The finder walks the enclosing method in program order with a nesting
level counter. Blocks, declaration groups, expression statements and
parentheses are transparent; every other node opens a level. The target
variable's level is the level at which its declaration is met. A plain
assignment to the target more than one level below that sits inside a
conditional or loop relative to the declaration and makes the value
indeterminate. Reassignment inside any branch is therefore always
unknown, even when every branch assigns the same value.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from lintfold.model.expressions import AssignOp, UnaryOp

from ._adapter import DeclarationKind, ExpressionAdapter, NodeKind
from ._values import UNKNOWN, Value

logger = logging.getLogger(__name__)

_TRANSPARENT = frozenset({
    NodeKind.BLOCK,
    NodeKind.DECLARATION_GROUP,
    NodeKind.EXPRESSION_STATEMENT,
    NodeKind.PARENTHESIZED,
})

_INCREMENTS = frozenset({
    UnaryOp.PREFIX_INCREMENT,
    UnaryOp.PREFIX_DECREMENT,
    UnaryOp.POSTFIX_INCREMENT,
    UnaryOp.POSTFIX_DECREMENT,
})


@dataclass(frozen=True)
class LastAssignment:
    """Definition reaching a use site.

    *node* is the assignment's right-hand side (or the declaration's
    initializer) and None when no single definition reaches. *value* is
    the folded value of *node*, UNKNOWN when it was not folded.
    """

    node: Any | None
    value: Value
    from_initializer: bool


_INDETERMINATE = LastAssignment(None, UNKNOWN, False)


class LastAssignmentFinder:
    """One-shot walker that finds the definition of *declaration* reaching *use_site*.

    When *evaluate* is given every accepted definition is folded as soon
    as it is met, so the fold sees the tree state at that point.
    """

    def __init__(
        self,
        adapter: ExpressionAdapter,
        declaration: Any,
        use_site: Any,
        evaluate: Callable[[Any], Value] | None = None,
    ) -> None:
        self._adapter = adapter
        self._key = adapter.declaration_key(declaration)
        self._name = adapter.declaration_name(declaration)
        self._use_site = use_site
        self._evaluate = evaluate
        self._level = 0
        self._variable_level = -1
        self._used = False

        initializer = adapter.initializer(declaration)
        if initializer is None:
            self._result = LastAssignment(None, UNKNOWN, False)
        else:
            self._result = LastAssignment(initializer, self._fold(initializer), True)

    def run(self, root: Any) -> LastAssignment:
        """Walk *root* (normally the enclosing method) and return the reaching definition."""
        if self._used:
            raise RuntimeError("LastAssignmentFinder instances are single-use")
        self._used = True

        adapter = self._adapter
        stack: list[tuple[Any, bool]] = [(root, False)]
        while stack:
            node, leaving = stack.pop()
            if leaving:
                self._leave(node)
                continue
            if node is self._use_site:
                break
            kind = adapter.node_kind(node)
            if kind == NodeKind.DECLARATION and self._variable_level < 0:
                decl = adapter.declaration_of(node)
                if decl is not None and adapter.declaration_key(decl) == self._key:
                    self._variable_level = self._level
            if kind not in _TRANSPARENT:
                self._level += 1
            stack.append((node, True))
            stack.extend((child, False) for child in reversed(adapter.children(node)))
        return self._result

    # -- events ------------------------------------------------------------

    def _leave(self, node: Any) -> None:
        kind = self._adapter.node_kind(node)
        if self._variable_level >= 0:
            if kind == NodeKind.ASSIGNMENT:
                self._assignment(node)
            elif kind == NodeKind.UNARY:
                op, operand = self._adapter.unary_parts(node)
                if op in _INCREMENTS and self._targets(operand):
                    logger.debug("%s is incremented in place; value is unknown", self._name)
                    self._result = _INDETERMINATE
        if kind not in _TRANSPARENT:
            self._level -= 1

    def _assignment(self, node: Any) -> None:
        op, target, value = self._adapter.assignment_parts(node)
        if not self._targets(target):
            return
        if op != AssignOp.ASSIGN:
            logger.debug("compound assignment to %s; value is unknown", self._name)
            self._result = _INDETERMINATE
            return
        if self._level > self._variable_level + 1:
            logger.debug("%s is reassigned conditionally; value is unknown", self._name)
            self._result = _INDETERMINATE
            return
        self._result = LastAssignment(value, self._fold(value), False)

    # -- helpers -----------------------------------------------------------

    def _targets(self, node: Any) -> bool:
        adapter = self._adapter
        while adapter.node_kind(node) == NodeKind.PARENTHESIZED:
            node = adapter.inner(node)
        if adapter.node_kind(node) != NodeKind.REFERENCE:
            return False
        resolved = adapter.resolve(node)
        return resolved is not None and adapter.declaration_key(resolved) == self._key

    def _fold(self, node: Any) -> Value:
        if self._evaluate is None:
            return UNKNOWN
        return self._evaluate(node)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def _walks_body(adapter: ExpressionAdapter, declaration: Any) -> bool:
    kind = adapter.declaration_kind(declaration)
    return kind in (DeclarationKind.LOCAL, DeclarationKind.PARAMETER) and not adapter.is_final(declaration)


def find_last_value(
    adapter: ExpressionAdapter,
    declaration: Any,
    use_site: Any,
    evaluate: Callable[[Any], Value] | None = None,
) -> LastAssignment:
    """Reaching definition of *declaration* at *use_site*, folded with *evaluate*.

    Non-final locals and parameters are tracked through the enclosing
    method. Final variables and fields cannot be reassigned locally and
    use their initializer directly.
    """
    if _walks_body(adapter, declaration):
        method = adapter.enclosing_method(use_site)
        if method is None:
            logger.debug(
                "use of %s is outside any method body",
                adapter.declaration_name(declaration),
            )
            return _INDETERMINATE
        finder = LastAssignmentFinder(adapter, declaration, use_site, evaluate)
        return finder.run(method)

    initializer = adapter.initializer(declaration)
    if initializer is None:
        return _INDETERMINATE
    value = evaluate(initializer) if evaluate is not None else UNKNOWN
    return LastAssignment(initializer, value, True)


def find_last_assignment(adapter: ExpressionAdapter, declaration: Any, use_site: Any) -> Any | None:
    """Return the raw definition node of *declaration* reaching *use_site*, or None."""
    return find_last_value(adapter, declaration, use_site).node
