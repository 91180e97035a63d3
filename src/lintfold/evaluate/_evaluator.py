"""Constant evaluator: structural folding over any ExpressionAdapter.

``ConstantEvaluator`` holds only its adapter. Each ``evaluate`` call
runs a fresh ``_Evaluation`` that carries the call's configuration and
recursion depth, so one evaluator can be shared between callers.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from ._adapter import DeclarationKind, ExpressionAdapter, NodeKind
from ._assignments import find_last_value
from ._config import DEFAULT_CONFIG, EvaluatorConfig
from ._guards import surrounded_by_variable_check
from ._operators import apply_binary, apply_unary
from ._values import (
    UNKNOWN,
    Value,
    ValueKind,
    array_value,
    cast_value,
    common_kind,
    type_default,
    widen,
)

logger = logging.getLogger(__name__)


class ConstantEvaluator:
    """Folds expression nodes into ``Value``s.

    Evaluation never raises: anything that cannot be folded, including
    nodes the adapter does not know, yields ``UNKNOWN``.

    Usage::

        evaluator = ConstantEvaluator(IRAdapter(unit))
        value = evaluator.evaluate(node, EvaluatorConfig(allow_partial=True))
    """

    def __init__(self, adapter: ExpressionAdapter) -> None:
        self.adapter = adapter

    def evaluate(self, node: Any, config: EvaluatorConfig | None = None) -> Value:
        if node is None:
            return UNKNOWN
        return _Evaluation(self.adapter, config or DEFAULT_CONFIG).eval(node)

    def evaluate_string(self, node: Any, config: EvaluatorConfig | None = None) -> str | None:
        """Fold *node* and return the result only if it is a String."""
        value = self.evaluate(node, config)
        return value.data if value.is_string else None


class _Evaluation:
    """State of a single ``evaluate`` call."""

    def __init__(self, adapter: ExpressionAdapter, config: EvaluatorConfig) -> None:
        self.adapter = adapter
        self.config = config
        self.depth = 0

    def eval(self, node: Any) -> Value:
        handler = self._DISPATCH.get(self.adapter.node_kind(node))
        if handler is None:
            return UNKNOWN
        if self.depth >= self.config.max_depth:
            logger.debug("evaluation depth cap %d reached", self.config.max_depth)
            return UNKNOWN
        self.depth += 1
        try:
            return handler(self, node)
        finally:
            self.depth -= 1

    # -- operators ---------------------------------------------------------

    def _eval_literal(self, node: Any) -> Value:
        return self.adapter.literal(node)

    def _eval_parenthesized(self, node: Any) -> Value:
        return self.eval(self.adapter.inner(node))

    def _eval_unary(self, node: Any) -> Value:
        op, operand = self.adapter.unary_parts(node)
        return apply_unary(op, self.eval(operand))

    def _combine(self, op, left: Value, right: Value) -> Value:
        # With partial evaluation an unknown operand acts as an identity element.
        if left.is_unknown or right.is_unknown:
            if self.config.allow_partial:
                return right if left.is_unknown else left
            return UNKNOWN
        return apply_binary(op, left, right)

    def _eval_binary(self, node: Any) -> Value:
        op, left, right = self.adapter.binary_parts(node)
        return self._combine(op, self.eval(left), self.eval(right))

    def _eval_polyadic(self, node: Any) -> Value:
        op, operands = self.adapter.polyadic_parts(node)
        result = self.eval(operands[0])
        for operand in operands[1:]:
            if result.is_unknown and not self.config.allow_partial:
                return UNKNOWN
            result = self._combine(op, result, self.eval(operand))
        return result

    def _eval_conditional(self, node: Any) -> Value:
        condition, then_branch, else_branch = self.adapter.conditional_parts(node)
        known = self.eval(condition)
        if not known.is_boolean:
            return UNKNOWN
        branch = then_branch if known.data else else_branch
        return self.eval(branch) if branch is not None else UNKNOWN

    def _eval_cast(self, node: Any) -> Value:
        target, operand = self.adapter.cast_parts(node)
        value = self.eval(operand)
        if target is None or value.is_unknown:
            return value
        return cast_value(value, target)

    # -- arrays ------------------------------------------------------------

    def _eval_array(self, node: Any) -> Value:
        parts = self.adapter.array_parts(node)
        if parts.element_kind == ValueKind.ARRAY:
            # Only single-dimension arrays are folded.
            return UNKNOWN
        if parts.elements is not None:
            return self._array_from_elements(parts.elements, parts.element_kind)
        return self._array_from_length(parts.dimensions, parts.element_kind)

    def _array_from_elements(self, elements: list[Any], declared: ValueKind | None) -> Value:
        limit = self.config.max_array_elements
        if len(elements) > limit:
            logger.debug("array initializer truncated to %d elements", limit)
        values: list[Value] = []
        for element in elements[:limit]:
            value = self.eval(element)
            if declared is not None and value.is_known:
                value = widen(value, declared)
            if value.is_unknown:
                if not self.config.allow_partial:
                    return UNKNOWN
                continue
            values.append(value)
        if declared is not None:
            return array_value(values, declared)
        return array_value(values, common_kind([v.kind for v in values]))

    def _array_from_length(self, dimensions: list[Any], element_kind: ValueKind | None) -> Value:
        if len(dimensions) != 1:
            return UNKNOWN
        length = self.eval(dimensions[0])
        if not length.is_integral or length.kind == ValueKind.LONG or length.data < 0:
            return UNKNOWN
        size = min(length.data, self.config.max_array_length)
        return array_value([type_default(element_kind)] * size, element_kind)

    # -- references --------------------------------------------------------

    def _eval_reference(self, node: Any) -> Value:
        adapter = self.adapter
        declaration = adapter.resolve(node)
        if declaration is None:
            logger.debug("unresolved reference %s", adapter.reference_path(node))
            return UNKNOWN

        kind = adapter.declaration_kind(declaration)
        if kind == DeclarationKind.FIELD:
            return self._field_value(node, declaration)
        if kind in (DeclarationKind.LOCAL, DeclarationKind.PARAMETER):
            last = find_last_value(adapter, declaration, node, self.eval)
            if last.value.is_known and last.from_initializer:
                if surrounded_by_variable_check(adapter, node, declaration):
                    return UNKNOWN
            return last.value
        return UNKNOWN

    def _field_value(self, node: Any, field: Any) -> Value:
        adapter = self.adapter
        constant = adapter.constant_value(field)
        if constant is not None:
            return constant
        initializer = adapter.initializer(field)
        if initializer is None:
            return UNKNOWN
        if not (self.config.allow_field_initializers or adapter.is_final(field)):
            logger.debug(
                "field %s is not final; initializer not trusted",
                adapter.declaration_name(field),
            )
            return UNKNOWN
        value = self.eval(initializer)
        if value.is_known and surrounded_by_variable_check(adapter, node, field):
            return UNKNOWN
        return value

    _DISPATCH: dict[NodeKind, Callable[[_Evaluation, Any], Value]] = {
        NodeKind.LITERAL: _eval_literal,
        NodeKind.PARENTHESIZED: _eval_parenthesized,
        NodeKind.UNARY: _eval_unary,
        NodeKind.BINARY: _eval_binary,
        NodeKind.POLYADIC: _eval_polyadic,
        NodeKind.CONDITIONAL: _eval_conditional,
        NodeKind.CAST: _eval_cast,
        NodeKind.ARRAY: _eval_array,
        NodeKind.REFERENCE: _eval_reference,
    }


# ---------------------------------------------------------------------------
# Array literal detection
# ---------------------------------------------------------------------------

def is_array_literal(adapter: ExpressionAdapter, node: Any) -> bool:
    """True if *node* is, or definitely holds, a freshly created array."""
    seen = 0
    while node is not None and seen < DEFAULT_CONFIG.max_depth:
        seen += 1
        kind = adapter.node_kind(node)
        if kind == NodeKind.ARRAY:
            return True
        if kind == NodeKind.PARENTHESIZED:
            node = adapter.inner(node)
        elif kind == NodeKind.CAST:
            node = adapter.cast_parts(node)[1]
        elif kind == NodeKind.REFERENCE:
            declaration = adapter.resolve(node)
            if declaration is None:
                return False
            decl_kind = adapter.declaration_kind(declaration)
            if decl_kind == DeclarationKind.FIELD:
                node = adapter.initializer(declaration)
            elif decl_kind in (DeclarationKind.LOCAL, DeclarationKind.PARAMETER):
                node = find_last_value(adapter, declaration, node).node
            else:
                return False
        else:
            return False
    return False
