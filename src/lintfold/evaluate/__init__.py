"""lintfold constant evaluation: public API.

Entry point::

    from lintfold.evaluate import IRAdapter, evaluate

    adapter = IRAdapter(unit)
    value = evaluate(adapter, node, allow_partial=True)
    if value.is_known:
        print(value.to_python())
"""

from __future__ import annotations

from typing import Any

from ._adapter import (
    AdapterError,
    ArrayParts,
    CallParts,
    ClassInfo,
    DeclarationKind,
    ExpressionAdapter,
    IRAdapter,
    NodeKind,
)
from ._assignments import (
    LastAssignment,
    LastAssignmentFinder,
    find_last_assignment,
    find_last_value,
)
from ._config import DEFAULT_CONFIG, EvaluatorConfig
from ._evaluator import ConstantEvaluator, is_array_literal
from ._guards import references, surrounded_by_variable_check
from ._operators import apply_binary, apply_unary
from ._values import (
    FALSE,
    NULL,
    TRUE,
    UNKNOWN,
    Value,
    ValueKind,
    array_value,
    bool_value,
    byte_value,
    char_value,
    double_value,
    float_value,
    int_value,
    java_string,
    long_value,
    short_value,
    string_value,
)


def _resolve_config(config: EvaluatorConfig | None, flags: dict[str, Any]) -> EvaluatorConfig:
    config = config or DEFAULT_CONFIG
    return config.with_(**flags) if flags else config


def evaluate(
    adapter: ExpressionAdapter,
    node: Any,
    config: EvaluatorConfig | None = None,
    **flags: Any,
) -> Value:
    """Fold *node* to a ``Value``; ``UNKNOWN`` when it is not a constant.

    Keyword *flags* (``allow_partial=True``, ...) override fields of
    *config* for this call only.
    """
    return ConstantEvaluator(adapter).evaluate(node, _resolve_config(config, flags))


def evaluate_string(
    adapter: ExpressionAdapter,
    node: Any,
    config: EvaluatorConfig | None = None,
    **flags: Any,
) -> str | None:
    """Fold *node* and return it only if it is a String constant."""
    return ConstantEvaluator(adapter).evaluate_string(node, _resolve_config(config, flags))


__all__ = [
    # Evaluation
    "ConstantEvaluator",
    "evaluate",
    "evaluate_string",
    "is_array_literal",
    "apply_unary",
    "apply_binary",
    # Configuration
    "EvaluatorConfig",
    "DEFAULT_CONFIG",
    # Reaching values
    "LastAssignment",
    "LastAssignmentFinder",
    "find_last_assignment",
    "find_last_value",
    # Narrowing guard
    "references",
    "surrounded_by_variable_check",
    # Adapter
    "ExpressionAdapter",
    "IRAdapter",
    "NodeKind",
    "DeclarationKind",
    "ArrayParts",
    "CallParts",
    "ClassInfo",
    "AdapterError",
    # Values
    "Value",
    "ValueKind",
    "UNKNOWN",
    "NULL",
    "TRUE",
    "FALSE",
    "bool_value",
    "byte_value",
    "short_value",
    "char_value",
    "int_value",
    "long_value",
    "float_value",
    "double_value",
    "string_value",
    "array_value",
    "java_string",
]
