"""Resource classification layered on the constant evaluator.

``ResourceEvaluator`` answers two questions about an expression: which
resource does it name (``get_resource``) and which resource kinds can it
hold (``get_resource_kinds``). Both decode ``R.<kind>.<name>`` accesses
structurally, unwrap accessor calls, read resource annotations and
otherwise follow the reaching definition of variables.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from lintfold.evaluate import (
    DEFAULT_CONFIG,
    ConstantEvaluator,
    DeclarationKind,
    EvaluatorConfig,
    ExpressionAdapter,
    NodeKind,
    ValueKind,
    find_last_assignment,
)

from ._kinds import PLATFORM_PACKAGE, ResourceKind, ResourceReference, kinds_from_annotations

logger = logging.getLogger(__name__)

R_CLASSES = ("R", "R2")

ACCESSOR_CLASSES = frozenset({
    "android.content.res.Resources",
    "android.content.Context",
    "android.app.Fragment",
    "android.support.v4.app.Fragment",
    "androidx.fragment.app.Fragment",
    "android.content.res.TypedArray",
})

AnnotationLookup = Callable[[Any], list[str]]


# ---------------------------------------------------------------------------
# Structural decoding
# ---------------------------------------------------------------------------

def _outermost_reference(adapter: ExpressionAdapter, node: Any) -> Any:
    """Climb from ``string`` in ``R.string.name`` to the whole qualified reference."""
    current = node
    parent = adapter.parent(current)
    while parent is not None and adapter.node_kind(parent) == NodeKind.REFERENCE:
        if adapter.reference_parts(parent)[1] is not current:
            break
        current = parent
        parent = adapter.parent(current)
    return current


def _reference_from_path(adapter: ExpressionAdapter, node: Any) -> ResourceReference | None:
    path = adapter.reference_path(node)
    if path is None or len(path) < 3 or path[-3] != "R":
        return None
    kind = ResourceKind.from_name(path[-2])
    if kind is None:
        return None

    package = ".".join(path[:-3])
    declaration = adapter.resolve(node)
    if declaration is not None and adapter.declaration_kind(declaration) == DeclarationKind.FIELD:
        classes = adapter.containing_classes(declaration)
        if classes:
            qualified = classes[0].qualified_name
            index = qualified.rfind(".R.")
            if index >= 0:
                package = qualified[:index]
    return ResourceReference(
        kind=kind,
        name=path[-1],
        package=package,
        is_platform_namespace=package == PLATFORM_PACKAGE,
    )


def field_resource(adapter: ExpressionAdapter, field: Any) -> ResourceReference | None:
    """Decode a field declared as ``R.<kind>.<name>`` (or ``R2``).

    R fields are deliberately not required to be final: library R
    classes keep them mutable until the app merges resource ids.
    """
    if adapter.declaration_kind(field) != DeclarationKind.FIELD:
        return None
    if adapter.declared_kind(field) != ValueKind.INT or not adapter.is_static(field):
        return None
    classes = adapter.containing_classes(field)
    if len(classes) != 2:
        return None
    kind_class, r_class = classes
    if not kind_class.is_static or r_class.name not in R_CLASSES:
        return None
    package = adapter.package_of(field)
    if not package:
        return None
    kind = ResourceKind.from_name(kind_class.name)
    if kind is None:
        return None
    return ResourceReference(
        kind=kind,
        name=adapter.declaration_name(field),
        package=package,
        is_platform_namespace=package == PLATFORM_PACKAGE,
    )


def get_resource_constant(adapter: ExpressionAdapter, node: Any) -> ResourceReference | None:
    """Decode a reference to an R-class field without evaluating anything."""
    if node is None or adapter.node_kind(node) != NodeKind.REFERENCE:
        return None

    reference = _reference_from_path(adapter, node)
    if reference is not None:
        return reference

    declaration = adapter.resolve(node)
    if declaration is None:
        # Unresolvable R classes: try the qualified expression around the name.
        outer = _outermost_reference(adapter, node)
        if outer is not node:
            return _reference_from_path(adapter, outer)
        return None
    return field_resource(adapter, declaration)


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------

class ResourceEvaluator:
    """Classifies expressions by the resources they refer to.

    *annotation_lookup* returns the qualified annotation names that apply
    to a declaration (inherited ones included); it defaults to the
    annotations the adapter reports.
    """

    def __init__(
        self,
        adapter: ExpressionAdapter,
        annotation_lookup: AnnotationLookup | None = None,
    ) -> None:
        self.adapter = adapter
        self.annotation_lookup = annotation_lookup or adapter.annotations
        self._constants = ConstantEvaluator(adapter)

    # -- get_resource ------------------------------------------------------

    def get_resource(self, node: Any, config: EvaluatorConfig | None = None) -> ResourceReference | None:
        """The resource *node* names, or None."""
        return self._resource(node, config or DEFAULT_CONFIG, 0)

    def _resource(self, node: Any, config: EvaluatorConfig, depth: int) -> ResourceReference | None:
        if node is None:
            return None
        if depth >= config.max_depth:
            logger.debug("resource lookup depth cap %d reached", config.max_depth)
            return None
        adapter = self.adapter
        kind = adapter.node_kind(node)

        if kind == NodeKind.CONDITIONAL:
            branch = self._live_branch(node, config)
            if branch is None:
                return None
            return self._resource(branch, config, depth + 1)

        if kind == NodeKind.PARENTHESIZED:
            return self._resource(adapter.inner(node), config, depth + 1)

        if kind == NodeKind.CALL:
            if not config.allow_dereference:
                return None
            argument = self._accessor_argument(node)
            if argument is None:
                return None
            return self._resource(argument, config, depth + 1)

        if kind == NodeKind.REFERENCE:
            reference = get_resource_constant(adapter, node)
            if reference is not None:
                return reference
            last = self._definition(node)
            if last is not None:
                return self._resource(last, config, depth + 1)

        return None

    # -- get_resource_kinds ------------------------------------------------

    def get_resource_kinds(
        self, node: Any, config: EvaluatorConfig | None = None
    ) -> frozenset[ResourceKind] | None:
        """The resource kinds *node* may hold, or None if nothing is known."""
        return self._kinds(node, config or DEFAULT_CONFIG, 0)

    def _kinds(self, node: Any, config: EvaluatorConfig, depth: int) -> frozenset[ResourceKind] | None:
        if node is None:
            return None
        if depth >= config.max_depth:
            logger.debug("resource kind lookup depth cap %d reached", config.max_depth)
            return None
        adapter = self.adapter
        kind = adapter.node_kind(node)

        if kind == NodeKind.CONDITIONAL:
            condition, then_branch, else_branch = adapter.conditional_parts(node)
            known = self._constants.evaluate(condition, config)
            if known.is_boolean:
                return self._kinds(then_branch if known.data else else_branch, config, depth + 1)
            left = self._kinds(then_branch, config, depth + 1)
            right = self._kinds(else_branch, config, depth + 1)
            if left is None:
                return right
            if right is None:
                return left
            return left | right

        if kind == NodeKind.PARENTHESIZED:
            return self._kinds(adapter.inner(node), config, depth + 1)

        if kind == NodeKind.CALL:
            method = adapter.resolve(node)
            if method is None:
                return None
            return kinds_from_annotations(self.annotation_lookup(method))

        if kind == NodeKind.REFERENCE:
            reference = get_resource_constant(adapter, node)
            if reference is not None:
                return frozenset({reference.kind})
            declaration = adapter.resolve(node)
            if declaration is None:
                return None
            kinds = kinds_from_annotations(self.annotation_lookup(declaration))
            if kinds:
                return kinds
            last = self._definition(node)
            if last is not None:
                return self._kinds(last, config, depth + 1)

        return None

    # -- helpers -----------------------------------------------------------

    def _live_branch(self, node: Any, config: EvaluatorConfig) -> Any | None:
        condition, then_branch, else_branch = self.adapter.conditional_parts(node)
        known = self._constants.evaluate(condition, config)
        if not known.is_boolean:
            return None
        return then_branch if known.data else else_branch

    def _accessor_argument(self, node: Any) -> Any | None:
        parts = self.adapter.call_parts(node)
        if parts.declaring_class not in ACCESSOR_CLASSES:
            return None
        if not parts.method_name.startswith("get") or not parts.args:
            return None
        return parts.args[0]

    def _definition(self, node: Any) -> Any | None:
        declaration = self.adapter.resolve(node)
        if declaration is None:
            return None
        if self.adapter.declaration_kind(declaration) == DeclarationKind.METHOD:
            return None
        return find_last_assignment(self.adapter, declaration, node)
