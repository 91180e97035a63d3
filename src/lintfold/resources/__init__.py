"""lintfold resource classification.

Entry point::

    from lintfold.evaluate import IRAdapter
    from lintfold.resources import ResourceEvaluator

    resources = ResourceEvaluator(IRAdapter(unit))
    ref = resources.get_resource(node)        # ResourceReference or None
    kinds = resources.get_resource_kinds(node)  # frozenset[ResourceKind] or None
"""

from ._evaluator import (
    ACCESSOR_CLASSES,
    R_CLASSES,
    ResourceEvaluator,
    field_resource,
    get_resource_constant,
)
from ._kinds import (
    ANNOTATION_KINDS,
    ANY_RESOURCE,
    PLATFORM_PACKAGE,
    ResourceKind,
    ResourceReference,
    kind_from_annotation,
    kinds_from_annotations,
)

__all__ = [
    "ResourceEvaluator",
    "ResourceKind",
    "ResourceReference",
    "get_resource_constant",
    "field_resource",
    "kind_from_annotation",
    "kinds_from_annotations",
    "ANNOTATION_KINDS",
    "ANY_RESOURCE",
    "ACCESSOR_CLASSES",
    "R_CLASSES",
    "PLATFORM_PACKAGE",
]
