"""Resource kinds, resource references and the annotation table."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

PLATFORM_PACKAGE = "android"


class ResourceKind(str, Enum):
    """A resource type, named like its nested class in ``R``.

    ``COLOR_INT`` and ``DIMENSION`` are markers for ``@ColorInt`` and
    ``@Px``/``@Dimension`` values; they never appear in an R class.
    """

    ANIM = "anim"
    ANIMATOR = "animator"
    ARRAY = "array"
    ATTR = "attr"
    BOOL = "bool"
    COLOR = "color"
    DIMEN = "dimen"
    DRAWABLE = "drawable"
    FONT = "font"
    FRACTION = "fraction"
    ID = "id"
    INTEGER = "integer"
    INTERPOLATOR = "interpolator"
    LAYOUT = "layout"
    MENU = "menu"
    MIPMAP = "mipmap"
    NAVIGATION = "navigation"
    PLURALS = "plurals"
    RAW = "raw"
    STRING = "string"
    STYLE = "style"
    STYLEABLE = "styleable"
    TRANSITION = "transition"
    XML = "xml"

    COLOR_INT = "<color-int>"
    DIMENSION = "<dimension>"

    @property
    def is_marker(self) -> bool:
        return self in (ResourceKind.COLOR_INT, ResourceKind.DIMENSION)

    @classmethod
    def from_name(cls, name: str) -> ResourceKind | None:
        """The kind whose R class is called *name*, or None."""
        try:
            kind = cls(name)
        except ValueError:
            return None
        return None if kind.is_marker else kind


ANY_RESOURCE = frozenset(k for k in ResourceKind if not k.is_marker)


class ResourceReference(BaseModel):
    """A symbolic resource identifier such as ``R.string.app_name``."""

    model_config = ConfigDict(frozen=True)

    kind: ResourceKind
    name: str
    package: str = ""
    is_platform_namespace: bool = False

    @property
    def url(self) -> str:
        prefix = "@android:" if self.is_platform_namespace else "@"
        return f"{prefix}{self.kind.value}/{self.name}"

    def __str__(self) -> str:
        return self.url


# ---------------------------------------------------------------------------
# Annotations
# ---------------------------------------------------------------------------

ANNOTATION_PACKAGES = ("android.support.annotation.", "androidx.annotation.")

_RES_ANNOTATIONS = {
    "AnimatorRes": ResourceKind.ANIMATOR,
    "AnimRes": ResourceKind.ANIM,
    "ArrayRes": ResourceKind.ARRAY,
    "AttrRes": ResourceKind.ATTR,
    "BoolRes": ResourceKind.BOOL,
    "ColorRes": ResourceKind.COLOR,
    "DimenRes": ResourceKind.DIMEN,
    "DrawableRes": ResourceKind.DRAWABLE,
    "FontRes": ResourceKind.FONT,
    "FractionRes": ResourceKind.FRACTION,
    "IdRes": ResourceKind.ID,
    "IntegerRes": ResourceKind.INTEGER,
    "InterpolatorRes": ResourceKind.INTERPOLATOR,
    "LayoutRes": ResourceKind.LAYOUT,
    "MenuRes": ResourceKind.MENU,
    "PluralsRes": ResourceKind.PLURALS,
    "RawRes": ResourceKind.RAW,
    "StringRes": ResourceKind.STRING,
    "StyleableRes": ResourceKind.STYLEABLE,
    "StyleRes": ResourceKind.STYLE,
    "TransitionRes": ResourceKind.TRANSITION,
    "XmlRes": ResourceKind.XML,
}

ANNOTATION_KINDS: dict[str, ResourceKind] = {
    prefix + name: kind
    for prefix in ANNOTATION_PACKAGES
    for name, kind in _RES_ANNOTATIONS.items()
}

COLOR_INT_ANNOTATIONS = frozenset(p + "ColorInt" for p in ANNOTATION_PACKAGES)
DIMENSION_ANNOTATIONS = frozenset(
    p + name for p in ANNOTATION_PACKAGES for name in ("Px", "Dimension")
)
ANY_RES_ANNOTATIONS = frozenset(p + "AnyRes" for p in ANNOTATION_PACKAGES)


def kind_from_annotation(qualified_name: str) -> ResourceKind | None:
    """Map one ``@XxxRes`` annotation to its kind."""
    return ANNOTATION_KINDS.get(qualified_name)


def kinds_from_annotations(annotations: list[str]) -> frozenset[ResourceKind] | None:
    """Resource kinds implied by a declaration's annotations.

    ``@ColorInt``, ``@Px``/``@Dimension`` and ``@AnyRes`` decide the
    answer on their own as soon as they are met. Returns None when no
    annotation is recognized.
    """
    kinds: set[ResourceKind] = set()
    for name in annotations:
        if name in COLOR_INT_ANNOTATIONS:
            return frozenset({ResourceKind.COLOR_INT})
        if name in DIMENSION_ANNOTATIONS:
            return frozenset({ResourceKind.DIMENSION})
        if name in ANY_RES_ANNOTATIONS:
            return ANY_RESOURCE
        kind = kind_from_annotation(name)
        if kind is not None:
            kinds.add(kind)
    return frozenset(kinds) if kinds else None
