"""
Static vocabularies and tunables for a cleaning run.

Everything here is immutable and built once at import. The cleaning passes
receive these objects explicitly (through CleanOptions) instead of reaching
for module globals, so a caller can run with a customised table set.
"""

import enum
from dataclasses import dataclass, field
from types import MappingProxyType

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"
XLINK_HREF = f"{{{XLINK_NS}}}href"


class RoundType(enum.Enum):
    COORDINATE = "coordinate"
    TRANSFORM = "transform"
    ATTRIBUTE = "attribute"


@dataclass(frozen=True)
class Precision:
    """Decimal digits kept per RoundType."""
    coordinate: int = 3
    transform: int = 5
    attribute: int = 4

    def __post_init__(self):
        for name in ("coordinate", "transform", "attribute"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} precision must be >= 0")

    def digits(self, kind: RoundType) -> int:
        return getattr(self, kind.value)


DEFAULT_PRECISION = Precision()


def _frozen(mapping):
    return MappingProxyType(dict(mapping))


# Stored in canonical form (see style.trim_color) so they compare directly
# against normalized values.
DEFAULT_STYLE_VALUES = _frozen({
    "alignment-baseline": "auto",
    "baseline-shift": "baseline",
    "clip": "auto",
    "clip-path": "none",
    "clip-rule": "nonzero",
    "color-interpolation": "sRGB",
    "color-interpolation-filters": "linearRGB",
    "color-profile": "auto",
    "color-rendering": "auto",
    "cursor": "auto",
    "direction": "ltr",
    "display": "inline",
    "dominant-baseline": "auto",
    "enable-background": "accumulate",
    "fill": "#000",
    "fill-opacity": "1",
    "fill-rule": "nonzero",
    "filter": "none",
    "flood-color": "#000",
    "flood-opacity": "1",
    "font-size-adjust": "none",
    "font-size": "medium",
    "font-stretch": "normal",
    "font-style": "normal",
    "font-variant": "normal",
    "font-weight": "normal",
    "glyph-orientation-horizontal": "0deg",
    "glyph-orientation-vertical": "auto",
    "image-rendering": "auto",
    "kerning": "auto",
    "letter-spacing": "normal",
    "lighting-color": "#fff",
    "marker-start": "none",
    "marker-mid": "none",
    "marker-end": "none",
    "mask": "none",
    "opacity": "1",
    "overflow": "visible",
    "pointer-events": "visiblePainted",
    "shape-rendering": "auto",
    "stop-color": "#000",
    "stop-opacity": "1",
    "stroke": "none",
    "stroke-dasharray": "none",
    "stroke-dashoffset": "0",
    "stroke-linecap": "butt",
    "stroke-linejoin": "miter",
    "stroke-miterlimit": "4",
    "stroke-opacity": "1",
    "stroke-width": "1",
    "text-anchor": "start",
    "text-decoration": "none",
    "text-rendering": "auto",
    "unicode-bidi": "normal",
    "visibility": "visible",
    "word-spacing": "normal",
    "writing-mode": "lr-tb",
})

# Per-tag defaults that replace the global one (user agent stylesheet).
TAG_DEFAULT_OVERRIDES = _frozen({
    "svg": _frozen({"overflow": "hidden"}),
    "symbol": _frozen({"overflow": "hidden"}),
    "marker": _frozen({"overflow": "hidden"}),
    "pattern": _frozen({"overflow": "hidden"}),
    "image": _frozen({"overflow": "hidden"}),
    "foreignObject": _frozen({"overflow": "hidden"}),
})

REQUIRED_PROPERTIES = _frozen({
    "stop": frozenset({"stop-color"}),
})

INHERITED_PROPERTIES = frozenset({
    "clip-rule", "color", "color-interpolation", "color-interpolation-filters",
    "color-profile", "color-rendering", "cursor", "direction", "fill",
    "fill-opacity", "fill-rule", "font-family", "font-size", "font-size-adjust",
    "font-stretch", "font-style", "font-variant", "font-weight",
    "glyph-orientation-horizontal", "glyph-orientation-vertical",
    "image-rendering", "kerning", "letter-spacing", "marker-start", "marker-mid",
    "marker-end", "pointer-events", "shape-rendering", "stroke",
    "stroke-dasharray", "stroke-dashoffset", "stroke-linecap", "stroke-linejoin",
    "stroke-miterlimit", "stroke-opacity", "stroke-width", "text-anchor",
    "text-rendering", "visibility", "word-spacing", "writing-mode",
})

PRESENTATION_ATTRIBUTES = frozenset(DEFAULT_STYLE_VALUES) | frozenset({
    "color", "font-family",
})

LINKABLE_STYLE_PROPERTIES = (
    "clip-path", "fill", "mask", "filter", "stroke",
    "marker-start", "marker-mid", "marker-end",
)

COLOR_PROPERTIES = frozenset({
    "fill", "stroke", "stop-color", "flood-color", "lighting-color", "color",
})

# Plain numbers vs. lengths that may carry a unit.
NUMBER_PROPERTIES = frozenset({
    "opacity", "fill-opacity", "stroke-opacity", "stop-opacity",
    "flood-opacity", "stroke-miterlimit",
})
LENGTH_PROPERTIES = frozenset({
    "stroke-width", "stroke-dashoffset", "font-size", "letter-spacing",
    "word-spacing", "kerning",
})

FONT_PROPERTIES = frozenset({
    "font", "font-family", "font-weight", "font-size", "font-size-adjust",
    "font-stretch", "font-style", "font-variant", "line-height",
    "letter-spacing", "word-spacing", "text-anchor", "text-decoration",
    "kerning", "writing-mode", "dominant-baseline", "alignment-baseline",
    "baseline-shift", "direction",
})

TEXT_ELEMENTS = frozenset({
    "text", "tspan", "flowRoot", "flowPara", "flowSpan", "textPath", "tref",
})

ELEMENTS_USING_XLINK = frozenset({
    "a", "altGlyph", "color-profile", "cursor", "feImage", "filter",
    "font-face-uri", "glyphRef", "image", "linearGradient", "mpath", "pattern",
    "radialGradient", "script", "textPath", "use", "animate", "animateColor",
    "animateMotion", "animateTransform", "set", "tref",
})

# Never rendered on their own; only kept while something references them.
DEFINITION_ELEMENTS = frozenset({
    "altGlyphDef", "clipPath", "cursor", "filter", "linearGradient", "marker",
    "mask", "pattern", "radialGradient", "symbol",
})
DEFINITION_CONTAINERS = frozenset({"defs"})

# Children of <defs> that are used without an id reference.
NEVER_PRUNED = frozenset({
    "style", "script", "font", "font-face", "color-profile",
})

GRADIENT_ELEMENTS = frozenset({"linearGradient", "radialGradient"})


@dataclass(frozen=True)
class StyleTables:
    defaults: MappingProxyType = field(default_factory=lambda: DEFAULT_STYLE_VALUES)
    tag_defaults: MappingProxyType = field(default_factory=lambda: TAG_DEFAULT_OVERRIDES)
    required: MappingProxyType = field(default_factory=lambda: REQUIRED_PROPERTIES)
    inherited: frozenset = INHERITED_PROPERTIES
    presentation: frozenset = PRESENTATION_ATTRIBUTES
    linkable: tuple = LINKABLE_STYLE_PROPERTIES
    colors: frozenset = COLOR_PROPERTIES
    numbers: frozenset = NUMBER_PROPERTIES
    lengths: frozenset = LENGTH_PROPERTIES
    fonts: frozenset = FONT_PROPERTIES
    text_elements: frozenset = TEXT_ELEMENTS
    xlink_elements: frozenset = ELEMENTS_USING_XLINK
    definitions: frozenset = DEFINITION_ELEMENTS
    definition_containers: frozenset = DEFINITION_CONTAINERS
    never_pruned: frozenset = NEVER_PRUNED
    gradients: frozenset = GRADIENT_ELEMENTS

    def default_for(self, tag: str, prop: str):
        """Per-tag override first, then the global table; None if neither."""
        override = self.tag_defaults.get(tag)
        if override is not None and prop in override:
            return override[prop]
        return self.defaults.get(prop)

    def required_for(self, tag: str) -> frozenset:
        return self.required.get(tag, frozenset())


DEFAULT_TABLES = StyleTables()


@dataclass(frozen=True)
class CleanOptions:
    precision: Precision = DEFAULT_PRECISION
    tables: StyleTables = DEFAULT_TABLES
    aggressive: bool = False
    remove_unused_defs: bool = True
    remove_unreferenced_ids: bool = True
    merge_gradients: bool = True
    annotate_geometry: bool = True
    keep_editor_data: bool = False
