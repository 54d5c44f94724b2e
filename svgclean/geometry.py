"""
Geometry annotator: effective transforms and local bounding boxes.

Matrices are 6-tuples ``(a, b, c, d, e, f)``::

    | a  c  e |
    | b  d  f |
    | 0  0  1 |

Annotation never touches attributes; results live in a mapping keyed by
element and are thrown away with the run.
"""

import logging
import math
import re
from typing import NamedTuple, Optional

from svgpathtools import parse_path

from .config import RoundType
from .dom import iter_elements, label, tag_of
from .errors import CleanError, MalformedNumber
from .numeric import format_number, is_zero, parse_length, parse_number_list

logger = logging.getLogger(__name__)

IDENTITY = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)

TRANSFORM_RE = re.compile(r"\s*,?\s*(matrix|translate|scale|rotate|skewX|skewY)\s*\(([^)]*)\)\s*")
TRANSFORM_ARITY = {
    "matrix": (6,),
    "translate": (1, 2),
    "scale": (1, 2),
    "rotate": (1, 3),
    "skewX": (1,),
    "skewY": (1,),
}

SHAPE_ELEMENTS = frozenset({
    "rect", "circle", "ellipse", "line", "polyline", "polygon", "path",
    "image", "foreignObject",
})
GROUPING_ELEMENTS = frozenset({"g", "svg", "a", "switch", "symbol"})

# --- matrix math ---------------------------------------------------------------

def multiply(m1, m2):
    """Return m1 x m2 (m2 applied first, then m1)."""
    a1, b1, c1, d1, e1, f1 = m1
    a2, b2, c2, d2, e2, f2 = m2
    return (
        a1 * a2 + c1 * b2,
        b1 * a2 + d1 * b2,
        a1 * c2 + c1 * d2,
        b1 * c2 + d1 * d2,
        a1 * e2 + c1 * f2 + e1,
        b1 * e2 + d1 * f2 + f1,
    )


def transform_point(m, x: float, y: float):
    a, b, c, d, e, f = m
    return a * x + c * y + e, b * x + d * y + f


def is_identity(m, precision=None) -> bool:
    return all(is_zero(v - i, RoundType.TRANSFORM, precision) for v, i in zip(m, IDENTITY))


def _function_matrix(name: str, args):
    if name == "matrix":
        return tuple(args)
    if name == "translate":
        return (1.0, 0.0, 0.0, 1.0, args[0], args[1] if len(args) > 1 else 0.0)
    if name == "scale":
        sx = args[0]
        return (sx, 0.0, 0.0, args[1] if len(args) > 1 else sx, 0.0, 0.0)
    if name == "rotate":
        rad = math.radians(args[0])
        cos_a, sin_a = math.cos(rad), math.sin(rad)
        m = (cos_a, sin_a, -sin_a, cos_a, 0.0, 0.0)
        if len(args) == 3:
            cx, cy = args[1], args[2]
            m = multiply(multiply((1.0, 0.0, 0.0, 1.0, cx, cy), m), (1.0, 0.0, 0.0, 1.0, -cx, -cy))
        return m
    if name == "skewX":
        return (1.0, 0.0, math.tan(math.radians(args[0])), 1.0, 0.0, 0.0)
    return (1.0, math.tan(math.radians(args[0])), 0.0, 1.0, 0.0, 0.0)


def parse_transform(text: str):
    """Compose a transform list (``translate(10) rotate(45 5 5)``) into one matrix."""
    result = IDENTITY
    pos = 0
    text = text or ""
    while pos < len(text.rstrip()):
        m = TRANSFORM_RE.match(text, pos)
        if not m:
            raise MalformedNumber(text, pos)
        args = parse_number_list(m.group(2))
        if len(args) not in TRANSFORM_ARITY[m.group(1)]:
            raise MalformedNumber(text, m.start(2))
        result = multiply(result, _function_matrix(m.group(1), args))
        pos = m.end()
    return result


def format_transform(m, precision=None) -> str:
    """Shortest transform text for ``m``; empty for the identity."""
    if is_identity(m, precision):
        return ""

    def fmt(*values):
        return " ".join(format_number(v, RoundType.TRANSFORM, precision) for v in values)

    a, b, c, d, e, f = m
    linear_identity = all(is_zero(v - i, RoundType.TRANSFORM, precision)
                          for v, i in zip((a, b, c, d), IDENTITY))
    no_shear = is_zero(b, RoundType.TRANSFORM, precision) and is_zero(c, RoundType.TRANSFORM, precision)
    no_move = is_zero(e, RoundType.TRANSFORM, precision) and is_zero(f, RoundType.TRANSFORM, precision)
    if linear_identity:
        if is_zero(f, RoundType.TRANSFORM, precision):
            return f"translate({fmt(e)})"
        return f"translate({fmt(e, f)})"
    if no_shear and no_move:
        if format_number(a, RoundType.TRANSFORM, precision) == format_number(d, RoundType.TRANSFORM, precision):
            return f"scale({fmt(a)})"
        return f"scale({fmt(a, d)})"
    return f"matrix({fmt(a, b, c, d, e, f)})"

# --- boxes ---------------------------------------------------------------------

class BoundingBox(NamedTuple):
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_points(cls, points):
        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        return cls(min(xs), min(ys), max(xs) - min(xs), max(ys) - min(ys))

    def corners(self):
        x2, y2 = self.x + self.width, self.y + self.height
        return [(self.x, self.y), (x2, self.y), (x2, y2), (self.x, y2)]

    def union(self, other: "BoundingBox") -> "BoundingBox":
        return BoundingBox.from_points(self.corners() + other.corners())

    def transformed(self, m) -> "BoundingBox":
        return BoundingBox.from_points([transform_point(m, x, y) for x, y in self.corners()])


class Annotation(NamedTuple):
    bbox: Optional[BoundingBox]
    transform: tuple


class Viewport(NamedTuple):
    width: float
    height: float

    @property
    def diagonal(self) -> float:
        return math.sqrt((self.width ** 2 + self.height ** 2) / 2.0)


def viewport_of(root) -> Viewport:
    view_box = root.get("viewBox")
    if view_box:
        try:
            values = parse_number_list(view_box)
        except CleanError:
            values = []
        if len(values) == 4:
            return Viewport(values[2], values[3])
    try:
        return Viewport(parse_length(root.get("width", "100%"), 0) or 0.0,
                        parse_length(root.get("height", "100%"), 0) or 0.0)
    except CleanError:
        return Viewport(0.0, 0.0)


def _length(elem, name: str, base: float, default: float = 0.0) -> float:
    raw = elem.get(name)
    if raw is None:
        return default
    return parse_length(raw, base)


def _shape_box(elem, viewport: Viewport):
    tag = tag_of(elem)
    vw, vh, vd = viewport.width, viewport.height, viewport.diagonal
    if tag in ("rect", "image", "foreignObject"):
        w, h = _length(elem, "width", vw), _length(elem, "height", vh)
        if w <= 0 or h <= 0:
            return None
        return BoundingBox(_length(elem, "x", vw), _length(elem, "y", vh), w, h)
    if tag == "circle":
        r = _length(elem, "r", vd)
        if r <= 0:
            return None
        cx, cy = _length(elem, "cx", vw), _length(elem, "cy", vh)
        return BoundingBox(cx - r, cy - r, 2 * r, 2 * r)
    if tag == "ellipse":
        rx, ry = _length(elem, "rx", vw), _length(elem, "ry", vh)
        if rx <= 0 or ry <= 0:
            return None
        cx, cy = _length(elem, "cx", vw), _length(elem, "cy", vh)
        return BoundingBox(cx - rx, cy - ry, 2 * rx, 2 * ry)
    if tag == "line":
        return BoundingBox.from_points([
            (_length(elem, "x1", vw), _length(elem, "y1", vh)),
            (_length(elem, "x2", vw), _length(elem, "y2", vh)),
        ])
    if tag in ("polyline", "polygon"):
        values = parse_number_list(elem.get("points", ""))
        if len(values) < 2:
            return None
        return BoundingBox.from_points(list(zip(values[0::2], values[1::2])))
    if tag == "path":
        d = elem.get("d", "").strip()
        if not d:
            return None
        try:
            path = parse_path(d)
            if len(path) == 0:
                return None
            xmin, xmax, ymin, ymax = path.bbox()
        # svgpathtools asserts on zero-length arcs and fails on a bare "Z"
        except (ValueError, IndexError, AssertionError, AttributeError, ZeroDivisionError) as exc:
            raise MalformedNumber(d) from exc
        return BoundingBox(xmin, ymin, xmax - xmin, ymax - ymin)
    return None


def local_transform(elem):
    return parse_transform(elem.get("transform", ""))


def compute_effective_transform(elem, parent_transform=IDENTITY):
    """Compose ``elem``'s own transform under its parent's effective one."""
    return multiply(parent_transform, local_transform(elem))


def compute_bounding_box(elem, child_boxes=None, viewport=None):
    """Local box of ``elem``, or None for elements without geometry.

    Containers union ``child_boxes`` (a mapping child -> box in the child's
    own coordinates) after mapping each through the child's transform.
    """
    tag = tag_of(elem)
    if tag in SHAPE_ELEMENTS:
        return _shape_box(elem, viewport or viewport_of(elem.getroottree().getroot()))
    if tag not in GROUPING_ELEMENTS:
        return None
    child_boxes = child_boxes or {}
    box = None
    for child in elem:
        child_box = child_boxes.get(child)
        if child_box is None:
            continue
        try:
            child_box = child_box.transformed(local_transform(child))
        except CleanError:
            continue
        box = child_box if box is None else box.union(child_box)
    return box


def annotate(root, options=None, failures=None) -> dict:
    """Attach an Annotation to every element of ``root``.

    Effective transforms are computed top-down, boxes bottom-up. Elements
    whose geometry cannot be read get no box; a malformed transform counts
    as identity for the subtree and is reported through ``failures``.
    """
    viewport = viewport_of(root)

    order = []
    transforms = {}
    for elem in iter_elements(root):
        parent = elem.getparent()
        parent_ts = transforms.get(parent, IDENTITY)
        try:
            ts = compute_effective_transform(elem, parent_ts)
        except CleanError as exc:
            logger.debug("%s: unreadable transform (%s)", label(elem), exc)
            if failures is not None:
                failures.append((label(elem), "transform", exc))
            ts = parent_ts
        transforms[elem] = ts
        order.append(elem)

    boxes = {}
    for elem in reversed(order):
        try:
            box = compute_bounding_box(elem, boxes, viewport)
        except CleanError as exc:
            logger.debug("%s: no bounding box (%s)", label(elem), exc)
            if failures is not None:
                failures.append((label(elem), "geometry", exc))
            box = None
        if box is not None:
            boxes[elem] = box

    logger.debug("annotated %d element(s), %d with a box", len(order), len(boxes))
    return {elem: Annotation(boxes.get(elem), transforms[elem]) for elem in order}
