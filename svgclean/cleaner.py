"""
Cleaning pipeline over a parsed lxml tree.

The passes run in a fixed order: root/namespace fixes and editor cruft,
style canonicalization, gradient merging, unused definition pruning, id
trimming, numeric rounding, then geometry annotation of what is left.
"""

import logging
from dataclasses import dataclass, field

from lxml import etree as ET

from .config import CleanOptions, RoundType, SVG_NS, XLINK_NS
from .dom import iter_elements, label, localname, tag_of
from .errors import CleanError
from .geometry import annotate, format_transform, parse_transform
from .gradients import merge_gradients
from .numeric import (
    format_number, parse_length, parse_number, round_numbers_in_string, round_path_data, UNIT_FACTORS,
)
from .refs import build_graph, compute_usage, prune_unused, remove_unreferenced_ids
from .style import canonicalize_styles

logger = logging.getLogger(__name__)

STRIP_ATTR_PREFIXES = (
    "{http://www.inkscape.org/namespaces/inkscape}",
    "{http://sodipodi.sourceforge.net/DTD/sodipodi-0.dtd}",
)
STRIP_ELEMENT_NAMESPACES = (
    "http://www.inkscape.org/namespaces/inkscape",
    "http://sodipodi.sourceforge.net/DTD/sodipodi-0.dtd",
)

# Single lengths in user space
COORDINATE_ATTRS = {
    "x", "y", "x1", "y1", "x2", "y2", "dx", "dy",
    "width", "height", "r", "rx", "ry", "cx", "cy", "fx", "fy",
}
# Number lists in user space; path data has its own reader
COORDINATE_LIST_ATTRS = {"points", "viewBox"}
TRANSFORM_ATTRS = {"transform", "gradientTransform", "patternTransform"}
# Everything else numeric gets the attribute budget
ATTRIBUTE_ATTRS = {
    "offset", "pathLength", "startOffset", "rotate",
    "stdDeviation", "baseFrequency", "k", "k1", "k2", "k3", "k4",
    "specularConstant", "specularExponent", "diffuseConstant", "surfaceScale",
    "scale", "radius", "azimuth", "elevation", "limitingConeAngle",
    "tableValues", "kernelMatrix", "divisor", "bias",
}

# Geometry attributes whose value 0 is the initial one.
ZERO_DEFAULT_ATTRS = {
    "rect": ("x", "y"),
    "image": ("x", "y"),
    "use": ("x", "y"),
    "circle": ("cx", "cy"),
    "ellipse": ("cx", "cy"),
    "line": ("x1", "y1", "x2", "y2"),
}


@dataclass
class CleanReport:
    removed_definitions: list = field(default_factory=list)
    merged_gradients: list = field(default_factory=list)
    removed_ids: list = field(default_factory=list)
    dangling: list = field(default_factory=list)
    cycles: list = field(default_factory=list)
    failed_attributes: list = field(default_factory=list)
    annotations: dict = field(default_factory=dict)

    def summary(self) -> str:
        return (
            f"{len(self.removed_definitions)} unused definition(s), "
            f"{len(self.merged_gradients)} merged gradient(s), "
            f"{len(self.removed_ids)} id(s) removed; "
            f"{len(self.dangling)} dangling reference(s), "
            f"{len(self.failed_attributes)} value(s) left as-is"
        )

# --- cleaning passes ----------------------------------------------------------

def normalize_root(root):
    # Ensure root is in the SVG namespace (but DON'T set xmlns manually).
    if localname(root.tag) == "svg":
        if not (isinstance(root.tag, str) and root.tag.startswith("{")):
            root.tag = f"{{{SVG_NS}}}svg"
        else:
            ns = root.tag.split("}", 1)[0][1:]
            if ns != SVG_NS:
                root.tag = f"{{{SVG_NS}}}svg"

    # Register non-empty prefix; cleanup will keep/remove as needed.
    ET.register_namespace("xlink", XLINK_NS)

    # Let lxml calculate the correct namespace declarations.
    ET.cleanup_namespaces(root)


def remove_metadata_and_comments(root, keep_editor_data: bool = False):
    # Drop <metadata> blocks and editor-only elements (sodipodi:namedview, ...)
    for el in list(iter_elements(root)):
        if el is root or el.getparent() is None:
            continue
        if tag_of(el) == "metadata" or (not keep_editor_data and el.tag.startswith(
                tuple(f"{{{ns}}}" for ns in STRIP_ELEMENT_NAMESPACES))):
            el.getparent().remove(el)
    # Drop comments anywhere
    for el in root.xpath("//comment()"):
        parent = el.getparent()
        if parent is not None:
            parent.remove(el)


def strip_editor_attrs(elem):
    to_delete = []
    for attr in elem.attrib:
        if any(attr.startswith(p) for p in STRIP_ATTR_PREFIXES):
            to_delete.append(attr)
            continue
        if localname(attr).startswith("data-"):
            to_delete.append(attr)
    for a in to_delete:
        elem.attrib.pop(a, None)


def _round_length(elem, value: str, precision) -> str:
    """Absolute lengths become plain user units; relative ones keep their unit."""
    stripped = value.strip()
    _, cursor = parse_number(stripped, 0)
    unit = stripped[cursor:].strip().lower()
    if elem.getparent() is not None and (not unit or unit in UNIT_FACTORS):
        return format_number(parse_length(stripped), RoundType.COORDINATE, precision)
    return round_numbers_in_string(stripped, RoundType.COORDINATE, precision)


def _round_transform(value: str, precision) -> str:
    rounded = round_numbers_in_string(value.strip(), RoundType.TRANSFORM, precision)
    shortest = format_transform(parse_transform(value), precision)
    return shortest if len(shortest) < len(rounded) else rounded


def round_numeric_attributes(elem, precision, failures=None):
    for attr, val in list(elem.attrib.items()):
        lname = localname(attr)
        if attr != lname and not attr.startswith(f"{{{SVG_NS}}}"):
            continue
        try:
            if lname == "d":
                new = round_path_data(val, RoundType.COORDINATE, precision)
            elif lname in COORDINATE_LIST_ATTRS:
                new = round_numbers_in_string(val, RoundType.COORDINATE, precision)
            elif lname in COORDINATE_ATTRS:
                new = _round_length(elem, val, precision)
            elif lname in TRANSFORM_ATTRS:
                new = _round_transform(val, precision)
            elif lname in ATTRIBUTE_ATTRS:
                new = round_numbers_in_string(val, RoundType.ATTRIBUTE, precision)
            else:
                continue
        except CleanError as exc:
            logger.debug("%s: keeping raw %s=%r (%s)", label(elem), lname, val, exc)
            if failures is not None:
                failures.append((label(elem), lname, exc))
            continue
        if new:
            elem.set(attr, new)
        else:
            del elem.attrib[attr]

    for name in ZERO_DEFAULT_ATTRS.get(tag_of(elem), ()):
        if elem.get(name) == "0":
            del elem.attrib[name]


def clean_svg_tree(tree, options: CleanOptions = None) -> CleanReport:
    """Clean ``tree`` in place and report what was changed or left alone."""
    options = options or CleanOptions()
    tables = options.tables
    report = CleanReport()
    root = tree.getroot()

    normalize_root(root)
    remove_metadata_and_comments(root, options.keep_editor_data)
    if not options.keep_editor_data:
        for elem in iter_elements(root):
            strip_editor_attrs(elem)

    styles = canonicalize_styles(root, options, report.failed_attributes)

    if options.merge_gradients:
        report.merged_gradients = merge_gradients(root, tables)

    graph = build_graph(root, tables, styles)
    report.dangling = list(graph.dangling)
    for ref in report.dangling:
        logger.warning("%s references missing id %r", ref.source, ref.target)
    usage = compute_usage(root, graph, tables)
    report.cycles = list(usage.cycles)

    if options.remove_unused_defs:
        report.removed_definitions = prune_unused(root, usage.used, tables)
        if report.removed_definitions:
            graph = build_graph(root, tables)

    has_sheet_or_script = any(tag_of(el) in ("style", "script") for el in iter_elements(root))
    if options.remove_unreferenced_ids and not has_sheet_or_script:
        report.removed_ids = remove_unreferenced_ids(root, graph)

    for elem in iter_elements(root):
        round_numeric_attributes(elem, options.precision, report.failed_attributes)

    ET.cleanup_namespaces(root)

    if options.annotate_geometry:
        report.annotations = annotate(root, options, report.failed_attributes)
    return report
