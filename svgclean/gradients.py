"""Fold single-use gradient link chains into the gradient that uses them."""

import logging

from .dom import get_href, href_attr, iter_elements, label, tag_of
from .refs import HASH_REF_RE, build_graph

logger = logging.getLogger(__name__)

LG_ATTRIBUTES = (
    "gradientUnits", "spreadMethod", "gradientTransform", "x1", "y1", "x2", "y2",
)
RG_ATTRIBUTES = (
    "gradientUnits", "spreadMethod", "gradientTransform", "cx", "cy", "fx", "fy", "r",
)


def _linked_gradient(node, graph, tables):
    href = get_href(node)
    if not href:
        return None
    m = HASH_REF_RE.match(href.strip())
    if not m:
        return None
    linked = graph.resolve(m.group(1))
    if linked is None or linked is node or tag_of(linked) not in tables.gradients:
        return None
    if graph.uses_count(m.group(1)) != 1 or get_href(linked):
        return None
    return linked


def _merge_once(root, tables) -> list:
    graph = build_graph(root, tables)
    merged = []
    for node in list(iter_elements(root)):
        if tag_of(node) not in tables.gradients:
            continue
        linked = _linked_gradient(node, graph, tables)
        if linked is None:
            continue

        if not any(isinstance(c.tag, str) for c in node):
            for child in list(linked):
                if isinstance(child.tag, str):
                    node.append(child)

        names = LG_ATTRIBUTES if tag_of(node) == "linearGradient" else RG_ATTRIBUTES
        for name in names:
            if name in linked.attrib and name not in node.attrib:
                node.set(name, linked.get(name))
        del node.attrib[href_attr(node)]

        merged.append(linked)
        # one merge per round keeps uses_count accurate
        break
    return merged


def merge_gradients(root, tables) -> list:
    """Merge gradients into their referrer until no candidates remain.

    A gradient is merged when exactly one element links it and it links
    nothing itself. The referrer keeps its own stops and attributes and
    inherits whatever it did not set. Returns labels of removed gradients.
    """
    removed = []
    while True:
        batch = _merge_once(root, tables)
        if not batch:
            return removed
        for linked in batch:
            removed.append(label(linked))
            linked.getparent().remove(linked)
        logger.debug("merged gradient %s", removed[-1])
