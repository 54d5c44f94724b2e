"""
Reference graph: which definitions are reachable from rendered content.

Nodes are ``id`` values, edges run from a referencing element to the id it
names (``xlink:href`` or ``url(#id)`` inside a link-bearing property). The
graph is plain and may contain cycles; reachability is a guarded walk.
"""

import logging
import re
from dataclasses import dataclass, field

from .dom import ancestors, get_href, iter_elements, label, tag_of
from .errors import CyclicReference, DanglingReference
from .style import raw_style

logger = logging.getLogger(__name__)

URL_REF_RE = re.compile(r"url\(\s*['\"]?#([^)'\"\s]+)['\"]?\s*\)")
HASH_REF_RE = re.compile(r"^#([A-Za-z_][\w.:-]*)$")


def extract_references(elem, style: dict, tables) -> set:
    refs = set()
    if tag_of(elem) in tables.xlink_elements:
        href = get_href(elem)
        if href:
            m = HASH_REF_RE.match(href.strip())
            if m:
                refs.add(m.group(1))
    for prop in tables.linkable:
        val = style.get(prop)
        if val:
            refs.update(m.group(1) for m in URL_REF_RE.finditer(val))
    return refs


class ReferenceGraph:
    def __init__(self):
        self.nodes = {}         # id -> element
        self.edges = {}         # element -> set of target ids
        self.sheet_refs = set() # ids named from <style> sheets
        self.dangling = []

    def add_node(self, eid: str, elem):
        if eid in self.nodes:
            logger.warning("duplicate id %r; keeping the first definition", eid)
            return
        self.nodes[eid] = elem

    def add_edge(self, elem, target: str):
        self.edges.setdefault(elem, set()).add(target)

    def resolve(self, eid: str):
        return self.nodes.get(eid)

    def targets_of(self, elem) -> set:
        return self.edges.get(elem, set())

    def referrers_of(self, eid: str) -> list:
        return [el for el, targets in self.edges.items() if eid in targets]

    def uses_count(self, eid: str) -> int:
        return len(self.referrers_of(eid)) + (eid in self.sheet_refs)

    def referenced_ids(self) -> set:
        out = set(self.sheet_refs)
        for targets in self.edges.values():
            out |= targets
        return out


def build_graph(root, tables, styles=None) -> ReferenceGraph:
    graph = ReferenceGraph()
    elements = list(iter_elements(root))
    for el in elements:
        eid = el.get("id")
        if eid:
            graph.add_node(eid, el)

    for el in elements:
        if tag_of(el) == "style":
            graph.sheet_refs.update(m.group(1) for m in URL_REF_RE.finditer(el.text or ""))
            continue
        style = styles[el] if styles is not None and el in styles else raw_style(el, tables)
        for target in extract_references(el, style, tables):
            graph.add_edge(el, target)
            if target not in graph.nodes:
                graph.dangling.append(DanglingReference(label(el), target))
                logger.debug("%s references missing id %r", label(el), target)
    return graph

# --- usage --------------------------------------------------------------------

@dataclass
class UsageResult:
    used: set = field(default_factory=set)
    cycles: list = field(default_factory=list)


def _definition_only(elem, tables) -> bool:
    tag = tag_of(elem)
    return tag in tables.definitions or tag in tables.definition_containers


def is_rendered(elem, tables) -> bool:
    if _definition_only(elem, tables):
        return False
    return not any(_definition_only(a, tables) for a in ancestors(elem))


def compute_usage(root, graph: ReferenceGraph, tables) -> UsageResult:
    """Mark every id reachable from rendered content.

    Each id is expanded at most once. An edge back into the id path currently
    being expanded is reported as a CyclicReference and not followed.
    """
    result = UsageResult()
    expanded = set()

    def walk(source: str, targets):
        stack = [("enter", t, source) for t in sorted(targets, reverse=True)]
        on_path = set()
        while stack:
            action, target, src = stack.pop()
            if action == "exit":
                on_path.discard(target)
                continue
            if target in on_path:
                result.cycles.append(CyclicReference(src, target))
                logger.debug("reference cycle %s -> %s", src, target)
                continue
            if target in expanded:
                continue
            elem = graph.resolve(target)
            if elem is None:
                continue
            expanded.add(target)
            result.used.add(target)
            on_path.add(target)
            stack.append(("exit", target, src))
            # everything inside a used definition renders as part of it
            inner = set()
            for d in iter_elements(elem):
                inner |= graph.targets_of(d)
            stack.extend(("enter", t, target) for t in sorted(inner, reverse=True))

    walk("<style>", graph.sheet_refs)
    for el in iter_elements(root):
        if not is_rendered(el, tables):
            continue
        eid = el.get("id")
        if eid:
            result.used.add(eid)
        targets = graph.targets_of(el)
        if targets:
            walk(eid or label(el), targets)
    return result

# --- pruning ------------------------------------------------------------------

def _subtree_used(elem, used_ids) -> bool:
    return any(d.get("id") in used_ids for d in iter_elements(elem))


def _prunable(elem, tables) -> bool:
    tag = tag_of(elem)
    return tag not in tables.never_pruned and tag not in tables.definition_containers


def _sweep(root, used_ids, tables) -> list:
    doomed = []
    for el in iter_elements(root):
        parent = el.getparent()
        if parent is None:
            continue
        if tag_of(parent) in tables.definition_containers:
            if _prunable(el, tables) and not _subtree_used(el, used_ids):
                doomed.append(el)
        elif tag_of(el) in tables.definitions:
            if (not any(_definition_only(a, tables) for a in ancestors(el))
                    and not _subtree_used(el, used_ids)):
                doomed.append(el)

    removed = []
    doomed_set = set(doomed)
    for el in doomed:
        if any(a in doomed_set for a in ancestors(el)):
            continue
        el.getparent().remove(el)
        removed.append(label(el))

    # empty <defs> left behind
    for el in list(iter_elements(root)):
        if (el is not root and tag_of(el) in tables.definition_containers
                and not any(isinstance(c.tag, str) for c in el)
                and not (el.text or "").strip()):
            el.getparent().remove(el)
    return removed


def prune_unused(root, used_ids: set, tables) -> list:
    """Remove unreferenced definitions until nothing else becomes unused.

    Returns the labels of the removed elements.
    """
    removed = []
    while True:
        batch = _sweep(root, used_ids, tables)
        if not batch:
            return removed
        removed.extend(batch)
        logger.debug("pruned %d definition(s): %s", len(batch), ", ".join(batch))
        used_ids = compute_usage(root, build_graph(root, tables), tables).used


def remove_unreferenced_ids(root, graph: ReferenceGraph) -> list:
    """Drop ``id`` attributes that nothing references (the root keeps its id)."""
    used = graph.referenced_ids()
    removed = []
    for elem in iter_elements(root):
        eid = elem.get("id")
        if eid and eid not in used and elem is not root:
            elem.attrib.pop("id", None)
            removed.append(eid)
    return removed
