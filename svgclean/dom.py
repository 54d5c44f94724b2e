"""Small helpers over the lxml element tree."""

from .config import XLINK_HREF


def localname(tag: str) -> str:
    if "}" in tag:
        return tag.split("}", 1)[1]
    return tag


def is_element(node) -> bool:
    # comments and processing instructions carry a callable tag
    return isinstance(node.tag, str)


def iter_elements(root):
    for node in root.iter():
        if is_element(node):
            yield node


def tag_of(elem) -> str:
    return localname(elem.tag)


def label(elem) -> str:
    """Human readable handle for diagnostics: ``rect#r1`` or ``rect``."""
    eid = elem.get("id")
    return f"{tag_of(elem)}#{eid}" if eid else tag_of(elem)


def get_href(elem):
    """Return the xlink:href (or SVG 2 href) value, if any."""
    return elem.get(XLINK_HREF, elem.get("href"))


def href_attr(elem):
    if XLINK_HREF in elem.attrib:
        return XLINK_HREF
    if "href" in elem.attrib:
        return "href"
    return None


def ancestors(elem):
    parent = elem.getparent()
    while parent is not None:
        yield parent
        parent = parent.getparent()


def href_target(elem):
    """Id named by a local ``#id`` href, or None."""
    href = (get_href(elem) or "").strip()
    if href.startswith("#") and len(href) > 1:
        return href[1:]
    return None
