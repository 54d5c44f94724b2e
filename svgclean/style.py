"""
Style model: one canonical property mapping per element.

Inline ``style`` declarations win over presentation attributes; defaults are
never materialized. After normalization a property equal to the value the
element would get anyway (its default, or for inherited properties the value
coming from its ancestors) is elided. Content instantiated by <use> keeps
its inherited properties, since it inherits from the <use> instead.
"""

import logging

from .colors import trim_color
from .config import DEFAULT_PRECISION, RoundType
from .dom import href_target, iter_elements, label, tag_of
from .errors import CleanError
from .numeric import format_number, parse_length, parse_number, parse_number_list, UNIT_FACTORS

logger = logging.getLogger(__name__)

EDITOR_PROP_PREFIXES = ("-inkscape-",)

# Stable ordering for readability
STYLE_ORDER = [
    "filter", "opacity",
    "fill", "fill-opacity",
    "stroke", "stroke-opacity", "stroke-width",
    "stroke-linecap", "stroke-linejoin", "stroke-miterlimit",
    "stroke-dasharray", "stroke-dashoffset",
]


def split_declarations(style_text: str) -> dict:
    out = {}
    for chunk in style_text.split(";"):
        if not chunk.strip():
            continue
        if ":" not in chunk:
            logger.debug("skipping declaration without colon: %r", chunk)
            continue
        k, v = chunk.split(":", 1)
        k = k.strip()
        if k:
            out[k] = v.strip()
    return out


def serialize_style(d: dict) -> str:
    keys = [k for k in STYLE_ORDER if k in d] + [k for k in d.keys() if k not in STYLE_ORDER]
    return ";".join(f"{k}:{d[k]}" for k in keys)


def raw_style(elem, tables) -> dict:
    """Merged but unnormalized style: presentation attributes, then inline."""
    d = {k: v.strip() for k, v in elem.attrib.items() if k in tables.presentation}
    style = elem.get("style")
    if style:
        d.update(split_declarations(style))
    return d

# --- normalization ------------------------------------------------------------

def _is_keyword(value: str) -> bool:
    return not value or not (value[0].isdigit() or value[0] in "+-.")


def normalize_value(prop: str, value: str, tables, precision=DEFAULT_PRECISION) -> str:
    """Canonical text for one property value.

    Raises MalformedNumber / UnknownUnit for numeric properties whose value
    cannot be read; callers keep the raw text in that case.
    """
    value = value.strip()
    if value.endswith("!important"):
        return value
    if prop in tables.colors:
        return trim_color(value)
    if prop in tables.numbers:
        if _is_keyword(value):
            return value
        number, cursor = parse_number(value, 0)
        if value[cursor:].strip():
            return value
        return format_number(number, RoundType.ATTRIBUTE, precision, allow_exponent=False)
    if prop in tables.lengths:
        if _is_keyword(value):
            return value
        number, cursor = parse_number(value, 0)
        unit = value[cursor:].strip().lower()
        if unit and unit not in UNIT_FACTORS:
            # relative units need a context we do not track; keep the unit
            parse_length(value, 1.0)
            return format_number(number, RoundType.ATTRIBUTE, precision, allow_exponent=False) + unit
        return format_number(parse_length(value), RoundType.ATTRIBUTE, precision, allow_exponent=False)
    if prop == "stroke-dasharray":
        if _is_keyword(value):
            return value
        numbers = parse_number_list(value)
        if not any(numbers):
            return "none"
        return ",".join(format_number(n, RoundType.ATTRIBUTE, precision, allow_exponent=False)
                        for n in numbers)
    return value


def build_canonical_style(elem, options, failures=None) -> dict:
    """Resolve every explicit style property of ``elem`` into canonical text.

    Values that fail numeric parsing keep their raw text; the failure is
    appended to ``failures`` as ``(label, property, error)``.
    """
    tables = options.tables
    out = {}
    for prop, value in raw_style(elem, tables).items():
        try:
            out[prop] = normalize_value(prop, value, tables, options.precision)
        except CleanError as exc:
            logger.debug("%s: keeping raw %s=%r (%s)", label(elem), prop, value, exc)
            if failures is not None:
                failures.append((label(elem), prop, exc))
            out[prop] = value
    return out


def elide_defaults(elem, style: dict, options, inherited=None, keep_inherited: bool = False) -> dict:
    """Drop properties the element would get anyway.

    With ``keep_inherited`` inherited properties always stay: content
    instantiated by <use> inherits from the <use>, not from its DOM parent.
    """
    tables = options.tables
    tag = tag_of(elem)
    required = tables.required_for(tag)
    inherited = inherited or {}
    out = {}
    for prop, value in style.items():
        if prop in required:
            out[prop] = value
            continue
        if prop in tables.inherited:
            if keep_inherited:
                out[prop] = value
                continue
            if value == "inherit":
                continue
            reference = inherited.get(prop, tables.default_for(tag, prop))
        else:
            reference = tables.default_for(tag, prop)
        if reference is not None and value == reference:
            continue
        out[prop] = value
    return out


def apply_style(elem, style: dict, tables, prefer_inline: bool = False):
    """Write ``style`` back onto ``elem`` in its shortest form.

    Either as presentation attributes or as a single ``style`` attribute,
    whichever serializes shorter. Properties with no attribute form force
    the inline form, as does ``prefer_inline`` (documents with a style sheet,
    where inline declarations outrank selectors).
    """
    for attr in list(elem.attrib):
        if attr in tables.presentation:
            del elem.attrib[attr]
    elem.attrib.pop("style", None)
    if not style:
        return

    inline = serialize_style(style)
    as_attrs = sum(len(k) + len(v) + 4 for k, v in style.items())
    as_style = len(inline) + 9
    if prefer_inline or as_style < as_attrs or any(k not in tables.presentation for k in style):
        elem.set("style", inline)
    else:
        for k in [k for k in STYLE_ORDER if k in style] + [k for k in style if k not in STYLE_ORDER]:
            elem.set(k, style[k])

# --- tree pass ----------------------------------------------------------------

def _drop_unpainted(style: dict, effective: dict, paint: str):
    """Remove ``stroke-*`` / ``fill-*`` details when that paint is none."""
    if effective.get(paint, "none" if paint == "stroke" else "#000") not in ("none", "transparent"):
        return
    # markers scale with stroke-width even when the stroke itself is not painted
    if paint == "stroke" and any(effective.get(m, "none") != "none"
                                 for m in ("marker-start", "marker-mid", "marker-end")):
        return
    for k in list(style):
        if k.startswith(paint + "-"):
            del style[k]


def _use_targets(root) -> dict:
    """Map every <use> to the element it instantiates."""
    by_id = {}
    for el in iter_elements(root):
        if el.get("id"):
            by_id.setdefault(el.get("id"), el)
    targets = {}
    for el in iter_elements(root):
        if tag_of(el) == "use":
            target = by_id.get(href_target(el))
            if target is not None:
                targets[el] = target
    return targets


def _text_bearing(root, tables, uses) -> set:
    """Elements with text below them, counting text reached through <use>."""
    has_text = set()

    def mark(el):
        while el is not None and el not in has_text:
            has_text.add(el)
            el = el.getparent()

    for el in iter_elements(root):
        if tag_of(el) in tables.text_elements:
            mark(el.getparent())
    changed = True
    while changed:
        changed = False
        for use, target in uses.items():
            if use not in has_text and (target in has_text or tag_of(target) in tables.text_elements):
                mark(use)
                changed = True
    return has_text


def canonicalize_styles(root, options, failures=None) -> dict:
    """Canonicalize and write back the style of every element under ``root``.

    Returns the emitted (post-elision) style per element.
    """
    tables = options.tables
    prefer_inline = any(tag_of(el) == "style" for el in iter_elements(root))

    uses = _use_targets(root)
    # everything a <use> instantiates inherits from the <use>, not from its DOM parent
    instanced = set()
    for target in uses.values():
        instanced.update(iter_elements(target))
    has_text = _text_bearing(root, tables, uses)

    styles = {}
    stack = [(root, {})]
    while stack:
        elem, inherited = stack.pop()
        style = build_canonical_style(elem, options, failures)

        if not options.keep_editor_data:
            for k in list(style):
                if k.startswith(EDITOR_PROP_PREFIXES):
                    del style[k]
        if tag_of(elem) not in tables.text_elements and elem not in has_text:
            for k in tables.fonts:
                style.pop(k, None)

        effective = dict(inherited)
        effective.update((k, v) for k, v in style.items() if k in tables.inherited and v != "inherit")

        children = [c for c in elem if isinstance(c.tag, str)]
        # a <use> passes its paint on to the content it references
        leaf = not children and elem not in uses
        if elem not in instanced:
            if leaf or (options.aggressive and not any(
                    "stroke" in raw_style(d, tables) or d in uses
                    for d in elem.iterdescendants() if isinstance(d.tag, str))):
                _drop_unpainted(style, effective, "stroke")
            if leaf:
                _drop_unpainted(style, effective, "fill")

        emitted = elide_defaults(elem, style, options, inherited, keep_inherited=elem in instanced)
        apply_style(elem, emitted, tables, prefer_inline)
        styles[elem] = emitted

        for child in reversed(children):
            stack.append((child, effective))
    return styles
