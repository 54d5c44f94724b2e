"""End-to-end cleaning of whole documents."""

import pytest
from lxml import etree

from svgclean import CleanOptions, Precision, clean_svg_tree
from svgclean.config import XLINK_HREF
from svgclean.errors import CyclicReference, DanglingReference
from svgclean.geometry import BoundingBox
from tests.conftest import SVG_OPEN, find, parse


def test_inkscape_document(inkscape_tree):
    report = clean_svg_tree(inkscape_tree)
    root = inkscape_tree.getroot()
    text = etree.tostring(root).decode()

    assert "inkscape" not in text
    assert "sodipodi" not in text
    assert "metadata" not in text
    assert "editor comment" not in text

    g, = find(root, "g")
    path, = find(root, "path")
    circle, = find(root, "circle")
    assert dict(g.attrib) == {}
    assert dict(path.attrib) == {"d": "M1.123 2.5L10 20.988z", "fill": "red"}
    assert dict(circle.attrib) == {"cx": "12", "cy": "12", "r": "3.142", "opacity": ".5"}
    assert root.get("viewBox") == "0 0 24 24"

    assert report.removed_ids == ["layer1", "p1"]
    assert report.failed_attributes == []


@pytest.mark.parametrize("fixture", [
    "inkscape_tree", "gradient_chain_tree", "cycle_tree", "cycle_used_tree", "nested_groups_tree",
])
def test_clean_is_idempotent(request, fixture):
    tree = request.getfixturevalue(fixture)
    clean_svg_tree(tree)
    once = etree.tostring(tree)
    report = clean_svg_tree(tree)
    assert etree.tostring(tree) == once
    assert report.removed_definitions == []
    assert report.merged_gradients == []


def test_keep_editor_data(inkscape_tree):
    clean_svg_tree(inkscape_tree, CleanOptions(keep_editor_data=True))
    root = inkscape_tree.getroot()
    assert len(find(root, "namedview")) == 1
    assert find(root, "metadata") == []
    path, = find(root, "path")
    assert "-inkscape-font-specification" in path.get("style")


def test_gradient_chain_document(gradient_chain_tree):
    report = clean_svg_tree(gradient_chain_tree)
    root = gradient_chain_tree.getroot()

    assert report.merged_gradients == ["linearGradient#B"]
    assert report.removed_definitions == ["linearGradient#C"]
    lg, = find(root, "linearGradient")
    assert lg.get("id") == "A"
    assert XLINK_HREF not in lg.attrib
    assert [s.get("stop-color") for s in find(lg, "stop")] == ["red", "#00f"]
    assert find(root, "rect")[0].get("fill") == "url(#A)"


def test_gradient_chain_without_merging(gradient_chain_tree):
    report = clean_svg_tree(gradient_chain_tree, CleanOptions(merge_gradients=False))
    root = gradient_chain_tree.getroot()
    assert report.merged_gradients == []
    assert report.removed_definitions == ["linearGradient#C"]
    assert [lg.get("id") for lg in find(root, "linearGradient")] == ["A", "B"]


def test_no_prune_keeps_everything(gradient_chain_tree):
    report = clean_svg_tree(gradient_chain_tree, CleanOptions(remove_unused_defs=False))
    assert report.removed_definitions == []
    assert len(find(gradient_chain_tree.getroot(), "linearGradient")) == 2


def test_used_cycle_terminates_and_is_reported(cycle_used_tree):
    report = clean_svg_tree(cycle_used_tree)
    assert report.cycles == [CyclicReference("A", "B")]
    assert report.removed_definitions == []
    assert len(find(cycle_used_tree.getroot(), "linearGradient")) == 2


def test_unused_cycle_is_removed(cycle_tree):
    report = clean_svg_tree(cycle_tree)
    root = cycle_tree.getroot()
    assert find(root, "linearGradient") == []
    assert find(root, "defs") == []
    assert len(report.removed_definitions) == 2


def test_dangling_reference_is_reported():
    tree = parse(SVG_OPEN + '<rect width="1" height="1" fill="url(#nope)"/></svg>')
    report = clean_svg_tree(tree)
    assert report.dangling == [DanglingReference("rect", "nope")]
    assert find(tree.getroot(), "rect")[0].get("fill") == "url(#nope)"


def test_ids_survive_when_a_style_sheet_is_present():
    tree = parse(SVG_OPEN + '<style>#r { fill: red }</style><rect id="r" width="1" height="1" fill="blue"/></svg>')
    report = clean_svg_tree(tree)
    rect, = find(tree.getroot(), "rect")
    assert report.removed_ids == []
    assert rect.get("id") == "r"
    # inline declarations outrank the sheet, attributes would not
    assert rect.get("style") == "fill:#00f"


def test_malformed_values_are_kept():
    tree = parse(SVG_OPEN + '<rect width="wide" height="2.00001" stroke-width="3zz" stroke="red"/></svg>')
    report = clean_svg_tree(tree)
    rect, = find(tree.getroot(), "rect")
    assert rect.get("width") == "wide"
    assert rect.get("height") == "2"
    assert rect.get("stroke-width") == "3zz"
    failed = {(where, what) for where, what, _ in report.failed_attributes}
    assert ("rect", "width") in failed
    assert ("rect", "stroke-width") in failed


def test_precision_options():
    tree = parse(SVG_OPEN + '<path d="M1.23456 0L2 2" transform="translate(1.234567 0)"/></svg>')
    clean_svg_tree(tree, CleanOptions(precision=Precision(coordinate=1, transform=2)))
    path, = find(tree.getroot(), "path")
    assert path.get("d") == "M1.2 0L2 2"
    assert path.get("transform") == "translate(1.23)"


def test_zero_geometry_defaults_are_dropped():
    tree = parse(SVG_OPEN + '<rect x="0" y="0.0001" width="4" height="4"/></svg>')
    clean_svg_tree(tree)
    rect, = find(tree.getroot(), "rect")
    assert "x" not in rect.attrib
    assert "y" not in rect.attrib


def test_annotations(nested_groups_tree):
    report = clean_svg_tree(nested_groups_tree)
    root = nested_groups_tree.getroot()
    assert report.annotations[root].bbox == BoundingBox(10, 20, 12, 12)
    assert find(root, "metadata") == []


def test_summary_mentions_counts(gradient_chain_tree):
    report = clean_svg_tree(gradient_chain_tree)
    assert report.summary().startswith("1 unused definition(s), 1 merged gradient(s)")


def test_compact_arc_flags_survive():
    tree = parse(SVG_OPEN + '<path d="M0 0a1 1 0 01.5.5a1.23456 1 0 1 0 2.00001 3"/></svg>')
    clean_svg_tree(tree, CleanOptions(annotate_geometry=False))
    path, = find(tree.getroot(), "path")
    assert path.get("d") == "M0 0a1 1 0 01.5.5a1.235 1 0 1 0 2 3"


def test_unreadable_path_data_is_kept():
    tree = parse(SVG_OPEN + '<path d="M0 0a1 1 0 2 1 5 5"/></svg>')
    report = clean_svg_tree(tree, CleanOptions(annotate_geometry=False))
    path, = find(tree.getroot(), "path")
    assert path.get("d") == "M0 0a1 1 0 2 1 5 5"
    assert ("path", "d") in {(where, what) for where, what, _ in report.failed_attributes}


def test_use_target_keeps_its_own_fill():
    tree = parse(SVG_OPEN + '''
      <defs><g fill="red"><rect id="r" width="1" height="1" fill="red"/></g></defs>
      <use xlink:href="#r" fill="blue"/>
    </svg>''')
    clean_svg_tree(tree)
    rect, = find(tree.getroot(), "rect")
    use, = find(tree.getroot(), "use")
    assert rect.get("fill") == "red"
    assert use.get("fill") == "#00f"


def test_use_target_keeps_default_valued_inherited_properties():
    tree = parse(SVG_OPEN + '''
      <defs><rect id="r" width="1" height="1" fill="black"/></defs>
      <use xlink:href="#r" fill="blue"/>
    </svg>''')
    clean_svg_tree(tree)
    rect, = find(tree.getroot(), "rect")
    assert rect.get("fill") == "#000"


def test_use_keeps_properties_its_content_inherits():
    tree = parse(SVG_OPEN + '''
      <defs><rect id="r" width="1" height="1"/><text id="t">Hi</text></defs>
      <use xlink:href="#r" fill="none" fill-opacity=".5" stroke="none" stroke-width="4"/>
      <use xlink:href="#t" font-size="20"/>
    </svg>''')
    clean_svg_tree(tree)
    shape_use, text_use = find(tree.getroot(), "use")
    assert shape_use.get("fill") == "none"
    assert shape_use.get("fill-opacity") == ".5"
    assert shape_use.get("stroke-width") == "4"
    assert text_use.get("font-size") == "20"


@pytest.mark.parametrize("d", ["M0 0A5 5 0 0 1 0 0", "Z"])
def test_degenerate_path_does_not_abort(d):
    tree = parse(SVG_OPEN + f'<path d="{d}"/><rect width="2" height="2"/></svg>')
    report = clean_svg_tree(tree)
    root = tree.getroot()
    path, = find(root, "path")
    rect, = find(root, "rect")
    assert path.get("d") == d
    assert report.annotations[path].bbox is None
    assert report.annotations[rect].bbox == BoundingBox(0, 0, 2, 2)
    assert ("path", "geometry") in {(where, what) for where, what, _ in report.failed_attributes}


def test_data_attributes_follow_editor_data_option():
    markup = SVG_OPEN + '<rect data-name="box" width="1" height="1"/></svg>'
    tree = parse(markup)
    clean_svg_tree(tree)
    assert "data-name" not in find(tree.getroot(), "rect")[0].attrib

    tree = parse(markup)
    clean_svg_tree(tree, CleanOptions(keep_editor_data=True))
    assert find(tree.getroot(), "rect")[0].get("data-name") == "box"
