"""Gradient link merging."""

from svgclean.config import DEFAULT_TABLES as TABLES
from svgclean.config import XLINK_HREF
from svgclean.gradients import merge_gradients
from tests.conftest import SVG_OPEN, find, parse


def merged(body):
    root = parse(SVG_OPEN + body + "</svg>").getroot()
    removed = merge_gradients(root, TABLES)
    return root, removed


def gradients(root):
    return [el for el in root if isinstance(el.tag, str)]


def stop_ids(elem):
    return [s.get("id") for s in find(elem, "stop")]


def test_empty_link_is_just_removed():
    root, removed = merged('<linearGradient id="lg1"/><linearGradient xlink:href="#lg1"/>')
    assert removed == ["linearGradient#lg1"]
    (lg,) = gradients(root)
    assert dict(lg.attrib) == {}


def test_stops_move_in_order():
    root, _ = merged('''
      <linearGradient id="lg1"><stop id="s1" offset="0"/><stop id="s2" offset="1"/></linearGradient>
      <linearGradient xlink:href="#lg1"/>''')
    (lg,) = gradients(root)
    assert stop_ids(lg) == ["s1", "s2"]
    assert XLINK_HREF not in lg.attrib


def test_own_attributes_win():
    root, _ = merged('''
      <linearGradient id="lg1" x1="5" x2="5"><stop offset="0"/><stop offset="1"/></linearGradient>
      <linearGradient x1="10" xlink:href="#lg1"/>''')
    (lg,) = gradients(root)
    assert lg.get("x1") == "10"
    assert lg.get("x2") == "5"
    assert len(find(lg, "stop")) == 2


def test_chain_is_folded():
    root, removed = merged('''
      <linearGradient id="lg1" x1="5" x2="5"><stop offset="0"/><stop offset="1"/></linearGradient>
      <linearGradient id="lg2" xlink:href="#lg1"/>
      <linearGradient x1="10" xlink:href="#lg2"/>''')
    assert removed == ["linearGradient#lg1", "linearGradient#lg2"]
    (lg,) = gradients(root)
    assert (lg.get("x1"), lg.get("x2")) == ("10", "5")
    assert len(find(lg, "stop")) == 2


def test_chain_in_reverse_document_order():
    root, removed = merged('''
      <linearGradient x1="10" xlink:href="#lg2"/>
      <linearGradient id="lg2" xlink:href="#lg1"/>
      <linearGradient id="lg1" x1="5" x2="5"><stop offset="0"/><stop offset="1"/></linearGradient>''')
    assert len(removed) == 2
    (lg,) = gradients(root)
    assert (lg.get("x1"), lg.get("x2")) == ("10", "5")
    assert len(find(lg, "stop")) == 2


def test_only_attributes_of_the_referrer_kind_move():
    root, _ = merged('<linearGradient id="lg1" x1="5" x2="5"/><radialGradient xlink:href="#lg1"/>')
    (rg,) = gradients(root)
    assert dict(rg.attrib) == {}


def test_existing_stops_are_kept():
    root, _ = merged('''
      <linearGradient id="lg1"><stop id="s1" offset="0"/><stop id="s2" offset="1"/></linearGradient>
      <linearGradient id="lg2" xlink:href="#lg1"><stop id="s3" offset="0"/><stop id="s4" offset="1"/></linearGradient>''')
    (lg,) = gradients(root)
    assert lg.get("id") == "lg2"
    assert stop_ids(lg) == ["s3", "s4"]


def test_shared_gradient_is_not_merged():
    root, removed = merged('''
      <linearGradient id="lg1"><stop offset="0"/></linearGradient>
      <linearGradient id="lg2" xlink:href="#lg1"/>
      <rect width="1" height="1" fill="url(#lg1)"/>''')
    assert removed == []
    assert len(find(root, "linearGradient")) == 2


def test_cycle_is_left_alone(cycle_used_tree):
    root = cycle_used_tree.getroot()
    assert merge_gradients(root, TABLES) == []
    assert len(find(root, "linearGradient")) == 2
