"""Shared test fixtures."""

import pytest
from lxml import etree

SVG_OPEN = '<svg xmlns="http://www.w3.org/2000/svg" xmlns:xlink="http://www.w3.org/1999/xlink" viewBox="0 0 100 100">'

GRADIENT_CHAIN_SVG = SVG_OPEN + '''
  <defs>
    <linearGradient id="A" xlink:href="#B" x1="0" x2="1"/>
    <linearGradient id="B">
      <stop offset="0" stop-color="red"/>
      <stop offset="1" stop-color="blue"/>
    </linearGradient>
    <linearGradient id="C">
      <stop offset="0" stop-color="green"/>
    </linearGradient>
  </defs>
  <rect width="10" height="10" fill="url(#A)"/>
</svg>'''

CYCLE_SVG = SVG_OPEN + '''
  <defs>
    <linearGradient id="A" xlink:href="#B"/>
    <linearGradient id="B" xlink:href="#A"/>
  </defs>
  <rect width="10" height="10"/>
</svg>'''

CYCLE_USED_SVG = SVG_OPEN + '''
  <defs>
    <linearGradient id="A" xlink:href="#B"/>
    <linearGradient id="B" xlink:href="#A"/>
  </defs>
  <rect width="10" height="10" style="fill:url(#B)"/>
</svg>'''

INKSCAPE_SVG = '''<svg xmlns="http://www.w3.org/2000/svg"
     xmlns:inkscape="http://www.inkscape.org/namespaces/inkscape"
     xmlns:sodipodi="http://sodipodi.sourceforge.net/DTD/sodipodi-0.dtd"
     width="24" height="24" viewBox="0 0 24 24">
  <!-- editor comment -->
  <metadata>stuff</metadata>
  <sodipodi:namedview id="base" inkscape:zoom="1"/>
  <g inkscape:label="Layer 1" inkscape:groupmode="layer" id="layer1">
    <path id="p1" d="M1.123456 2.5L10.0000 20.98765z"
          style="fill:#ff0000;fill-opacity:1.000;stroke:none;stroke-width:0.26458;-inkscape-font-specification:Sans"/>
    <circle cx="12.00001" cy="12" r="3.14159" fill="black" opacity="0.50"/>
  </g>
</svg>'''

NESTED_GROUPS_SVG = SVG_OPEN + '''
  <g transform="translate(10 20)">
    <rect x="0" y="0" width="10" height="5"/>
    <g transform="scale(2)">
      <circle cx="5" cy="5" r="1"/>
    </g>
  </g>
  <metadata/>
</svg>'''


def parse(text: str):
    return etree.ElementTree(etree.fromstring(text.encode("utf-8")))


def find(root, local_name: str):
    return [el for el in root.iter() if isinstance(el.tag, str) and etree.QName(el).localname == local_name]


@pytest.fixture
def gradient_chain_tree():
    return parse(GRADIENT_CHAIN_SVG)


@pytest.fixture
def cycle_tree():
    return parse(CYCLE_SVG)


@pytest.fixture
def cycle_used_tree():
    return parse(CYCLE_USED_SVG)


@pytest.fixture
def inkscape_tree():
    return parse(INKSCAPE_SVG)


@pytest.fixture
def nested_groups_tree():
    return parse(NESTED_GROUPS_SVG)
