"""Public API for svgclean."""
from .cleaner import CleanReport, clean_svg_tree
from .config import CleanOptions, Precision, RoundType, StyleTables
from .errors import CleanError, CyclicReference, DanglingReference, MalformedNumber, UnknownUnit

__all__ = [
    "clean_svg_tree",
    "CleanReport",
    "CleanOptions",
    "Precision",
    "RoundType",
    "StyleTables",
    "CleanError",
    "MalformedNumber",
    "UnknownUnit",
    "DanglingReference",
    "CyclicReference",
]
