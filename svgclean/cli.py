"""
svgclean -- SVG cleaner that preserves appearance and rounds numbers.

- Works on a single file or an entire folder (with --recursive).
- Removes <metadata>, comments, unused definitions, editor/vendor attrs.
- Merges style attributes, drops values equal to what would be inherited.
- Rounds numbers per role: coordinates, transforms, other attributes.
  * Examples: -5.79687 -> -5.797, 0.50 -> .5, 3.0 -> 3

Usage:
  svgclean x --out-dir y --recursive
  svgclean in.svg -o out.svg
  svgclean x --out-dir y --recursive --precision 2 --aggressive
"""

import argparse
import logging
import sys
from pathlib import Path

from lxml import etree as ET

from .cleaner import clean_svg_tree
from .config import CleanOptions, Precision

logger = logging.getLogger(__name__)


def process_file(in_path: Path, out_path: Path, options: CleanOptions):
    parser = ET.XMLParser(remove_blank_text=True, recover=True)
    tree = ET.parse(str(in_path), parser)
    report = clean_svg_tree(tree, options)
    xml_bytes = ET.tostring(
        tree,
        xml_declaration=True,
        encoding="utf-8",
        pretty_print=True
    )
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(xml_bytes)
    return report


def build_options(args) -> CleanOptions:
    defaults = Precision()
    coordinate = args.coordinate_precision
    if coordinate is None:
        coordinate = args.precision if args.precision is not None else defaults.coordinate
    precision = Precision(
        coordinate=coordinate,
        transform=args.transform_precision if args.transform_precision is not None else defaults.transform,
        attribute=args.attribute_precision if args.attribute_precision is not None else defaults.attribute,
    )
    return CleanOptions(
        precision=precision,
        aggressive=args.aggressive,
        remove_unused_defs=not args.no_prune,
        remove_unreferenced_ids=not args.keep_ids,
        merge_gradients=not args.no_merge_gradients,
        annotate_geometry=False,
        keep_editor_data=args.keep_editor_data,
    )


def make_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="svgclean", description="Clean SVG(s) while preserving appearance.")
    ap.add_argument("input", help="Input SVG file or directory")
    ap.add_argument("-o", "--output", help="Output SVG file (for single-file input)")
    ap.add_argument("--out-dir", help="Output directory (for directory input, or to place a single cleaned file)")
    ap.add_argument("--recursive", action="store_true", help="Recurse into subdirectories when input is a directory")
    ap.add_argument("--aggressive", action="store_true", help="Remove more defaults (still preserves appearance)")
    ap.add_argument("--precision", type=int, help="Decimal places for coordinates (alias of --coordinate-precision)")
    ap.add_argument("--coordinate-precision", type=int, help="Decimal places for path data and geometry (default: 3)")
    ap.add_argument("--transform-precision", type=int, help="Decimal places for transform components (default: 5)")
    ap.add_argument("--attribute-precision", type=int, help="Decimal places for other numeric values (default: 4)")
    ap.add_argument("--keep-ids", action="store_true", help="Keep ids that nothing references")
    ap.add_argument("--no-prune", action="store_true", help="Keep unused definitions")
    ap.add_argument("--no-merge-gradients", action="store_true", help="Do not fold gradient link chains")
    ap.add_argument("--keep-editor-data", action="store_true", help="Keep Inkscape/Sodipodi elements and attributes")
    ap.add_argument("--report", action="store_true", help="Print what was removed for every file")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log diagnostics")
    ap.add_argument("-q", "--quiet", action="store_true", help="Only log errors")
    return ap


def _clean_one(src: Path, dst: Path, options: CleanOptions, show_report: bool):
    report = process_file(src, dst, options)
    if show_report:
        sys.stderr.write(f"{src}: {report.summary()}\n")


def main(argv=None):
    args = make_parser().parse_args(argv)
    level = logging.DEBUG if args.verbose else logging.ERROR if args.quiet else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    try:
        options = build_options(args)
    except ValueError as exc:
        sys.stderr.write(f"{exc}\n")
        return 2

    inp = Path(args.input)
    if not inp.exists():
        sys.stderr.write(f"Input not found: {inp}\n")
        return 1

    # Directory mode
    if inp.is_dir():
        out_base = Path(args.out_dir) if args.out_dir else inp.with_name(inp.name + "_cleaned")
        svg_iter = inp.rglob("*.svg") if args.recursive else inp.glob("*.svg")
        count = 0
        for src in sorted(svg_iter):
            rel = src.relative_to(inp) if args.recursive else Path(src.name)
            dst = out_base / rel
            try:
                _clean_one(src, dst, options, args.report)
            except (OSError, ET.XMLSyntaxError) as exc:
                logger.error("%s: %s", src, exc)
                continue
            count += 1
        sys.stderr.write(f"Processed {count} file(s) into {out_base}\n")
        return 0

    # Single-file mode
    if args.out_dir:
        out_path = Path(args.out_dir) / inp.name
    elif args.output:
        out_path = Path(args.output)
    else:
        out_path = inp.with_suffix(".clean.svg")

    _clean_one(inp, out_path, options, args.report)
    sys.stderr.write(f"Wrote {out_path}\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
