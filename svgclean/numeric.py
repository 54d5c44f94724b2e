"""
Numeric engine: locale-free number parsing, rounding and minimal serialization.

Numbers are read with a regex scanner rather than float() on whole attribute
values so that lists (path data, points, dash arrays) can be tokenized in one
pass. Rounding goes through decimal.Decimal on the shortest repr of the float,
which makes "half away from zero" act on the digits a user actually sees.
"""

import re
from decimal import Decimal, ROUND_HALF_UP

from .config import DEFAULT_PRECISION, RoundType
from .errors import MalformedNumber, UnknownUnit

# --- constants ---------------------------------------------------------------

# General numeric token (int or float, optional exponent)
NUM_TOKEN_RE = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
SEPARATOR_RE = re.compile(r"\s*,?\s*")

PX_PER_IN = 96.0
UNIT_FACTORS = {
    "px": 1.0,
    "in": PX_PER_IN,
    "cm": PX_PER_IN / 2.54,
    "mm": PX_PER_IN / 25.4,
    "pt": PX_PER_IN / 72.0,
    "pc": 16.0,
}

# Beyond this magnitude a double carries no fractional digits worth rounding.
_MAX_ROUNDABLE = 1e15

# --- parsing -----------------------------------------------------------------

def parse_number(text: str, cursor: int = 0):
    """Read one number starting at ``cursor``.

    Leading whitespace and a single comma are skipped. Returns
    ``(value, new_cursor)``; content after the number is left untouched so
    callers can keep tokenizing.
    """
    cursor = SEPARATOR_RE.match(text, cursor).end()
    m = NUM_TOKEN_RE.match(text, cursor)
    if not m:
        raise MalformedNumber(text, cursor)
    return float(m.group(0)), m.end()


def parse_number_list(text: str) -> list:
    values = []
    cursor = 0
    end = len(text.rstrip())
    while cursor < end:
        value, cursor = parse_number(text, cursor)
        values.append(value)
        cursor = SEPARATOR_RE.match(text, cursor).end()
    return values


def parse_length(text: str, base_value: float = 0) -> float:
    """Convert a length such as ``2.5mm`` or ``50%`` to user units (px).

    ``em``, ``ex`` scale ``base_value`` directly, ``%`` scales it by
    value / 100.
    """
    text = text.strip()
    value, cursor = parse_number(text, 0)
    unit = text[cursor:].strip().lower()
    if not unit:
        return value
    if unit in UNIT_FACTORS:
        return value * UNIT_FACTORS[unit]
    if unit in ("em", "ex"):
        return value * base_value
    if unit == "%":
        return value * base_value / 100.0
    raise UnknownUnit(text, unit)

# --- rounding ----------------------------------------------------------------

def digits_for(kind: RoundType, precision=None) -> int:
    return (precision or DEFAULT_PRECISION).digits(kind)


def round_number(value: float, kind: RoundType = RoundType.COORDINATE, precision=None) -> float:
    if value != value or abs(value) >= _MAX_ROUNDABLE:
        return value
    quantum = Decimal(1).scaleb(-digits_for(kind, precision))
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def is_zero(value: float, kind: RoundType = RoundType.COORDINATE, precision=None) -> bool:
    return abs(value) < 0.5 * 10 ** -digits_for(kind, precision)

# --- serialization -----------------------------------------------------------

def _plain(d: Decimal) -> str:
    s = format(d, "f")
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    if s.startswith("0."):
        s = s[1:]
    elif s.startswith("-0."):
        s = "-" + s[2:]
    return s


def _scientific(d: Decimal) -> str:
    sign, digits, exp = d.normalize().as_tuple()
    mantissa = "".join(map(str, digits))
    return ("-" if sign else "") + f"{mantissa}e{exp}"


def serialize(value: float, allow_exponent: bool = True) -> str:
    """Shortest decimal text for ``value``: ``.5``, ``3``, ``-2.25``, ``1e5``."""
    if value == 0:
        return "0"
    if value != value or value in (float("inf"), float("-inf")):
        raise MalformedNumber(repr(value))
    d = Decimal(repr(value))
    plain = _plain(d)
    if allow_exponent:
        sci = _scientific(d)
        if len(sci) < len(plain):
            return sci
    return plain


def format_number(value: float, kind: RoundType = RoundType.COORDINATE, precision=None,
                  allow_exponent: bool = True) -> str:
    return serialize(round_number(value, kind, precision), allow_exponent)


def round_numbers_in_string(s: str, kind: RoundType = RoundType.COORDINATE, precision=None) -> str:
    """Rewrite every fractional number inside ``s``; separators are kept.

    Integer tokens pass through untouched. Path data goes through
    ``round_path_data`` instead, which knows about arc flags.
    """
    def _sub(m):
        tok = m.group(0)
        if not any(c in tok for c in ".eE"):
            return tok
        out = format_number(float(tok), kind, precision)
        # "5-0.0001" must not turn into "50", nor "1.0.5" into "1.5"
        if m.start() and out[0].isdigit() and (s[m.start() - 1].isdigit() or s[m.start() - 1] == "."):
            out = " " + out
        if m.end() < len(s) and s[m.end()] == "." and not any(c in out for c in ".e"):
            out += " "
        return out

    return NUM_TOKEN_RE.sub(_sub, s)


PATH_COMMAND_RE = re.compile(r"[MmZzLlHhVvCcSsQqTtAa]")
PATH_ARITY = {"m": 2, "z": 0, "l": 2, "h": 1, "v": 1, "c": 6, "s": 4, "q": 4, "t": 2, "a": 7}
ARC_FLAG_RE = re.compile(r"[01]")


def round_path_data(d: str, kind: RoundType = RoundType.COORDINATE, precision=None) -> str:
    """Round every number in path data ``d``, keeping commands and separators.

    Path data is read command by command: the large-arc and sweep flags of
    ``A``/``a`` are single characters, so ``a1 1 0 01.5.5`` has the flags
    ``0``, ``1`` and the end point ``.5 .5``. Raises MalformedNumber on text
    that is not path data.
    """
    out = []
    last = None     # text of the number just written, if the last piece was one
    arity = 0
    command = ""
    index = 0
    pos = 0
    while pos < len(d):
        sep = SEPARATOR_RE.match(d, pos)
        if sep.end() > pos:
            out.append(d[pos:sep.end()])
            pos = sep.end()
            last = None
            continue

        if PATH_COMMAND_RE.match(d, pos):
            command = d[pos].lower()
            arity = PATH_ARITY[command]
            index = 0
            out.append(d[pos])
            pos += 1
            last = None
            continue
        if not arity:
            raise MalformedNumber(d, pos)

        if command == "a" and index % arity in (3, 4):
            m = ARC_FLAG_RE.match(d, pos)
            if not m:
                raise MalformedNumber(d, pos)
            out.append(m.group(0))
            last = None
        else:
            m = NUM_TOKEN_RE.match(d, pos)
            if not m:
                raise MalformedNumber(d, pos)
            text = format_number(float(m.group(0)), kind, precision)
            if last is not None and (text[0].isdigit() or (
                    text[0] == "." and not any(c in last for c in ".e"))):
                out.append(" ")
            out.append(text)
            last = text
        pos = m.end()
        index += 1
    return "".join(out)
