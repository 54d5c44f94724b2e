"""Error types and diagnostic records shared by the cleaning passes."""

from typing import NamedTuple


class CleanError(ValueError):
    """Base class for recoverable per-value failures."""


class MalformedNumber(CleanError):
    def __init__(self, text: str, cursor: int = 0):
        super().__init__(f"no number at offset {cursor} in {text!r}")
        self.text = text
        self.cursor = cursor


class UnknownUnit(CleanError):
    def __init__(self, text: str, unit: str):
        super().__init__(f"unknown unit {unit!r} in {text!r}")
        self.text = text
        self.unit = unit


# Diagnostics below are recorded, never raised.

class DanglingReference(NamedTuple):
    source: str    # tag (and id, if any) of the referencing element
    target: str


class CyclicReference(NamedTuple):
    source: str    # id whose edge closes the cycle
    target: str
