"""
Layout package: rank-to-grid placement for the bento feed.
"""

from .composer import BentoComposer, RowMajorPacker, compose
from .spans import BREAKPOINT_COLUMNS, DESKTOP_COLUMNS, SPAN_TABLE

__all__ = [
    "BentoComposer",
    "RowMajorPacker",
    "compose",
    "BREAKPOINT_COLUMNS",
    "DESKTOP_COLUMNS",
    "SPAN_TABLE",
]
