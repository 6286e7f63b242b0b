"""
Static span tables for the bento grid.

Desktop is a 5-column grid. Every size degrades through the 1200/900/600 px
breakpoints down to a single column.
"""

from typing import Dict, Tuple

from ..models import CompactCard, GridSpan, SizeClass

DESKTOP_COLUMNS = 5

# max-width breakpoint (px) -> grid columns available below it
BREAKPOINT_COLUMNS: Dict[int, int] = {
    1200: 4,
    900: 2,
    600: 1,
}

# size -> (desktop span, {breakpoint: span})
SPAN_TABLE: Dict[SizeClass, Tuple[Tuple[int, int], Dict[int, Tuple[int, int]]]] = {
    SizeClass.FEATURED: ((3, 2), {1200: (2, 2), 900: (2, 2), 600: (1, 1)}),
    SizeClass.LARGE: ((2, 2), {1200: (2, 2), 900: (2, 2), 600: (1, 1)}),
    SizeClass.BANNER: ((3, 1), {1200: (3, 1), 900: (2, 1), 600: (1, 1)}),
    SizeClass.MEDIUM: ((2, 1), {1200: (2, 1), 900: (2, 1), 600: (1, 1)}),
    SizeClass.SMALL: ((1, 1), {1200: (1, 1), 900: (1, 1), 600: (1, 1)}),
}

# Compact (news) lane cards are fixed boxes in a wrapping flex row.
COMPACT_CARD_TABLE: Dict[SizeClass, Tuple[int, int]] = {
    SizeClass.SMALL: (280, 90),
    SizeClass.MEDIUM: (340, 100),
    SizeClass.LARGE: (420, 110),
    SizeClass.BANNER: (520, 110),
    SizeClass.FEATURED: (460, 120),
}

# One-step promotions used by the personalization size boost.
SIZE_PROMOTIONS: Dict[SizeClass, SizeClass] = {
    SizeClass.SMALL: SizeClass.MEDIUM,
    SizeClass.MEDIUM: SizeClass.LARGE,
}


def desktop_span(size: SizeClass) -> GridSpan:
    columns, rows = SPAN_TABLE[size][0]
    return GridSpan(columns=columns, rows=rows)


def responsive_spans(size: SizeClass) -> Dict[int, GridSpan]:
    return {
        breakpoint: GridSpan(columns=columns, rows=rows)
        for breakpoint, (columns, rows) in SPAN_TABLE[size][1].items()
    }


def compact_card(size: SizeClass) -> CompactCard:
    width, height = COMPACT_CARD_TABLE[size]
    return CompactCard(width=width, height=height)
