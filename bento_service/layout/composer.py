"""
Bento layout composer.

Maps ranked items to concrete grid placements. Sizes come from the editor
when declared, otherwise from banding on the position within the item's lane;
news goes to a compact lane that does not take part in span packing. Packing is row-major with a cursor that
never moves backwards, so gaps left by large cells stay gaps.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Sequence, Set, Tuple, Union
import logging

from ..errors import InvalidInputError
from ..models import LaneId, Placement, Post, RankedItem, SizeClass
from ..validation import parse_posts
from .spans import (
    DESKTOP_COLUMNS,
    SIZE_PROMOTIONS,
    compact_card,
    desktop_span,
    responsive_spans,
)

_LOG = logging.getLogger("bento_service.layout")

DEFAULT_FEATURED_BAND = 1   # rank 0
DEFAULT_LARGE_BAND = 3      # ranks 1-2
DEFAULT_MEDIUM_BAND = 7     # ranks 3-6
DEFAULT_BOOST_THRESHOLD = 0.5


class RowMajorPacker:
    """Sparse auto-placement over a fixed number of columns."""

    def __init__(self, columns: int = DESKTOP_COLUMNS):
        if columns < 1:
            raise ValueError("columns must be at least 1")
        self.columns = columns
        self._occupied: Set[Tuple[int, int]] = set()
        self._row = 0
        self._col = 0

    def place(self, width: int, height: int) -> Tuple[int, int]:
        """Place a cell and return its 1-based (column, row) start."""
        width = max(1, min(width, self.columns))
        height = max(1, height)
        row, col = self._row, self._col
        while True:
            if col + width > self.columns:
                row += 1
                col = 0
                continue
            if self._fits(row, col, width, height):
                break
            col += 1

        for r in range(row, row + height):
            for c in range(col, col + width):
                self._occupied.add((r, c))
        self._row, self._col = row, col + width
        return col + 1, row + 1

    def _fits(self, row: int, col: int, width: int, height: int) -> bool:
        return all(
            (r, c) not in self._occupied
            for r in range(row, row + height)
            for c in range(col, col + width)
        )

    @property
    def rows_used(self) -> int:
        return max((r for r, _ in self._occupied), default=-1) + 1


class BentoComposer:
    """Turns ranked items into placements."""

    def __init__(
        self,
        featured_band: int = DEFAULT_FEATURED_BAND,
        large_band: int = DEFAULT_LARGE_BAND,
        medium_band: int = DEFAULT_MEDIUM_BAND,
        size_boost_enabled: bool = True,
        boost_threshold: float = DEFAULT_BOOST_THRESHOLD,
        columns: int = DESKTOP_COLUMNS,
    ):
        if not 0 <= featured_band <= large_band <= medium_band:
            raise ValueError("size bands must satisfy 0 <= featured <= large <= medium")
        self.featured_band = featured_band
        self.large_band = large_band
        self.medium_band = medium_band
        self.size_boost_enabled = size_boost_enabled
        self.boost_threshold = boost_threshold
        self.columns = columns

    def band_size(self, position: int) -> SizeClass:
        """Size implied by position alone."""
        if position < self.featured_band:
            return SizeClass.FEATURED
        if position < self.large_band:
            return SizeClass.LARGE
        if position < self.medium_band:
            return SizeClass.MEDIUM
        return SizeClass.SMALL

    def size_for(
        self, item: RankedItem, post: Post, band_rank: int | None = None
    ) -> Tuple[SizeClass, bool]:
        """Return the size class and whether personalization promoted it.

        band_rank is the item's position within its own lane; when omitted
        the global final rank is used.
        """
        if post.declared_size is not None:
            return post.declared_size, False
        size = self.band_size(item.final_rank if band_rank is None else band_rank)
        if (
            self.size_boost_enabled
            and item.normalized_rec_score > self.boost_threshold
            and size in SIZE_PROMOTIONS
        ):
            return SIZE_PROMOTIONS[size], True
        return size, False

    def compose(
        self,
        ranked: Sequence[RankedItem],
        posts: Iterable[Union[Post, Mapping[str, Any]]],
    ) -> List[Placement]:
        """Build placements for ranked items, in rank order.

        Args:
            ranked: Output of the ranking engine
            posts: The catalog the items were ranked from

        Returns:
            One placement per ranked item, ordered by final rank

        Raises:
            InvalidInputError: if a ranked id has no matching post
        """
        posts_by_id: Dict[Any, Post] = {post.id: post for post in parse_posts(posts)}
        missing = [item.post_id for item in ranked if item.post_id not in posts_by_id]
        if missing:
            raise InvalidInputError(
                "ranked items reference unknown posts",
                [f"unknown id: {post_id!r}" for post_id in missing],
            )

        packer = RowMajorPacker(self.columns)
        lane_counts = {LaneId.PRIMARY: 0, LaneId.COMPACT: 0}
        placements: List[Placement] = []

        for item in sorted(ranked, key=lambda i: i.final_rank):
            post = posts_by_id[item.post_id]
            lane = LaneId.COMPACT if post.is_news else LaneId.PRIMARY
            size, boosted = self.size_for(item, post, band_rank=lane_counts[lane])

            if lane is LaneId.COMPACT:
                placements.append(
                    Placement(
                        post_id=item.post_id,
                        size_class=size,
                        grid_column_span=1,
                        grid_row_span=1,
                        lane_id=LaneId.COMPACT,
                        lane_position=lane_counts[LaneId.COMPACT],
                        compact_card=compact_card(size),
                        size_boosted=boosted,
                    )
                )
                lane_counts[LaneId.COMPACT] += 1
                continue

            span = desktop_span(size)
            column_start, row_start = packer.place(span.columns, span.rows)
            placements.append(
                Placement(
                    post_id=item.post_id,
                    size_class=size,
                    grid_column_span=span.columns,
                    grid_row_span=span.rows,
                    responsive_overrides=responsive_spans(size),
                    lane_id=LaneId.PRIMARY,
                    lane_position=lane_counts[LaneId.PRIMARY],
                    column_start=column_start,
                    row_start=row_start,
                    size_boosted=boosted,
                )
            )
            lane_counts[LaneId.PRIMARY] += 1

        _LOG.debug(
            "Composed %d primary and %d compact placements over %d grid rows",
            lane_counts[LaneId.PRIMARY],
            lane_counts[LaneId.COMPACT],
            packer.rows_used,
        )
        return placements


def compose(
    ranked: Sequence[RankedItem],
    posts: Iterable[Union[Post, Mapping[str, Any]]],
    composer: BentoComposer | None = None,
) -> List[Placement]:
    """Compose placements with the default size bands."""
    return (composer or BentoComposer()).compose(ranked, posts)
