"""
Models package for the bento feed.

This package contains the Pydantic models for catalog posts, ranking
output and grid placements.
"""

from .post_models import (
    ContentType,
    Post,
    PostId,
    SizeClass,
    WatchHistoryItem,
)

from .ranking_models import (
    RankedItem,
    RankingMeta,
    RankingResult,
    RankReason,
)

from .layout_models import (
    CompactCard,
    GridSpan,
    LaneId,
    Placement,
)

__all__ = [
    # Post models
    "ContentType",
    "Post",
    "PostId",
    "SizeClass",
    "WatchHistoryItem",

    # Ranking models
    "RankedItem",
    "RankingMeta",
    "RankingResult",
    "RankReason",

    # Layout models
    "CompactCard",
    "GridSpan",
    "LaneId",
    "Placement",
]
