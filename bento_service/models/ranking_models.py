"""
Ranking output models.

These are what the operator-facing debug view reads: every field exists to
explain why a post landed where it did.
"""

from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, Field

from .post_models import PostId


class RankReason:
    """Explanation tags attached to every ranked item."""
    FEATURED = "featured"
    HIGH_PERSONALIZATION = "high-personalization"
    POPULAR = "popular"
    RECENT = "recent"
    DEFAULT = "default"

    @classmethod
    def all(cls) -> set[str]:
        return {cls.FEATURED, cls.HIGH_PERSONALIZATION, cls.POPULAR, cls.RECENT, cls.DEFAULT}


class RankedItem(BaseModel):
    """A post after ranking, annotated with its scoring diagnostics."""
    post_id: PostId = Field(description="Ranked post id")
    raw_rec_score: float = Field(default=0.0, description="Recommender score, 0 when absent")
    normalized_rec_score: float = Field(default=0.0, description="raw / max raw in batch")
    base_sort_key: float = Field(description="Personalization-free weighted score")
    base_rank: int = Field(description="Rank under the base key alone (pins applied)")
    position_shift: float = Field(default=0.0, description="Bounded personalization shift, negative moves up")
    final_sort_key: float = Field(description="Slot-space key, lower sorts first")
    final_rank: int = Field(description="0-based position in the final feed")
    rank_change: int = Field(default=0, description="final_rank - base_rank")
    reason: str = Field(default=RankReason.DEFAULT, description="Dominant signal tag")
    is_featured: bool = Field(default=False, description="Echo of the editorial flag")
    is_pinned: bool = Field(default=False, description="Placed by a manual bento_order")


class RankingMeta(BaseModel):
    """Batch-level summary shown above the debug table."""
    total_posts: int = 0
    featured_count: int = 0
    pinned_count: int = 0
    has_personalization: bool = False
    max_rec_score: float = 0.0
    max_position_shift: float = 0.0


class RankingResult(BaseModel):
    """Container for engine output."""
    items: List[RankedItem] = Field(default_factory=list)
    meta: RankingMeta = Field(default_factory=RankingMeta)
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def ordered_ids(self) -> List[PostId]:
        return [item.post_id for item in self.items]
