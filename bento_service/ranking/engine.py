"""
Feed ranking engine.

Turns a catalog snapshot plus an optional per-viewer recommendation map into
a fully ordered, annotated list. The engine is a pure function of its inputs
(the reference time is passed in), so results can be cached per catalog
version and viewer without locking.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union
import logging
import math

from ..models import Post, PostId, RankedItem, RankingMeta, RankingResult, RankReason
from ..validation import parse_posts, post_id_sort_key

_LOG = logging.getLogger("bento_service.ranking")

DEFAULT_HALF_LIFE_DAYS = 7.0
DEFAULT_RECENCY_WEIGHT = 0.6
DEFAULT_POPULARITY_WEIGHT = 0.4
DEFAULT_FEATURED_BOOST = 1.5
DEFAULT_PERSONALIZATION_WEIGHT = 1.0
DEFAULT_MAX_POSITION_SHIFT = 5.0

# Below this no single signal is considered to explain the placement.
REASON_FLOOR = 0.05

SECONDS_PER_DAY = 24 * 60 * 60


# ---------------------------------------------------------------------------
# Core data structures
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class SignalBreakdown:
    """Weighted, personalization-free contributions for one post."""

    recency: float
    popularity: float
    featured: float

    @property
    def total(self) -> float:
        return self.recency + self.popularity + self.featured


@dataclass(slots=True)
class _Scored:
    post: Post
    signals: SignalBreakdown
    raw_rec_score: float = 0.0
    normalized_rec_score: float = 0.0
    position_shift: float = 0.0
    algorithmic_rank: int = 0
    final_sort_key: float = 0.0


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class RankingEngine:
    """Blends editorial intent, freshness, popularity and personalization."""

    def __init__(
        self,
        half_life_days: float = DEFAULT_HALF_LIFE_DAYS,
        recency_weight: float = DEFAULT_RECENCY_WEIGHT,
        popularity_weight: float = DEFAULT_POPULARITY_WEIGHT,
        featured_boost: float = DEFAULT_FEATURED_BOOST,
        personalization_weight: float = DEFAULT_PERSONALIZATION_WEIGHT,
        max_position_shift: float = DEFAULT_MAX_POSITION_SHIFT,
    ):
        if half_life_days <= 0:
            raise ValueError("half_life_days must be positive")
        if max_position_shift < 0:
            raise ValueError("max_position_shift must not be negative")
        if featured_boost <= recency_weight + popularity_weight:
            _LOG.warning(
                "featured_boost %.2f does not exceed recency+popularity weights %.2f; "
                "featured posts rely on the locked top band alone",
                featured_boost,
                recency_weight + popularity_weight,
            )
        self.half_life_days = float(half_life_days)
        self.recency_weight = float(recency_weight)
        self.popularity_weight = float(popularity_weight)
        self.featured_boost = float(featured_boost)
        self.personalization_weight = float(personalization_weight)
        self.max_position_shift = float(max_position_shift)

    def rank(
        self,
        posts: Iterable[Union[Post, Mapping[str, Any]]],
        rec_scores: Optional[Mapping[PostId, float]] = None,
        now: Optional[datetime] = None,
    ) -> RankingResult:
        """Rank a catalog snapshot.

        Args:
            posts: Catalog posts (or raw records, validated first)
            rec_scores: Optional sparse ``post_id -> raw score`` map
            now: Reference time for recency; defaults to the current UTC time

        Returns:
            RankingResult with items in final order and batch metadata

        Raises:
            InvalidInputError: if any post is malformed or ids repeat
        """
        catalog = parse_posts(posts)
        if not catalog:
            return RankingResult(
                items=[], meta=RankingMeta(max_position_shift=self.max_position_shift)
            )

        reference = _as_utc(now or datetime.now(timezone.utc))
        max_views = max(post.view_count for post in catalog)
        scored = [
            _Scored(post=post, signals=self._signals(post, reference, max_views))
            for post in catalog
        ]

        max_rec_score = self._attach_rec_scores(scored, rec_scores)
        has_personalization = max_rec_score > 0

        # Base order: featured band first, then weighted score, then id.
        base_order = sorted(scored, key=self._base_order_key)
        for position, entry in enumerate(base_order):
            entry.algorithmic_rank = position

        band_offset = -(len(scored) + self.max_position_shift + 1)
        for entry in scored:
            entry.final_sort_key = entry.algorithmic_rank + entry.position_shift
            if entry.post.is_featured:
                entry.final_sort_key += band_offset

        final_order = sorted(
            scored, key=lambda e: (e.final_sort_key, post_id_sort_key(e.post.id))
        )

        final_order = _apply_pins(final_order)
        base_positions = {
            entry.post.id: position for position, entry in enumerate(_apply_pins(base_order))
        }

        items: List[RankedItem] = []
        for final_rank, entry in enumerate(final_order):
            base_rank = base_positions[entry.post.id]
            items.append(
                RankedItem(
                    post_id=entry.post.id,
                    raw_rec_score=entry.raw_rec_score,
                    normalized_rec_score=entry.normalized_rec_score,
                    base_sort_key=entry.signals.total,
                    base_rank=base_rank,
                    position_shift=entry.position_shift,
                    final_sort_key=entry.final_sort_key,
                    final_rank=final_rank,
                    rank_change=final_rank - base_rank,
                    reason=self._reason(entry),
                    is_featured=entry.post.is_featured,
                    is_pinned=entry.post.bento_order is not None,
                )
            )

        meta = RankingMeta(
            total_posts=len(items),
            featured_count=sum(1 for item in items if item.is_featured),
            pinned_count=sum(1 for item in items if item.is_pinned),
            has_personalization=has_personalization,
            max_rec_score=max_rec_score,
            max_position_shift=self.max_position_shift,
        )
        _LOG.debug(
            "Ranked %d posts (featured=%d, pinned=%d, personalized=%s)",
            meta.total_posts,
            meta.featured_count,
            meta.pinned_count,
            has_personalization,
        )
        return RankingResult(items=items, meta=meta)

    # ------------------------------------------------------------------
    # Scoring helpers
    # ------------------------------------------------------------------

    def recency(self, post: Post, now: datetime) -> float:
        """Exponential decay from the publish time; drafts carry no freshness."""
        if post.published_at is None:
            return 0.0
        age_seconds = (_as_utc(now) - _as_utc(post.published_at)).total_seconds()
        age_days = max(age_seconds / SECONDS_PER_DAY, 0.0)
        return 0.5 ** (age_days / self.half_life_days)

    @staticmethod
    def popularity(view_count: int, max_views: int) -> float:
        """Log-scaled view count relative to the most viewed post in the batch."""
        denominator = math.log1p(max_views)
        if denominator <= 0:
            return 0.0
        return math.log1p(view_count) / denominator

    def _signals(self, post: Post, now: datetime, max_views: int) -> SignalBreakdown:
        return SignalBreakdown(
            recency=self.recency_weight * self.recency(post, now),
            popularity=self.popularity_weight * self.popularity(post.view_count, max_views),
            featured=self.featured_boost if post.is_featured else 0.0,
        )

    def _attach_rec_scores(
        self, scored: Sequence[_Scored], rec_scores: Optional[Mapping[PostId, float]]
    ) -> float:
        """Normalize recommendation scores in place and return the batch maximum."""
        if not rec_scores:
            return 0.0

        for entry in scored:
            entry.raw_rec_score = _lookup_score(rec_scores, entry.post.id)

        max_rec_score = max((entry.raw_rec_score for entry in scored), default=0.0)
        if max_rec_score <= 0:
            return 0.0

        limit = self.max_position_shift
        for entry in scored:
            normalized = entry.raw_rec_score / max_rec_score
            entry.normalized_rec_score = normalized
            if normalized > 0:
                entry.position_shift = max(-limit, min(limit, -normalized * limit))
        return max_rec_score

    def _base_order_key(self, entry: _Scored) -> tuple:
        return (
            0 if entry.post.is_featured else 1,
            -entry.signals.total,
            post_id_sort_key(entry.post.id),
        )

    def _reason(self, entry: _Scored) -> str:
        """Tag the signal that contributed most to the placement."""
        contributions = [
            (RankReason.FEATURED, entry.signals.featured),
            (RankReason.HIGH_PERSONALIZATION, entry.normalized_rec_score * self.personalization_weight),
            (RankReason.POPULAR, entry.signals.popularity),
            (RankReason.RECENT, entry.signals.recency),
        ]
        reason, value = max(contributions, key=lambda pair: pair[1])
        if value < REASON_FLOOR:
            return RankReason.DEFAULT
        return reason


# ---------------------------------------------------------------------------
# Manual pins
# ---------------------------------------------------------------------------


def _apply_pins(ordered: List[_Scored]) -> List[_Scored]:
    """Put posts with a bento_order at that exact slot, fill gaps in order."""
    total = len(ordered)
    pinned = sorted(
        (entry for entry in ordered if entry.post.bento_order is not None),
        key=lambda e: (e.post.bento_order, post_id_sort_key(e.post.id)),
    )
    if not pinned:
        return list(ordered)

    slots: List[Optional[_Scored]] = [None] * total
    for entry in pinned:
        slots[_free_slot(slots, min(entry.post.bento_order, total - 1))] = entry

    remaining = iter(entry for entry in ordered if entry.post.bento_order is None)
    for index in range(total):
        if slots[index] is None:
            slots[index] = next(remaining)
    return slots  # type: ignore[return-value]


def _free_slot(slots: List[Optional[_Scored]], wanted: int) -> int:
    for index in range(wanted, len(slots)):
        if slots[index] is None:
            return index
    for index in range(wanted - 1, -1, -1):
        if slots[index] is None:
            return index
    raise RuntimeError("no free slot left for pinned post")


def _lookup_score(rec_scores: Mapping[Any, float], post_id: PostId) -> float:
    value = rec_scores.get(post_id)
    if value is None:
        value = rec_scores.get(str(post_id))
    if value is None:
        return 0.0
    try:
        score = float(value)
    except (TypeError, ValueError):
        _LOG.warning("Ignoring non-numeric recommendation score %r for post %r", value, post_id)
        return 0.0
    if not math.isfinite(score) or score < 0:
        _LOG.warning("Ignoring out-of-range recommendation score %r for post %r", value, post_id)
        return 0.0
    return score


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ---------------------------------------------------------------------------
# Convenience entry points
# ---------------------------------------------------------------------------


def build_default_engine() -> RankingEngine:
    """Engine with the stock weights."""
    return RankingEngine()


def rank(
    posts: Iterable[Union[Post, Mapping[str, Any]]],
    rec_scores: Optional[Mapping[PostId, float]] = None,
    now: Optional[datetime] = None,
    engine: Optional[RankingEngine] = None,
) -> List[RankedItem]:
    """Rank posts and return just the ordered items."""
    return (engine or build_default_engine()).rank(posts, rec_scores, now=now).items
