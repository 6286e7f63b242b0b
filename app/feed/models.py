"""
Feed models for request options and assembled feed views.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from bento_service.errors import InvalidInputError
from bento_service.models import ContentType, Placement, Post, RankingResult


@dataclass(frozen=True)
class FeedOptions:
    """Per-request feed switches."""
    content_type: Optional[str] = None
    exclude_news: bool = False
    simulate_no_history: bool = False

    def __post_init__(self):
        if self.content_type is not None:
            try:
                ContentType(self.content_type)
            except ValueError:
                allowed = ", ".join(c.value for c in ContentType)
                raise InvalidInputError(
                    f"invalid content_type {self.content_type!r}", [f"allowed: {allowed}"]
                )

    def cache_key(self) -> tuple:
        return (self.content_type or "", self.exclude_news, self.simulate_no_history)

    def accepts(self, post: Post) -> bool:
        """Check whether a post passes the content filters."""
        if self.exclude_news and post.is_news:
            return False
        if self.content_type and post.content_type.value != self.content_type:
            return False
        return True


class FeedPage:
    """Offset window over a ranked feed."""

    def __init__(self, total_items: int, offset: int = 0, limit: int = 20):
        self.total_items = total_items
        self.offset = max(0, offset)
        self.limit = max(1, min(limit, 100))
        self.end = min(self.offset + self.limit, total_items)

    @property
    def has_more(self) -> bool:
        return self.end < self.total_items

    def get_page_items(self, items: List[Any]) -> List[Any]:
        """Get items for the current window."""
        return items[self.offset:self.end]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "offset": self.offset,
            "limit": self.limit,
            "total_count": self.total_items,
            "has_more": self.has_more,
            "next_offset": self.end if self.has_more else None,
        }


@dataclass
class FeedView:
    """A ranked and composed feed for one viewer."""
    viewer_id: Optional[str]
    options: FeedOptions
    ranking: RankingResult
    placements: List[Placement]
    posts: Dict[Any, Post] = field(default_factory=dict)
    generated_at: datetime = field(default_factory=datetime.now)

    def _post_fields(self, post_id) -> Dict[str, Any]:
        post = self.posts.get(post_id)
        if post is None:
            return {}
        return {
            "title": post.title,
            "content_type": post.content_type.value,
            "published_at": post.published_at.isoformat() if post.published_at else None,
            "view_count": post.view_count,
            "declared_size": post.declared_size.value if post.declared_size else None,
            "bento_order": post.bento_order,
        }

    def to_dict(self, page: Optional[FeedPage] = None) -> Dict[str, Any]:
        """Feed payload consumed by the grid renderer.

        Ranking and composition always cover the whole feed so placements
        stay stable across pages; only the returned window is sliced.
        """
        items = self.ranking.items if page is None else page.get_page_items(self.ranking.items)
        placements = {p.post_id: p for p in self.placements}
        entries = []
        for item in items:
            placement = placements.get(item.post_id)
            entries.append({
                "post_id": item.post_id,
                "final_rank": item.final_rank,
                **self._post_fields(item.post_id),
                "placement": placement.model_dump(mode="json") if placement else None,
            })
        payload = {
            "posts": entries,
            "meta": self.ranking.meta.model_dump(mode="json"),
            "generated_at": self.generated_at.isoformat(),
        }
        if page is not None:
            payload["pagination"] = page.to_dict()
        return payload

    def to_debug_dict(self) -> Dict[str, Any]:
        """Payload for the operator debug view: why each post is where it is."""
        entries = []
        for item in self.ranking.items:
            entries.append({
                "post_id": item.post_id,
                **self._post_fields(item.post_id),
                "debug": item.model_dump(mode="json"),
            })
        return {
            "viewer_id": self.viewer_id,
            "simulate_no_history": self.options.simulate_no_history,
            "posts": entries,
            "meta": self.ranking.meta.model_dump(mode="json"),
            "generated_at": self.generated_at.isoformat(),
        }
