"""
Bento admin service: manual ordering and sizing of feed posts.
"""
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from bento_service.catalog import CatalogProvider
from bento_service.errors import InvalidInputError
from bento_service.models import PostId
from bento_service.overrides import OverrideSnapshot, OverrideStore
from bento_service.ranking import RankingEngine

logger = logging.getLogger(__name__)


class BentoAdminService:
    """Validates editor actions against the catalog and persists them."""

    def __init__(
        self,
        catalog: CatalogProvider,
        override_store: OverrideStore,
        engine: RankingEngine,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self.catalog = catalog
        self.override_store = override_store
        self.engine = engine
        self.on_change = on_change

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()

    def resolve_post_id(self, raw_id: Any, known_ids: Optional[List[PostId]] = None) -> PostId:
        """Map a client-supplied id onto the catalog id.

        JSON clients sometimes send "12" for an integer id 12; match on the
        string form when the exact value is not in the catalog.
        """
        known_ids = known_ids if known_ids is not None else self.catalog.post_ids()
        if raw_id in known_ids:
            return raw_id
        by_str = {str(post_id): post_id for post_id in known_ids}
        if str(raw_id) in by_str:
            return by_str[str(raw_id)]
        raise InvalidInputError("unknown post ids", [f"unknown id: {raw_id!r}"])

    def current_order(self) -> List[PostId]:
        """Effective editorial order: overrides applied, no personalization."""
        posts = self.override_store.apply_to(self.catalog.load_posts())
        return self.engine.rank(posts).ordered_ids()

    def get_layout(self) -> Dict[str, Any]:
        """Current layout as the admin editor shows it."""
        snapshot = self.override_store.snapshot()
        posts = self.override_store.apply_to(self.catalog.load_posts(), snapshot)
        by_id = {post.id: post for post in posts}
        ranking = self.engine.rank(posts)

        rows = []
        for item in ranking.items:
            post = by_id[item.post_id]
            rows.append({
                "post_id": post.id,
                "title": post.title,
                "content_type": post.content_type.value,
                "position": item.final_rank,
                "bento_order": post.bento_order,
                "declared_size": post.declared_size.value if post.declared_size else None,
                "is_featured": post.is_featured,
                "is_pinned": item.is_pinned,
            })
        return {
            "posts": rows,
            "version": snapshot.version,
            "updated_at": snapshot.updated_at,
            "has_manual_order": snapshot.order is not None,
        }

    def reorder(self, ordered_ids: Sequence[Any]) -> OverrideSnapshot:
        """Persist a complete manual order."""
        if not isinstance(ordered_ids, (list, tuple)):
            raise InvalidInputError("order must be a list of post ids")
        known_ids = self.catalog.post_ids()
        resolved = [self.resolve_post_id(raw, known_ids) for raw in ordered_ids]
        snapshot = self.override_store.reorder(resolved, known_ids=known_ids)
        self._changed()
        return snapshot

    def set_size(self, post_id: Any, size_class: Optional[str]) -> OverrideSnapshot:
        """Persist or clear the declared size of one post."""
        known_ids = self.catalog.post_ids()
        resolved = self.resolve_post_id(post_id, known_ids)
        snapshot = self.override_store.set_size(resolved, size_class, known_ids=known_ids)
        self._changed()
        return snapshot

    def move(self, post_id: Any, new_index: Any) -> OverrideSnapshot:
        """Drag one post to a new position and re-index everything densely.

        Args:
            post_id: Post being dragged
            new_index: Zero-based target position in the current order

        Returns:
            Snapshot after the reorder was saved
        """
        if not isinstance(new_index, int) or isinstance(new_index, bool):
            raise InvalidInputError("index must be an integer", [repr(new_index)])
        order = self.current_order()
        resolved = self.resolve_post_id(post_id, order)
        if not 0 <= new_index < len(order):
            raise InvalidInputError(
                "index out of range", [f"index {new_index} not in [0, {len(order) - 1}]"]
            )
        order.remove(resolved)
        order.insert(new_index, resolved)
        logger.info(f"Moving post {resolved!r} to position {new_index}")
        return self.reorder(order)

    def apply_layout(self, updates: Sequence[Any]) -> OverrideSnapshot:
        """Batch save of order and size from the layout editor."""
        if not isinstance(updates, (list, tuple)):
            raise InvalidInputError("updates must be a list")
        known_ids = self.catalog.post_ids()
        rows = []
        for row in updates:
            if not isinstance(row, dict) or "post_id" not in row:
                raise InvalidInputError("layout update needs post_id and order", [repr(row)])
            rows.append({**row, "post_id": self.resolve_post_id(row["post_id"], known_ids)})
        snapshot = self.override_store.apply_layout(rows, known_ids=known_ids)
        self._changed()
        return snapshot

    def reset(self) -> OverrideSnapshot:
        snapshot = self.override_store.reset()
        self._changed()
        return snapshot
