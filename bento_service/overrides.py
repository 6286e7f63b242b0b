"""
Manual override store for drag-and-drop reordering and editor-chosen sizes.

Every write is a full-batch, last-writer-wins update persisted atomically to
a single JSON file. Overlapping edits from two editors are not reconciled.
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .errors import InvalidInputError, OverrideStoreError
from .models import Post, PostId, SizeClass
from .validation import ensure_unique_ids

logger = logging.getLogger(__name__)


@dataclass
class LayoutUpdate:
    """One row of a batch layout save: size and order for a single post."""
    post_id: PostId
    order: int
    size: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LayoutUpdate":
        if "post_id" not in data or "order" not in data:
            raise InvalidInputError("layout update needs post_id and order", [repr(dict(data))])
        order = data["order"]
        if not isinstance(order, int) or isinstance(order, bool) or order < 0:
            raise InvalidInputError("layout order must be a non-negative integer", [repr(order)])
        return cls(post_id=data["post_id"], order=order, size=data.get("size"))


@dataclass
class OverrideSnapshot:
    """Persisted override state.

    ``order`` is the dense manual order (index == bento_order) or None when no
    reorder has been saved yet. ``sizes`` maps post ids to a size class, or to
    None when an editor explicitly cleared the size.
    """
    version: int = 0
    updated_at: Optional[str] = None
    order: Optional[List[PostId]] = None
    sizes: Dict[PostId, Optional[str]] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "OverrideSnapshot":
        return cls()

    def bento_order_of(self, post_id: PostId) -> Optional[int]:
        if self.order is None:
            return None
        try:
            return self.order.index(post_id)
        except ValueError:
            return None

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "updated_at": self.updated_at,
            "order": list(self.order) if self.order is not None else None,
            "sizes": [{"post_id": pid, "size": size} for pid, size in self.sizes.items()],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "OverrideSnapshot":
        sizes: Dict[PostId, Optional[str]] = {}
        for row in data.get("sizes") or []:
            sizes[row["post_id"]] = _validate_size(row.get("size"))
        order = data.get("order")
        return cls(
            version=int(data.get("version", 0)),
            updated_at=data.get("updated_at"),
            order=list(order) if order is not None else None,
            sizes=sizes,
        )


class OverrideStore:
    """Persists bento_order and declared_size overrides."""

    def __init__(self, overrides_file: Path):
        """
        Initialize OverrideStore.

        Args:
            overrides_file: Path to the JSON file holding the overrides
        """
        self.overrides_file = Path(overrides_file)
        self._lock = Lock()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def snapshot(self) -> OverrideSnapshot:
        """Load the current override state."""
        with self._lock:
            return self._load_data()

    @property
    def version(self) -> int:
        return self.snapshot().version

    def apply_to(self, posts: Iterable[Post], snapshot: Optional[OverrideSnapshot] = None) -> List[Post]:
        """Overlay stored overrides onto catalog posts.

        Once a reorder has been saved the stored order is authoritative for
        every post: posts missing from it lose any catalog bento_order.
        """
        snapshot = snapshot or self.snapshot()
        positions = (
            {post_id: index for index, post_id in enumerate(snapshot.order)}
            if snapshot.order is not None
            else None
        )
        result: List[Post] = []
        for post in posts:
            update: Dict[str, Any] = {}
            if positions is not None:
                update["bento_order"] = positions.get(post.id)
            if post.id in snapshot.sizes:
                size = snapshot.sizes[post.id]
                update["declared_size"] = SizeClass(size) if size is not None else None
            result.append(post.model_copy(update=update) if update else post)
        return result

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def reorder(
        self,
        ordered_post_ids: Sequence[PostId],
        known_ids: Optional[Iterable[PostId]] = None,
    ) -> OverrideSnapshot:
        """Persist a complete manual order.

        Args:
            ordered_post_ids: Post ids front to back; positions become bento_order
            known_ids: Optional catalog ids to validate against

        Raises:
            InvalidInputError: on duplicate or unknown ids
            OverrideStoreError: if the file cannot be written
        """
        ordered = list(ordered_post_ids)
        ensure_unique_ids(ordered)
        _ensure_known(ordered, known_ids)
        with self._lock:
            data = self._load_data()
            data.order = ordered
            self._commit(data)
        logger.info(f"Saved manual bento order for {len(ordered)} posts (version {data.version})")
        return data

    def set_size(
        self,
        post_id: PostId,
        size_class: Optional[str],
        known_ids: Optional[Iterable[PostId]] = None,
    ) -> OverrideSnapshot:
        """Persist (or clear, with None) the declared size of one post."""
        size = _validate_size(size_class)
        _ensure_known([post_id], known_ids)
        with self._lock:
            data = self._load_data()
            data.sizes[post_id] = size
            self._commit(data)
        logger.info(f"Set bento size of post {post_id!r} to {size} (version {data.version})")
        return data

    def apply_layout(
        self,
        updates: Sequence[Any],
        known_ids: Optional[Iterable[PostId]] = None,
    ) -> OverrideSnapshot:
        """Save order and size for a batch of posts in one write."""
        rows = [u if isinstance(u, LayoutUpdate) else LayoutUpdate.from_dict(u) for u in updates]
        ensure_unique_ids(row.post_id for row in rows)
        orders = [row.order for row in rows]
        if len(set(orders)) != len(orders):
            raise InvalidInputError("layout orders must be unique", [repr(orders)])
        _ensure_known([row.post_id for row in rows], known_ids)
        sizes = {row.post_id: _validate_size(row.size) for row in rows}

        ordered = [row.post_id for row in sorted(rows, key=lambda r: r.order)]
        with self._lock:
            data = self._load_data()
            data.order = ordered
            data.sizes.update(sizes)
            self._commit(data)
        logger.info(f"Saved bento layout for {len(rows)} posts (version {data.version})")
        return data

    def reset(self) -> OverrideSnapshot:
        """Drop every manual override."""
        with self._lock:
            try:
                version = self._load_data().version
            except OverrideStoreError as e:
                logger.warning(f"Resetting unreadable bento overrides: {e}")
                version = 0
            fresh = OverrideSnapshot(version=version)
            self._commit(fresh)
        logger.info("Cleared all bento overrides")
        return fresh

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _commit(self, data: OverrideSnapshot) -> None:
        data.version += 1
        data.updated_at = datetime.now(timezone.utc).isoformat(timespec="seconds")
        self._save_data(data)

    def _load_data(self) -> OverrideSnapshot:
        """Load override data from file."""
        if not self.overrides_file.exists():
            return OverrideSnapshot.empty()
        try:
            with open(self.overrides_file, "r", encoding="utf-8") as f:
                return OverrideSnapshot.from_dict(json.load(f))
        except (OSError, AttributeError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Error loading bento overrides: {e}")
            raise OverrideStoreError(f"cannot read {self.overrides_file}: {e}") from e

    def _save_data(self, data: OverrideSnapshot) -> None:
        """Write override data atomically (temp file + rename)."""
        try:
            self.overrides_file.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.overrides_file.parent, prefix=".overrides-", suffix=".json"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data.to_dict(), f, ensure_ascii=False, indent=2)
                os.replace(tmp_name, self.overrides_file)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            logger.error(f"Error saving bento overrides: {e}")
            raise OverrideStoreError(f"cannot write {self.overrides_file}: {e}") from e


def _validate_size(size_class: Optional[str]) -> Optional[str]:
    if size_class is None:
        return None
    if isinstance(size_class, SizeClass):
        return size_class.value
    if not SizeClass.is_valid(size_class):
        allowed = ", ".join(s.value for s in SizeClass)
        raise InvalidInputError(f"invalid size class {size_class!r}", [f"allowed: {allowed}"])
    return SizeClass(size_class).value


def _ensure_known(post_ids: Iterable[PostId], known_ids: Optional[Iterable[PostId]]) -> None:
    if known_ids is None:
        return
    known = set(known_ids)
    unknown = [post_id for post_id in post_ids if post_id not in known]
    if unknown:
        raise InvalidInputError(
            "unknown post ids", [f"unknown id: {post_id!r}" for post_id in unknown]
        )
