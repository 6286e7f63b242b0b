"""
Catalog and watch-history providers backed by JSON files.

The catalog file holds every eligible post; watch history lives in one file
per viewer under the user data directory.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .errors import InvalidInputError
from .models import Post, PostId, WatchHistoryItem
from .validation import parse_posts

logger = logging.getLogger(__name__)


class CatalogProvider:
    """Loads and caches the post catalog.

    The parsed catalog is cached until the file's mtime or size changes, so
    repeated feed renders do not re-read or re-validate the file.
    """

    def __init__(self, catalog_file: Path):
        self.catalog_file = Path(catalog_file)
        self._cache: Dict[str, Any] = {
            "posts": None,
            "mtime": 0.0,
            "size": -1,
        }

    def _stat(self) -> tuple[float, int]:
        try:
            stat = self.catalog_file.stat()
        except FileNotFoundError:
            return 0.0, -1
        return stat.st_mtime, stat.st_size

    @property
    def version(self) -> str:
        """Opaque catalog version used in cache keys."""
        mtime, size = self._stat()
        return f"{mtime:.6f}:{size}"

    def load_posts(self) -> List[Post]:
        """Return every post in the catalog.

        Raises:
            InvalidInputError: if the file is not a JSON list of valid posts
        """
        mtime, size = self._stat()
        if (
            self._cache.get("posts") is not None
            and self._cache.get("mtime") == mtime
            and self._cache.get("size") == size
        ):
            return list(self._cache["posts"])

        if size < 0:
            logger.warning(f"Catalog file {self.catalog_file} not found, serving empty feed")
            posts: List[Post] = []
        else:
            try:
                raw = json.loads(self.catalog_file.read_text(encoding="utf-8"))
            except json.JSONDecodeError as e:
                raise InvalidInputError(f"catalog is not valid JSON: {e}") from e
            if isinstance(raw, dict):
                raw = raw.get("posts", [])
            if not isinstance(raw, list):
                raise InvalidInputError("catalog must be a list of posts")
            posts = parse_posts(raw)
            logger.info(f"Loaded {len(posts)} posts from {self.catalog_file}")

        self._cache["posts"] = list(posts)
        self._cache["mtime"] = mtime
        self._cache["size"] = size
        return posts

    def post_ids(self) -> List[PostId]:
        return [post.id for post in self.load_posts()]

    def clear_cache(self) -> None:
        """Clear the internal cache to force re-reading on next request."""
        self._cache = {"posts": None, "mtime": 0.0, "size": -1}


class WatchHistoryStore:
    """Per-viewer engagement history stored as ``<viewer>.json``.

    Shape:
    {
      "watch_history": [ {"post_id": int|str, "engagement_seconds": float}, ... ]
    }
    """

    def __init__(self, user_data_dir: Path):
        self.user_data_dir = Path(user_data_dir)

    def _user_file(self, viewer_id: str) -> Path:
        return self.user_data_dir / f"{viewer_id}.json"

    def load(self, viewer_id: Optional[str]) -> List[WatchHistoryItem]:
        """Load a viewer's history; unknown viewers and broken files yield []."""
        if not viewer_id or not _is_safe_viewer_id(viewer_id):
            return []
        try:
            data = json.loads(self._user_file(viewer_id).read_text(encoding="utf-8"))
        except (FileNotFoundError, json.JSONDecodeError):
            return []

        rows = data.get("watch_history") if isinstance(data, dict) else None
        if not isinstance(rows, list):
            return []

        history: List[WatchHistoryItem] = []
        for row in rows:
            try:
                history.append(WatchHistoryItem.model_validate(row))
            except ValidationError:
                logger.warning(f"Skipping malformed watch history row for {viewer_id}: {row!r}")
        return history


def _is_safe_viewer_id(viewer_id: str) -> bool:
    return bool(viewer_id) and not viewer_id.startswith(".") and "/" not in viewer_id and "\\" not in viewer_id
