"""
Feed service: catalog + overrides + optional personalization -> ranked, composed feed.
"""
import logging
from datetime import datetime, timedelta
from threading import Lock
from typing import Dict, List, Optional, Tuple

from bento_service.catalog import CatalogProvider, WatchHistoryStore
from bento_service.errors import OverrideStoreError, ScorerUnavailableError
from bento_service.layout import BentoComposer
from bento_service.models import Post, PostId
from bento_service.overrides import OverrideStore
from bento_service.ranking import RankingEngine
from bento_service.scorer_client import RecommendationScorerClient

from .models import FeedOptions, FeedView

logger = logging.getLogger(__name__)


class FeedService:
    """Assembles feeds and caches them per catalog version, override version and viewer."""

    def __init__(
        self,
        catalog: CatalogProvider,
        override_store: OverrideStore,
        history_store: WatchHistoryStore,
        engine: RankingEngine,
        composer: BentoComposer,
        scorer: Optional[RecommendationScorerClient] = None,
        cache_ttl_seconds: int = 300,
        cache_max_entries: int = 256,
    ):
        self.catalog = catalog
        self.override_store = override_store
        self.history_store = history_store
        self.engine = engine
        self.composer = composer
        self.scorer = scorer
        self._cache: Dict[Tuple, Tuple[datetime, FeedView]] = {}
        self._cache_ttl = timedelta(seconds=max(0, cache_ttl_seconds))
        self._cache_max_entries = max(1, cache_max_entries)
        self._lock = Lock()

    def load_posts(self) -> List[Post]:
        """Catalog posts with manual overrides applied.

        A broken override file must not take the feed down; the catalog's
        own ordering is served instead.
        """
        posts = self.catalog.load_posts()
        try:
            snapshot = self.override_store.snapshot()
        except OverrideStoreError as e:
            logger.error(f"Serving feed without manual overrides: {e}")
            return posts
        return self.override_store.apply_to(posts, snapshot)

    def resolve_rec_scores(
        self, viewer_id: Optional[str], posts: List[Post], simulate_no_history: bool = False
    ) -> Optional[Dict[PostId, float]]:
        """Fetch personalization scores, or None for the cold path."""
        if simulate_no_history or not viewer_id:
            return None
        if self.scorer is None or not self.scorer.enabled:
            return None
        history = self.history_store.load(viewer_id)
        if not history:
            return None
        try:
            return self.scorer.score(viewer_id, history, posts)
        except ScorerUnavailableError as e:
            logger.warning(f"Recommendation scorer unavailable, ranking without it: {e}")
            return None

    def build_feed(
        self,
        viewer_id: Optional[str] = None,
        options: Optional[FeedOptions] = None,
        now: Optional[datetime] = None,
    ) -> FeedView:
        """Rank and compose the feed for a viewer.

        Args:
            viewer_id: Viewer to personalize for, None for anonymous
            options: Content filters and the no-history simulation switch
            now: Reference time for recency (tests pass a fixed value)

        Returns:
            FeedView with ranking diagnostics and placements
        """
        options = options or FeedOptions()
        cache_key = self._cache_key(viewer_id, options)
        if now is None:
            cached = self._cached(cache_key)
            if cached is not None:
                return cached

        posts = [post for post in self.load_posts() if options.accepts(post)]
        rec_scores = self.resolve_rec_scores(viewer_id, posts, options.simulate_no_history)
        ranking = self.engine.rank(posts, rec_scores, now=now)
        placements = self.composer.compose(ranking.items, posts)

        view = FeedView(
            viewer_id=viewer_id,
            options=options,
            ranking=ranking,
            placements=placements,
            posts={post.id: post for post in posts},
        )
        logger.info(
            f"Built feed for viewer={viewer_id or 'anonymous'}: {ranking.meta.total_posts} posts, "
            f"personalized={ranking.meta.has_personalization}"
        )
        if now is None:
            self._store(cache_key, view)
        return view

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    def _cache_key(self, viewer_id: Optional[str], options: FeedOptions) -> Tuple:
        try:
            override_version = self.override_store.version
        except OverrideStoreError:
            override_version = -1
        return (self.catalog.version, override_version, viewer_id or "", options.cache_key())

    def _cached(self, key: Tuple) -> Optional[FeedView]:
        with self._lock:
            hit = self._cache.get(key)
            if hit is None:
                return None
            stored_at, view = hit
            if datetime.now() - stored_at >= self._cache_ttl:
                self._cache.pop(key, None)
                return None
            return view

    def _store(self, key: Tuple, view: FeedView) -> None:
        if self._cache_ttl.total_seconds() <= 0:
            return
        now = datetime.now()
        with self._lock:
            expired = [k for k, (stored_at, _) in self._cache.items() if now - stored_at >= self._cache_ttl]
            for k in expired:
                del self._cache[k]
            self._cache.pop(key, None)
            self._cache[key] = (now, view)
            # Insertion order is age order; drop the oldest past the cap.
            while len(self._cache) > self._cache_max_entries:
                del self._cache[next(iter(self._cache))]

    def clear_cache(self) -> None:
        """Drop every cached feed."""
        with self._lock:
            self._cache = {}

    def cache_size(self) -> int:
        with self._lock:
            return len(self._cache)
