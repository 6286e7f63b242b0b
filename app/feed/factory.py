"""
Factory for creating the feed module.
"""
from typing import Optional

from bento_service.catalog import CatalogProvider, WatchHistoryStore
from bento_service.layout import BentoComposer
from bento_service.overrides import OverrideStore
from bento_service.ranking import RankingEngine, build_default_engine
from bento_service.scorer_client import RecommendationScorerClient

from .routes import create_feed_routes
from .services import FeedService


def create_feed_module(
    catalog: CatalogProvider,
    override_store: OverrideStore,
    history_store: WatchHistoryStore,
    engine: Optional[RankingEngine] = None,
    composer: Optional[BentoComposer] = None,
    scorer: Optional[RecommendationScorerClient] = None,
    cache_ttl_seconds: int = 300,
    cache_max_entries: int = 256,
) -> dict:
    """
    Create the feed module with all its components.

    Args:
        catalog: Catalog provider
        override_store: Manual override store
        history_store: Watch-history provider
        engine: Ranking engine, stock weights when omitted
        composer: Layout composer, stock bands when omitted
        scorer: Optional recommendation scorer client
        cache_ttl_seconds: How long assembled feeds are reused
        cache_max_entries: Upper bound on cached feeds, oldest dropped first

    Returns:
        Dictionary containing:
            - service: FeedService instance
            - blueprint: Flask blueprint for routes
    """
    service = FeedService(
        catalog=catalog,
        override_store=override_store,
        history_store=history_store,
        engine=engine or build_default_engine(),
        composer=composer or BentoComposer(),
        scorer=scorer,
        cache_ttl_seconds=cache_ttl_seconds,
        cache_max_entries=cache_max_entries,
    )
    blueprint = create_feed_routes(service)

    return {
        "service": service,
        "blueprint": blueprint
    }
