# Bento service package: feed ranking, grid composition and manual overrides

from .errors import (
    BentoError,
    InvalidInputError,
    OverrideStoreError,
    ScorerUnavailableError,
)
from .models import (
    ContentType,
    Placement,
    Post,
    RankedItem,
    RankingMeta,
    RankingResult,
    SizeClass,
)
from .ranking import RankingEngine, build_default_engine, rank
from .layout import BentoComposer, compose
from .overrides import OverrideSnapshot, OverrideStore
from .catalog import CatalogProvider, WatchHistoryStore
from .scorer_client import RecommendationScorerClient
from .logging_config import (
    setup_logging,
    stop_logging,
    get_logger,
    ThreadSafeLoggingConfig,
)

__all__ = [
    "BentoError",
    "InvalidInputError",
    "OverrideStoreError",
    "ScorerUnavailableError",
    "ContentType",
    "Placement",
    "Post",
    "RankedItem",
    "RankingMeta",
    "RankingResult",
    "SizeClass",
    "RankingEngine",
    "build_default_engine",
    "rank",
    "BentoComposer",
    "compose",
    "OverrideSnapshot",
    "OverrideStore",
    "CatalogProvider",
    "WatchHistoryStore",
    "RecommendationScorerClient",
    "setup_logging",
    "stop_logging",
    "get_logger",
    "ThreadSafeLoggingConfig",
]
