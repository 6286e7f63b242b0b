"""
Ranking package for bento feed ordering.

Pure and Flask-free so the web layer, batch jobs and debug scripts can all
share it.
"""

from .engine import (
    DEFAULT_FEATURED_BOOST,
    DEFAULT_HALF_LIFE_DAYS,
    DEFAULT_MAX_POSITION_SHIFT,
    DEFAULT_PERSONALIZATION_WEIGHT,
    DEFAULT_POPULARITY_WEIGHT,
    DEFAULT_RECENCY_WEIGHT,
    RankingEngine,
    SignalBreakdown,
    build_default_engine,
    rank,
)

__all__ = [
    "DEFAULT_FEATURED_BOOST",
    "DEFAULT_HALF_LIFE_DAYS",
    "DEFAULT_MAX_POSITION_SHIFT",
    "DEFAULT_PERSONALIZATION_WEIGHT",
    "DEFAULT_POPULARITY_WEIGHT",
    "DEFAULT_RECENCY_WEIGHT",
    "RankingEngine",
    "SignalBreakdown",
    "build_default_engine",
    "rank",
]
