import argparse
import logging
from pathlib import Path
from typing import Optional

# Import configuration management
import sys
sys.path.append(str(Path(__file__).parent.parent))
from config_manager import ConfigManager

from flask import Flask, jsonify
from werkzeug.middleware.proxy_fix import ProxyFix

from bento_service.catalog import CatalogProvider, WatchHistoryStore
from bento_service.layout import BentoComposer
from bento_service.overrides import OverrideStore
from bento_service.ranking import RankingEngine
from bento_service.scorer_client import RecommendationScorerClient, build_session

from app.bento_admin.factory import create_bento_admin_module
from app.feed.factory import create_feed_module

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).parent.parent


def _resolve(path_value: str) -> Path:
    """Relative config paths are anchored at the project root."""
    path = Path(path_value)
    return path if path.is_absolute() else BASE_DIR / path


def create_app(config_manager: Optional[ConfigManager] = None) -> Flask:
    """Build the Flask app with the feed and bento admin modules wired in.

    Args:
        config_manager: Configuration to use, a fresh ConfigManager when omitted
    """
    config_manager = config_manager or ConfigManager()
    paths_config = config_manager.get_paths_config()
    ranking_config = config_manager.get_ranking_config()
    layout_config = config_manager.get_layout_config()
    scorer_config = config_manager.get_scorer_config()
    feed_config = config_manager.get_feed_config()

    app = Flask(__name__)
    app.wsgi_app = ProxyFix(
            app.wsgi_app,
            x_proto = 1,     # trust 1 hop for X-Forwarded-Proto
            x_host  = 1,     # trust 1 hop for X-Forwarded-Host
            x_prefix= 1)     # <-- pay attention to X-Forwarded-Prefix

    # -------------------------------------------------------------------------
    # Shared components
    # -------------------------------------------------------------------------

    data_dir = _resolve(paths_config.data_dir)
    user_data_dir = _resolve(paths_config.user_data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)
    user_data_dir.mkdir(parents=True, exist_ok=True)

    catalog = CatalogProvider(_resolve(paths_config.catalog_file))
    override_store = OverrideStore(_resolve(paths_config.overrides_file))
    history_store = WatchHistoryStore(user_data_dir)

    engine = RankingEngine(
        half_life_days=ranking_config.half_life_days,
        recency_weight=ranking_config.recency_weight,
        popularity_weight=ranking_config.popularity_weight,
        featured_boost=ranking_config.featured_boost,
        personalization_weight=ranking_config.personalization_weight,
        max_position_shift=ranking_config.max_position_shift,
    )
    composer = BentoComposer(
        featured_band=layout_config.featured_band,
        large_band=layout_config.large_band,
        medium_band=layout_config.medium_band,
        size_boost_enabled=layout_config.size_boost_enabled,
    )

    scorer = None
    if scorer_config.enabled and scorer_config.base_url:
        scorer = RecommendationScorerClient(
            base_url=scorer_config.base_url,
            timeout=scorer_config.timeout_seconds,
            session=build_session(),
        )
    else:
        logger.info("Recommendation scorer disabled, feeds will not be personalized")

    # -------------------------------------------------------------------------
    # Modules
    # -------------------------------------------------------------------------

    feed_module = create_feed_module(
        catalog=catalog,
        override_store=override_store,
        history_store=history_store,
        engine=engine,
        composer=composer,
        scorer=scorer,
        cache_ttl_seconds=feed_config.cache_ttl_seconds,
        cache_max_entries=feed_config.cache_max_entries,
    )

    bento_admin_module = create_bento_admin_module(
        catalog=catalog,
        override_store=override_store,
        engine=engine,
        on_change=feed_module["service"].clear_cache,
    )

    app.register_blueprint(feed_module["blueprint"])
    app.register_blueprint(bento_admin_module["blueprint"])

    app.extensions["bento"] = {
        "feed": feed_module,
        "bento_admin": bento_admin_module,
    }

    @app.get("/actuator/health")
    def actuator_health():
        """Health check endpoint for monitoring tools and cloud platforms."""
        return jsonify({
            "status": "UP",
            "service": "bento-feed"
        }), 200

    return app


# -----------------------------------------------------------------------------
# Entry point
# -----------------------------------------------------------------------------

if __name__ == "__main__":
    from bento_service.logging_config import setup_logging

    parser = argparse.ArgumentParser(description="Flask application for the bento feed")
    parser.add_argument("--port", type=int, help="Port to run the server on")
    parser.add_argument("--host", type=str, help="Host to bind the server to")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    args = parser.parse_args()

    manager = ConfigManager()
    app_config = manager.get_app_config()

    # Override configuration with command line arguments
    if args.port:
        app_config.port = args.port
    if args.host:
        app_config.host = args.host
    if args.debug:
        app_config.debug = args.debug

    setup_logging(debug=app_config.debug)
    print(f"✅ Serving catalog from {_resolve(manager.get_paths_config().catalog_file).resolve()}")
    print(f"   - Server: {app_config.host}:{app_config.port}")
    create_app(manager).run(
        host=app_config.host,
        port=app_config.port,
        debug=app_config.debug
    )
