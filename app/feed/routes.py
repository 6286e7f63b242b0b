"""
Feed routes for the bento grid and its debug view.
"""
from flask import Blueprint, jsonify, request

from bento_service.errors import InvalidInputError

from .models import FeedOptions, FeedPage
from .services import FeedService


def _flag(name: str) -> bool:
    return (request.args.get(name) or "").strip().lower() in ("1", "true", "yes")


def create_feed_routes(feed_service: FeedService) -> Blueprint:
    """Create feed routes blueprint."""
    bp = Blueprint('feed', __name__, url_prefix='/api/feed')

    def _get_viewer_id():
        """Viewer from the uid cookie, falling back to the ?viewer= parameter."""
        return request.cookies.get("uid") or (request.args.get("viewer") or "").strip() or None

    def _get_options() -> FeedOptions:
        content_type = (request.args.get("content_type") or "").strip().lower() or None
        return FeedOptions(
            content_type=content_type,
            exclude_news=_flag("exclude_news"),
            simulate_no_history=_flag("simulate_no_history"),
        )

    def _get_pagination_params() -> dict:
        """Extract and validate offset/limit from the request."""
        try:
            offset = max(0, int(request.args.get("offset", 0)))
        except ValueError:
            offset = 0
        try:
            limit = int(request.args.get("limit", 20))
        except ValueError:
            limit = 20
        return {"offset": offset, "limit": limit}

    @bp.route('/', methods=['GET'])
    def get_feed():
        """
        Get the ranked and composed feed.

        Query parameters:
            - viewer: Viewer id when no uid cookie is present
            - content_type: article, video or news
            - exclude_news: true to drop news posts
            - simulate_no_history: true to rank as a brand-new viewer
            - offset: Index of the first post to return (default 0)
            - limit: Page size, 1 to 100 (default 20)
        """
        try:
            view = feed_service.build_feed(_get_viewer_id(), _get_options())
        except InvalidInputError as e:
            return jsonify(e.to_dict()), 400
        page = FeedPage(len(view.ranking.items), **_get_pagination_params())
        return jsonify(view.to_dict(page))

    @bp.route('/debug', methods=['GET'])
    def get_feed_debug():
        """Ranking diagnostics for every post (same query parameters as the feed)."""
        try:
            view = feed_service.build_feed(_get_viewer_id(), _get_options())
        except InvalidInputError as e:
            return jsonify(e.to_dict()), 400
        return jsonify(view.to_debug_dict())

    @bp.route('/clear-cache', methods=['POST'])
    def clear_cache():
        """Clear the feed cache."""
        feed_service.clear_cache()
        return jsonify({"status": "ok", "message": "Cache cleared"})

    return bp
