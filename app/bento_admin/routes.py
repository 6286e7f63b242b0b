"""
Bento admin routes for the layout editor.
"""
import logging

from flask import Blueprint, jsonify, request

from bento_service.errors import InvalidInputError, OverrideStoreError

from .services import BentoAdminService

logger = logging.getLogger(__name__)


def create_bento_admin_routes(admin_service: BentoAdminService) -> Blueprint:
    """Create bento admin routes blueprint."""
    bp = Blueprint('bento_admin', __name__, url_prefix='/api/admin/bento')

    def _payload() -> dict:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise InvalidInputError("request body must be a JSON object")
        return data

    def _saved(snapshot):
        return jsonify({
            "status": "ok",
            "version": snapshot.version,
            "updated_at": snapshot.updated_at,
        })

    @bp.errorhandler(InvalidInputError)
    def handle_invalid_input(e):
        return jsonify(e.to_dict()), 400

    @bp.errorhandler(OverrideStoreError)
    def handle_store_error(e):
        logger.error(f"Bento override store failure: {e}")
        return jsonify({"error": "override store unavailable"}), 500

    @bp.route('/', methods=['GET'])
    def get_layout():
        """Current editorial layout with override state."""
        return jsonify(admin_service.get_layout())

    @bp.route('/reorder', methods=['POST'])
    def reorder():
        """Save a complete manual order: {"order": [post_id, ...]}."""
        data = _payload()
        if "order" not in data:
            return jsonify({"error": "order is required"}), 400
        return _saved(admin_service.reorder(data["order"]))

    @bp.route('/size', methods=['POST'])
    def set_size():
        """Set or clear one size: {"post_id": ..., "size": "large" | null}."""
        data = _payload()
        if "post_id" not in data:
            return jsonify({"error": "post_id is required"}), 400
        return _saved(admin_service.set_size(data["post_id"], data.get("size")))

    @bp.route('/move', methods=['POST'])
    def move():
        """Drag a post to a new position: {"post_id": ..., "index": 0}."""
        data = _payload()
        if "post_id" not in data or "index" not in data:
            return jsonify({"error": "post_id and index are required"}), 400
        return _saved(admin_service.move(data["post_id"], data["index"]))

    @bp.route('/layout', methods=['POST'])
    def apply_layout():
        """Batch save: {"updates": [{"post_id", "order", "size"}, ...]}."""
        data = _payload()
        return _saved(admin_service.apply_layout(data.get("updates")))

    @bp.route('/reset', methods=['POST'])
    def reset():
        """Drop every manual override."""
        return _saved(admin_service.reset())

    return bp
