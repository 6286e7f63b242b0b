"""
Feed module for the ranked bento grid and its debug view.
"""

from .services import FeedService
from .routes import create_feed_routes
from .factory import create_feed_module

__all__ = ['FeedService', 'create_feed_routes', 'create_feed_module']
