"""
Bento admin module for manual ordering and sizing of feed posts.
"""

from .services import BentoAdminService
from .routes import create_bento_admin_routes
from .factory import create_bento_admin_module

__all__ = ['BentoAdminService', 'create_bento_admin_routes', 'create_bento_admin_module']
