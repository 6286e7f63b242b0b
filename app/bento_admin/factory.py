"""
Factory for creating the bento admin module.
"""
from typing import Callable, Optional

from bento_service.catalog import CatalogProvider
from bento_service.overrides import OverrideStore
from bento_service.ranking import RankingEngine, build_default_engine

from .routes import create_bento_admin_routes
from .services import BentoAdminService


def create_bento_admin_module(
    catalog: CatalogProvider,
    override_store: OverrideStore,
    engine: Optional[RankingEngine] = None,
    on_change: Optional[Callable[[], None]] = None,
) -> dict:
    """
    Create the bento admin module with all its components.

    Args:
        catalog: Catalog provider used to validate post ids
        override_store: Store the editor writes to
        engine: Ranking engine used to derive the current order
        on_change: Called after every successful write (feed cache invalidation)

    Returns:
        Dictionary containing:
            - service: BentoAdminService instance
            - blueprint: Flask blueprint for routes
    """
    service = BentoAdminService(
        catalog=catalog,
        override_store=override_store,
        engine=engine or build_default_engine(),
        on_change=on_change,
    )
    blueprint = create_bento_admin_routes(service)

    return {
        "service": service,
        "blueprint": blueprint
    }
