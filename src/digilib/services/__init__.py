from .rating import recompute_book_rating, reconcile_all_ratings
from .assets import AssetLifecycleManager
from .catalog import CatalogCoordinator

__all__ = [
    "recompute_book_rating",
    "reconcile_all_ratings",
    "AssetLifecycleManager",
    "CatalogCoordinator",
]
