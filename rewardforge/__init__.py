"""RewardForge classroom reward economy engine public API."""

from .app import RewardApp
from .config import RewardForgeConfig
from .registry import CatalogRegistry

__all__ = [
    "RewardApp",
    "RewardForgeConfig",
    "CatalogRegistry",
]
