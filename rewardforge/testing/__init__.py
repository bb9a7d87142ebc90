"""Testing utilities for RewardForge."""

from .factory import CatalogItemFactory, StudentFactory
from .fixtures import app_fixture, memory_app
from .test_client import ScenarioClient

__all__ = [
    "CatalogItemFactory",
    "StudentFactory",
    "app_fixture",
    "memory_app",
    "ScenarioClient",
]
