"""Pytest fixtures for RewardForge."""

from __future__ import annotations

import pytest

from ..app import RewardApp
from ..config import RewardForgeConfig


@pytest.fixture()
def memory_app() -> RewardApp:
    config = RewardForgeConfig(rng_seed=1234)
    return RewardApp(config)


def app_fixture(**kwargs) -> RewardApp:
    """Helper for ad-hoc tests where pytest is not available."""
    config = RewardForgeConfig(**kwargs)
    return RewardApp(config)
