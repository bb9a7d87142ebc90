import pytest

from rewardforge.app import RewardApp
from rewardforge.config import RewardForgeConfig
from rewardforge.domain.catalog import CatalogItem, Rarity
from rewardforge.testing.fixtures import memory_app  # noqa: F401


class FixedRandom:
    """Random source that always returns the same roll."""

    def __init__(self, value: float) -> None:
        self.value = value

    def random(self) -> float:
        return self.value


def build_app(rng=None, **config_kwargs) -> RewardApp:
    app = RewardApp(RewardForgeConfig(**config_kwargs), rng=rng)
    app.items.items(
        [
            CatalogItem("c1", "Pebble Puppy", Rarity.COMMON, set_id="meadow"),
            CatalogItem("c2", "Clover Bunny", Rarity.COMMON, set_id="meadow"),
            CatalogItem("r1", "Moss Turtle", Rarity.RARE, set_id="forest"),
            CatalogItem("e1", "Frost Owl", Rarity.EPIC, set_id="sky"),
            CatalogItem("l1", "Sun Dragon", Rarity.LEGENDARY, set_id="sky"),
        ]
    )
    return app


@pytest.fixture()
def app():
    return build_app(rng=FixedRandom(0.99))
