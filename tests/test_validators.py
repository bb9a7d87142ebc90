from conftest import FixedRandom, build_app
from rewardforge.app import RewardApp
from rewardforge.config import RewardForgeConfig
from rewardforge.domain.catalog import CatalogItem, Rarity
from rewardforge.validators import validate_app


def test_complete_app_is_valid():
    assert validate_app(build_app(rng=FixedRandom(0.5))) == []


def test_empty_app_reports_missing_items():
    errors = validate_app(RewardApp(RewardForgeConfig()))
    assert "No reward items registered in application." in errors


def test_drawable_tier_without_items():
    app = RewardApp(RewardForgeConfig())
    app.items.item(CatalogItem("c1", "Pebble Puppy", Rarity.COMMON))
    errors = validate_app(app)
    assert "Rarity 'legendary' can be drawn but no items are registered for it." in errors
    assert any("Pity rule at 5 forces 'epic'" in error for error in errors)


def test_unreachable_tier_is_not_an_error_when_weight_is_zero():
    app = RewardApp(RewardForgeConfig())
    app.items.item(CatalogItem("c1", "Pebble Puppy", Rarity.COMMON))
    app.config.economy.rarity_weights = {"common": 1.0}
    app.config.economy.pity_rules = []
    assert validate_app(app) == []


def test_invalid_economy_tables():
    app = build_app(rng=FixedRandom(0.5))
    economy = app.config.economy
    economy.draw_cost = 0
    economy.duplicate_rewards = {"common": 5, "rare": 1, "epic": 1, "legendary": 1}
    economy.purchase_prices = {"common": 1, "rare": 0, "epic": 3}
    errors = validate_app(app)
    assert "Economy 'draw_cost' must be positive." in errors
    assert any(error.startswith("Economy duplicate rewards are invalid") for error in errors)
    assert "Purchase price for 'rare' must be positive." in errors
    assert "No purchase price configured for rarity 'legendary'." in errors
