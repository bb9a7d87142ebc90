import json

import pytest

from rewardforge.app import RewardApp
from rewardforge.config import RewardForgeConfig
from rewardforge.domain.catalog import Rarity
from rewardforge.loaders import (
    load_catalog_from_json,
    parse_catalog_dict,
    validate_catalog_dict,
    validate_catalog_file,
)

CATALOG = {
    "items": [
        {"id": "pup", "name": "Pebble Puppy", "rarity": "common", "set": "meadow"},
        {"id": "owl", "name": "Frost Owl", "rarity": "epic", "weight": 2.5, "description": "Wise"},
    ],
    "economy": {
        "accrualThreshold": 4,
        "drawCost": 2,
        "rarityWeights": {"epic": 0.1},
        "pityRules": [{"threshold": 4, "forcedRarity": "epic", "label": "Owl time"}],
        "duplicateRewards": {"common": 0, "rare": 1, "epic": 1, "legendary": 2},
        "purchasePrices": {"common": 3, "rare": 6, "epic": 12, "legendary": 20},
    },
}


def test_parse_catalog_dict_maps_items_and_economy():
    definition = parse_catalog_dict(CATALOG)
    pup, owl = definition.items
    assert pup.set_id == "meadow"
    assert pup.weight == 1.0
    assert owl.rarity is Rarity.EPIC
    assert owl.weight == 2.5
    assert owl.description == "Wise"
    assert definition.economy["accrual_threshold"] == 4
    assert definition.economy["pity_rules"] == [
        {"threshold": 4, "forced_rarity": "epic", "label": "Owl time"}
    ]


def test_load_catalog_from_json_configures_app(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(CATALOG), encoding="utf-8")
    app = RewardApp(RewardForgeConfig())

    load_catalog_from_json(app, path)

    assert len(app.items.catalog) == 2
    assert app.config.economy.draw_cost == 2
    assert app.draws.rarity_weights().probability(Rarity.COMMON) == pytest.approx(0.9)
    assert app.draws.pity_rules()[0].forced_rarity is Rarity.EPIC
    assert app.draws.duplicate_converter().bonus_for(Rarity.LEGENDARY) == 2
    assert validate_catalog_file(path) == []


def test_economy_section_is_optional():
    definition = parse_catalog_dict({"items": [{"id": "pup", "rarity": "common"}]})
    assert definition.items[0].name == "pup"
    assert definition.economy == {}


def test_validate_catalog_dict_reports_item_errors():
    errors = validate_catalog_dict(
        {
            "items": [
                {"id": "pup", "rarity": "common"},
                {"id": "pup", "rarity": "mythic"},
                {"name": "No id"},
                {"id": "heavy", "rarity": "rare", "weight": 0},
            ]
        }
    )
    assert "Item id 'pup' defined multiple times." in errors
    assert "Item 'pup' has invalid rarity 'mythic'." in errors
    assert "Item #3 must define non-empty 'id'." in errors
    assert "Item 'heavy' has invalid 'weight' value '0'." in errors


def test_validate_catalog_dict_reports_economy_errors():
    errors = validate_catalog_dict(
        {
            "items": [{"id": "pup", "rarity": "common"}],
            "economy": {
                "drawCost": 0,
                "rarityWeights": {"epic": 0.8, "rare": 0.5},
                "pityRules": [{"threshold": 0, "forcedRarity": "epic"}],
                "duplicateRewards": {"common": 2, "rare": 1, "epic": 3, "legendary": 4},
                "purchasePrices": {"common": -1},
            },
        }
    )
    assert "Economy 'drawCost' must be a positive integer." in errors
    assert any(err.startswith("Economy 'rarityWeights' invalid") for err in errors)
    assert "Pity rule #1 must define integer 'threshold' >= 1." in errors
    assert any(err.startswith("Economy 'duplicateRewards' invalid") for err in errors)
    assert "Purchase price for 'common' must be a positive integer." in errors


def test_validate_catalog_dict_rejects_repeated_pity_thresholds():
    errors = validate_catalog_dict(
        {
            "items": [{"id": "pup", "rarity": "common"}],
            "economy": {
                "pityRules": [
                    {"threshold": 3, "forcedRarity": "rare"},
                    {"threshold": 3, "forcedRarity": "epic"},
                ]
            },
        }
    )
    assert errors == ["Economy 'pityRules' invalid: Pity rules must use distinct thresholds"]


def test_parse_catalog_dict_raises_with_all_errors():
    with pytest.raises(ValueError) as excinfo:
        parse_catalog_dict({"items": []})
    assert "non-empty 'items'" in str(excinfo.value)


def test_missing_rarity_defaults_to_common():
    data = {"items": [{"id": "pup"}]}
    assert validate_catalog_dict(data) == []
    (item,) = parse_catalog_dict(data).items
    assert item.rarity is Rarity.COMMON
