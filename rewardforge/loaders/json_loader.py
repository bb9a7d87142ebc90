"""Load catalog items and economy tables from JSON definitions."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Sequence, TYPE_CHECKING

from ..config import EconomyConfig
from ..domain.catalog import CatalogItem, Rarity
from ..domain.duplicates import DuplicateRewardTable
from ..domain.pity import parse_pity_rules
from ..domain.rarity import RarityWeights

if TYPE_CHECKING:
    from ..app import RewardApp

_RARITY_VALUES = {rarity.value for rarity in Rarity}


@dataclass(slots=True)
class CatalogDefinition:
    items: Sequence[CatalogItem]
    economy: dict[str, Any]


def load_catalog_from_json(app: "RewardApp", path: str | Path) -> CatalogDefinition:
    """Load items and economy overrides from a JSON file and apply them to the app."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    definition = parse_catalog_dict(data)
    app.items.items(definition.items)
    apply_economy(app.config.economy, definition.economy)
    return definition


def parse_catalog_dict(data: dict[str, Any]) -> CatalogDefinition:
    """Parse a JSON dict (already decoded) into domain objects."""
    errors = validate_catalog_dict(data)
    if errors:
        raise ValueError(_format_errors("Catalog validation failed", errors))
    items = tuple(parse_item(entry) for entry in data.get("items", []))
    return CatalogDefinition(items=items, economy=parse_economy(data.get("economy", {})))


def parse_item(entry: dict[str, Any]) -> CatalogItem:
    return CatalogItem(
        item_id=entry["id"],
        name=entry.get("name", entry["id"]),
        rarity=Rarity(entry.get("rarity", Rarity.COMMON.value)),
        set_id=entry.get("set"),
        description=entry.get("description", ""),
        weight=float(entry.get("weight", 1.0)),
    )


def parse_economy(entry: dict[str, Any]) -> dict[str, Any]:
    """Translate camelCase JSON keys into :class:`EconomyConfig` field values."""
    parsed: dict[str, Any] = {}
    if "accrualThreshold" in entry:
        parsed["accrual_threshold"] = int(entry["accrualThreshold"])
    if "drawCost" in entry:
        parsed["draw_cost"] = int(entry["drawCost"])
    if "rarityWeights" in entry:
        parsed["rarity_weights"] = {str(k): float(v) for k, v in entry["rarityWeights"].items()}
    if "pityRules" in entry:
        parsed["pity_rules"] = [
            {
                "threshold": int(rule["threshold"]),
                "forced_rarity": str(rule["forcedRarity"]),
                "label": str(rule.get("label", "")),
            }
            for rule in entry["pityRules"]
        ]
    if "duplicateRewards" in entry:
        parsed["duplicate_rewards"] = {str(k): int(v) for k, v in entry["duplicateRewards"].items()}
    if "purchasePrices" in entry:
        parsed["purchase_prices"] = {str(k): int(v) for k, v in entry["purchasePrices"].items()}
    return parsed


def apply_economy(economy: EconomyConfig, overrides: dict[str, Any]) -> None:
    for name, value in overrides.items():
        setattr(economy, name, value)


def validate_catalog_file(path: str | Path) -> list[str]:
    """Validate catalog JSON file and return a list of errors."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return validate_catalog_dict(data)


def validate_catalog_dict(data: dict[str, Any]) -> list[str]:
    errors: list[str] = []

    items_raw = data.get("items")
    if not isinstance(items_raw, list) or not items_raw:
        errors.append("Catalog must contain non-empty 'items' array.")
    else:
        item_ids: set[str] = set()
        for idx, entry in enumerate(items_raw, start=1):
            if not isinstance(entry, dict):
                errors.append(f"Item #{idx} must be an object.")
                continue
            item_id = entry.get("id")
            if not isinstance(item_id, str) or not item_id.strip():
                errors.append(f"Item #{idx} must define non-empty 'id'.")
                continue
            if item_id in item_ids:
                errors.append(f"Item id '{item_id}' defined multiple times.")
            item_ids.add(item_id)

            rarity_value = entry.get("rarity", Rarity.COMMON.value)
            if rarity_value not in _RARITY_VALUES:
                errors.append(f"Item '{item_id}' has invalid rarity '{rarity_value}'.")

            name = entry.get("name")
            if name is not None and (not isinstance(name, str) or not name.strip()):
                errors.append(f"Item '{item_id}' name must be a non-empty string.")

            set_id = entry.get("set")
            if set_id is not None and (not isinstance(set_id, str) or not set_id.strip()):
                errors.append(f"Item '{item_id}' set must be a non-empty string.")

            weight = entry.get("weight")
            if weight is not None and (not isinstance(weight, (int, float)) or float(weight) <= 0):
                errors.append(f"Item '{item_id}' has invalid 'weight' value '{weight}'.")

    economy = data.get("economy")
    if economy is None:
        return errors
    if not isinstance(economy, dict):
        errors.append("'economy' must be an object.")
        return errors

    for key in ("accrualThreshold", "drawCost"):
        value = economy.get(key)
        if value is not None and (not isinstance(value, int) or value <= 0):
            errors.append(f"Economy '{key}' must be a positive integer.")

    weights = economy.get("rarityWeights")
    if weights is not None:
        if not isinstance(weights, dict) or not weights:
            errors.append("Economy 'rarityWeights' must be a non-empty object.")
        else:
            errors.extend(_validate_rarity_keys("rarityWeights", weights))
            try:
                RarityWeights.from_mapping(weights)
            except (TypeError, ValueError) as exc:
                errors.append(f"Economy 'rarityWeights' invalid: {exc}")

    pity_rules = economy.get("pityRules")
    if pity_rules is not None:
        if not isinstance(pity_rules, list):
            errors.append("Economy 'pityRules' must be an array.")
        else:
            for idx, rule in enumerate(pity_rules, start=1):
                if not isinstance(rule, dict):
                    errors.append(f"Pity rule #{idx} must be an object.")
                    continue
                threshold = rule.get("threshold")
                if not isinstance(threshold, int) or threshold < 1:
                    errors.append(f"Pity rule #{idx} must define integer 'threshold' >= 1.")
                if rule.get("forcedRarity") not in _RARITY_VALUES:
                    errors.append(
                        f"Pity rule #{idx} has invalid 'forcedRarity' '{rule.get('forcedRarity')}'."
                    )
            if not any(e.startswith("Pity rule") for e in errors):
                try:
                    parse_pity_rules(
                        {"threshold": r["threshold"], "forced_rarity": r["forcedRarity"]}
                        for r in pity_rules
                    )
                except ValueError as exc:
                    errors.append(f"Economy 'pityRules' invalid: {exc}")

    rewards = economy.get("duplicateRewards")
    if rewards is not None:
        if not isinstance(rewards, dict):
            errors.append("Economy 'duplicateRewards' must be an object.")
        else:
            errors.extend(_validate_rarity_keys("duplicateRewards", rewards))
            try:
                DuplicateRewardTable.from_mapping(rewards)
            except (TypeError, ValueError) as exc:
                errors.append(f"Economy 'duplicateRewards' invalid: {exc}")

    prices = economy.get("purchasePrices")
    if prices is not None:
        if not isinstance(prices, dict):
            errors.append("Economy 'purchasePrices' must be an object.")
        else:
            errors.extend(_validate_rarity_keys("purchasePrices", prices))
            for rarity_code, price in prices.items():
                if not isinstance(price, int) or price <= 0:
                    errors.append(f"Purchase price for '{rarity_code}' must be a positive integer.")

    return errors


def _validate_rarity_keys(section: str, mapping: dict[str, Any]) -> list[str]:
    return [
        f"Economy '{section}' references invalid rarity '{key}'."
        for key in mapping
        if key not in _RARITY_VALUES
    ]


def _format_errors(prefix: str, errors: Iterable[str]) -> str:
    formatted = "\n".join(f"- {err}" for err in errors)
    return f"{prefix}:\n{formatted}"
