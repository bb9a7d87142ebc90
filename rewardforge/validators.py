"""Validation utilities for RewardForge applications."""

from __future__ import annotations

from .app import RewardApp
from .domain.catalog import Rarity
from .domain.duplicates import DuplicateRewardTable
from .domain.pity import parse_pity_rules
from .domain.rarity import RarityWeights


def validate_app(app: RewardApp) -> list[str]:
    """Return list of validation errors discovered in configured app."""
    errors: list[str] = []
    catalog = app.items.catalog
    economy = app.config.economy

    if not len(catalog):
        errors.append("No reward items registered in application.")

    for item in catalog.iter_items():
        if not item.name.strip():
            errors.append(f"Item '{item.item_id}' has an empty name.")
        if item.weight <= 0:
            errors.append(f"Item '{item.item_id}' has non-positive weight '{item.weight}'.")

    if economy.accrual_threshold <= 0:
        errors.append("Economy 'accrual_threshold' must be positive.")
    if economy.draw_cost <= 0:
        errors.append("Economy 'draw_cost' must be positive.")

    try:
        weights = RarityWeights.from_mapping(economy.rarity_weights)
    except (TypeError, ValueError) as exc:
        errors.append(f"Economy rarity weights are invalid: {exc}")
    else:
        for rarity in Rarity:
            if weights.probability(rarity) > 0 and not catalog.has_rarity(rarity):
                errors.append(
                    f"Rarity '{rarity.value}' can be drawn but no items are registered for it."
                )

    try:
        rules = parse_pity_rules(economy.pity_rules)
    except (KeyError, TypeError, ValueError) as exc:
        errors.append(f"Economy pity rules are invalid: {exc}")
    else:
        for rule in rules:
            if not catalog.has_rarity(rule.forced_rarity):
                errors.append(
                    f"Pity rule at {rule.threshold} forces '{rule.forced_rarity.value}' "
                    "but no items are registered for it."
                )

    try:
        DuplicateRewardTable.from_mapping(economy.duplicate_rewards)
    except (TypeError, ValueError) as exc:
        errors.append(f"Economy duplicate rewards are invalid: {exc}")

    for rarity in Rarity:
        price = economy.purchase_prices.get(rarity.value)
        if price is None:
            errors.append(f"No purchase price configured for rarity '{rarity.value}'.")
        elif price <= 0:
            errors.append(f"Purchase price for '{rarity.value}' must be positive.")
    for rarity_code in economy.purchase_prices:
        try:
            Rarity(rarity_code)
        except ValueError:
            errors.append(f"Purchase prices reference invalid rarity '{rarity_code}'.")

    return errors


__all__ = ["validate_app"]
