"""High-level helpers that simplify bootstrapping RewardForge economies.

This module provides a straightforward, batteries-included API oriented towards
developers who want a working classroom economy from a single JSON catalog
without wiring stores and services by hand.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from rich.console import Console

from . import RewardApp, RewardForgeConfig
from .diagnostics.economy_simulator import EconomySimulator
from .loaders import load_catalog_from_json, validate_catalog_dict

console = Console()


@dataclass(slots=True)
class SimpleEconomyConfig:
    """Minimal settings required to run a RewardForge economy."""

    catalog_path: Path
    storage: str = "memory"  # "memory" or path to SQLite file
    rng_seed: int | None = None
    preview_pulls: int = 0


async def bootstrap_app(config: SimpleEconomyConfig) -> RewardApp:
    """Create, initialise and populate a :class:`RewardApp` with sensible defaults."""

    reward_config = RewardForgeConfig.from_env()
    if config.storage != "memory":
        db_path = Path(config.storage).expanduser().resolve()
        db_path.parent.mkdir(parents=True, exist_ok=True)
        reward_config.storage.backend = "sqlalchemy"
        reward_config.storage.dsn = f"sqlite+aiosqlite:///{db_path.as_posix()}"
    if config.rng_seed is not None:
        reward_config.rng_seed = config.rng_seed

    app = RewardApp(reward_config)
    await app.init_backend()
    load_catalog_from_json(app, config.catalog_path)

    summary = f"{len(app.items.catalog)} items, storage: {reward_config.storage.backend}"
    if config.preview_pulls > 0:
        preview = EconomySimulator(app).simulate(pulls=config.preview_pulls)
        summary += (
            f"\nPreview of {preview.pulls} draws: {preview.uniques} unique, "
            f"{preview.duplicates} duplicates, {preview.pity_triggers} pity"
        )
    console.print(f"[bold green]RewardForge ready![/bold green]\n{summary}")
    return app


@dataclass(slots=True)
class CatalogBuilder:
    """Imperative builder that produces JSON catalogs."""

    items: list[dict] = field(default_factory=list)
    economy: dict = field(default_factory=dict)

    def add_item(
        self,
        item_id: str,
        name: str,
        *,
        rarity: str = "common",
        set_id: str | None = None,
        description: str = "",
        weight: float | None = None,
    ) -> "CatalogBuilder":
        item: dict = {
            "id": item_id,
            "name": name,
            "rarity": rarity,
        }
        if set_id:
            item["set"] = set_id
        if description:
            item["description"] = description
        if weight is not None:
            item["weight"] = weight
        self.items.append(item)
        return self

    def rarity_weights(self, weights: dict[str, float]) -> "CatalogBuilder":
        self.economy["rarityWeights"] = dict(weights)
        return self

    def pity_rule(self, threshold: int, forced_rarity: str, label: str = "") -> "CatalogBuilder":
        rule = {"threshold": threshold, "forcedRarity": forced_rarity}
        if label:
            rule["label"] = label
        self.economy.setdefault("pityRules", []).append(rule)
        return self

    def duplicate_rewards(self, rewards: dict[str, int]) -> "CatalogBuilder":
        self.economy["duplicateRewards"] = dict(rewards)
        return self

    def purchase_prices(self, prices: dict[str, int]) -> "CatalogBuilder":
        self.economy["purchasePrices"] = dict(prices)
        return self

    def tickets(self, *, accrual_threshold: int | None = None, draw_cost: int | None = None) -> "CatalogBuilder":
        if accrual_threshold is not None:
            self.economy["accrualThreshold"] = accrual_threshold
        if draw_cost is not None:
            self.economy["drawCost"] = draw_cost
        return self

    def build(self) -> dict:
        catalog: dict = {"items": self.items}
        if self.economy:
            catalog["economy"] = self.economy
        errors = validate_catalog_dict(catalog)
        if errors:
            raise ValueError("Catalog validation failed:\n" + "\n".join(f"- {err}" for err in errors))
        return catalog

    def save(self, path: Path) -> None:
        catalog = self.build()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(catalog, ensure_ascii=False, indent=2), encoding="utf-8")


__all__ = [
    "SimpleEconomyConfig",
    "CatalogBuilder",
    "bootstrap_app",
]
