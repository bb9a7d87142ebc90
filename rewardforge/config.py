"""Configuration models for RewardForge."""

from __future__ import annotations

import os
import json
from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Sequence


StorageBackend = Literal["memory", "sqlalchemy"]

DEFAULT_RARITY_WEIGHTS: Mapping[str, float] = {
    "legendary": 0.01,
    "epic": 0.07,
    "rare": 0.22,
    "common": 0.70,
}

DEFAULT_PITY_RULES: Sequence[Mapping[str, Any]] = (
    {"threshold": 3, "forced_rarity": "rare", "label": "Rare guaranteed"},
    {"threshold": 5, "forced_rarity": "epic", "label": "Epic guaranteed"},
)

DEFAULT_DUPLICATE_REWARDS: Mapping[str, int] = {
    "common": 1,
    "rare": 2,
    "epic": 3,
    "legendary": 5,
}

DEFAULT_PURCHASE_PRICES: Mapping[str, int] = {
    "common": 4,
    "rare": 9,
    "epic": 18,
    "legendary": 32,
}


@dataclass(slots=True)
class StorageConfig:
    """Configure how student reward state and the ledger are persisted."""

    backend: StorageBackend = "memory"
    dsn: str | None = None
    echo_sql: bool = False

    def resolve_dsn(self) -> str | None:
        if self.dsn:
            return self.dsn
        if self.backend == "sqlalchemy":
            return "sqlite+aiosqlite:///./rewardforge.db"
        return None


@dataclass(slots=True)
class RetryConfig:
    """Bounded exponential backoff for conflicting or failed units of work."""

    max_attempts: int = 5
    base_delay: float = 0.02
    max_delay: float = 0.5

    def delay_for(self, attempt: int) -> float:
        return min(self.max_delay, self.base_delay * (2 ** (attempt - 1)))


@dataclass(slots=True)
class EconomyConfig:
    """Rules of the ticket economy. Loaded once, read-only afterwards."""

    accrual_threshold: int = 5
    draw_cost: int = 1
    rarity_weights: Mapping[str, float] = field(default_factory=lambda: dict(DEFAULT_RARITY_WEIGHTS))
    pity_rules: Sequence[Mapping[str, Any]] = field(
        default_factory=lambda: [dict(rule) for rule in DEFAULT_PITY_RULES]
    )
    duplicate_rewards: Mapping[str, int] = field(default_factory=lambda: dict(DEFAULT_DUPLICATE_REWARDS))
    purchase_prices: Mapping[str, int] = field(default_factory=lambda: dict(DEFAULT_PURCHASE_PRICES))


@dataclass(slots=True)
class AdminConfig:
    """Feature switches for classroom staff tooling."""

    enable_audit_logs: bool = True
    max_manual_grant: int = 50


@dataclass(slots=True)
class RewardForgeConfig:
    """Top-level configuration container."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    economy: EconomyConfig = field(default_factory=EconomyConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    admin: AdminConfig = field(default_factory=AdminConfig)
    rng_seed: int | None = None

    @classmethod
    def from_env(cls) -> "RewardForgeConfig":
        """Create config from environment variables prefixed with REWARDFORGE_."""
        prefix = "REWARDFORGE_"
        storage_backend = os.getenv(f"{prefix}STORAGE_BACKEND", "memory")
        dsn = os.getenv(f"{prefix}STORAGE_DSN")
        echo_sql = os.getenv(f"{prefix}STORAGE_ECHO_SQL", "false").lower() in {"1", "true", "yes"}

        economy = EconomyConfig(
            accrual_threshold=int(os.getenv(f"{prefix}ACCRUAL_THRESHOLD", "5")),
            draw_cost=int(os.getenv(f"{prefix}DRAW_COST", "1")),
            rarity_weights=_parse_json_object(
                f"{prefix}RARITY_WEIGHTS", DEFAULT_RARITY_WEIGHTS, float
            ),
            pity_rules=_parse_pity_rules(os.getenv(f"{prefix}PITY_RULES")),
            duplicate_rewards=_parse_json_object(
                f"{prefix}DUPLICATE_REWARDS", DEFAULT_DUPLICATE_REWARDS, int
            ),
            purchase_prices=_parse_json_object(
                f"{prefix}PURCHASE_PRICES", DEFAULT_PURCHASE_PRICES, int
            ),
        )

        retry = RetryConfig(
            max_attempts=int(os.getenv(f"{prefix}RETRY_MAX_ATTEMPTS", "5")),
            base_delay=float(os.getenv(f"{prefix}RETRY_BASE_DELAY", "0.02")),
            max_delay=float(os.getenv(f"{prefix}RETRY_MAX_DELAY", "0.5")),
        )

        admin = AdminConfig(
            enable_audit_logs=os.getenv(f"{prefix}ADMIN_ENABLE_AUDIT_LOGS", "true").lower()
            in {"1", "true", "yes"},
            max_manual_grant=int(os.getenv(f"{prefix}ADMIN_MAX_MANUAL_GRANT", "50")),
        )

        return cls(
            storage=StorageConfig(backend=storage_backend, dsn=dsn, echo_sql=echo_sql),
            economy=economy,
            retry=retry,
            admin=admin,
            rng_seed=(
                int(os.getenv(f"{prefix}RNG_SEED")) if os.getenv(f"{prefix}RNG_SEED") else None
            ),
        )


def _parse_json_object(name: str, default: Mapping[str, Any], cast) -> dict[str, Any]:
    raw = os.getenv(name)
    if not raw:
        return dict(default)
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON for {name}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"{name} must be a JSON object")
    return {str(k): cast(v) for k, v in data.items()}


def _parse_pity_rules(raw: str | None) -> list[dict[str, Any]]:
    if not raw:
        return [dict(rule) for rule in DEFAULT_PITY_RULES]
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError("Invalid JSON for REWARDFORGE_PITY_RULES") from exc
    if not isinstance(data, list):
        raise ValueError("REWARDFORGE_PITY_RULES must be a JSON array")
    rules: list[dict[str, Any]] = []
    for entry in data:
        if not isinstance(entry, dict) or "threshold" not in entry:
            raise ValueError("Each pity rule needs 'threshold' and 'forced_rarity'")
        rarity = entry.get("forced_rarity", entry.get("forcedRarity"))
        if rarity is None:
            raise ValueError("Each pity rule needs 'threshold' and 'forced_rarity'")
        rules.append(
            {
                "threshold": int(entry["threshold"]),
                "forced_rarity": str(rarity),
                "label": str(entry.get("label", "")),
            }
        )
    return rules
