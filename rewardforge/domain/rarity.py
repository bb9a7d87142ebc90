"""Probability-weighted rarity resolution."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from .catalog import RandomSource, Rarity

_TOLERANCE = 1e-9


@dataclass(frozen=True, slots=True)
class RarityWeights:
    """Per-tier draw probabilities.

    Tiers missing from ``weights`` get probability 0. Whatever is left when
    the configured probabilities sum to less than 1 is assigned to
    :attr:`Rarity.COMMON`, so ``{legendary: 0.01, epic: 0.07}`` means a 92%
    chance of common. A total above 1 is a configuration error.
    """

    weights: Mapping[Rarity, float]

    def __post_init__(self) -> None:
        normalized: dict[Rarity, float] = {}
        for rarity, weight in self.weights.items():
            rarity = Rarity(rarity)
            weight = float(weight)
            if weight < 0:
                raise ValueError(f"Rarity weight for '{rarity.value}' cannot be negative")
            normalized[rarity] = weight
        total = sum(normalized.values())
        if total > 1 + _TOLERANCE:
            raise ValueError(f"Rarity weights sum to {total:.6f}, expected at most 1")
        object.__setattr__(self, "weights", normalized)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, float]) -> "RarityWeights":
        return cls({Rarity(key): float(value) for key, value in raw.items()})

    def probability(self, rarity: Rarity) -> float:
        explicit = self.weights.get(rarity, 0.0)
        if rarity is Rarity.COMMON:
            return explicit + self.remainder
        return explicit

    @property
    def remainder(self) -> float:
        return max(0.0, 1.0 - sum(self.weights.values()))

    def bounds(self) -> list[tuple[Rarity, float]]:
        """Cumulative upper bounds, highest tier first."""
        result: list[tuple[Rarity, float]] = []
        cumulative = 0.0
        for rarity in sorted(Rarity, reverse=True):
            cumulative += self.probability(rarity)
            result.append((rarity, cumulative))
        return result

    def to_dict(self) -> dict[str, float]:
        return {rarity.value: self.probability(rarity) for rarity in Rarity}


class RarityResolver:
    """Turn a single uniform roll into a rarity tier."""

    def resolve(self, weights: RarityWeights, random_source: RandomSource) -> Rarity:
        return self.resolve_value(weights, random_source.random())

    def resolve_value(self, weights: RarityWeights, roll: float) -> Rarity:
        if not 0.0 <= roll < 1.0:
            raise ValueError(f"Roll {roll} outside [0, 1)")
        for rarity, upper in weights.bounds():
            if roll < upper:
                return rarity
        # Float rounding can leave the top bound a hair under 1.0.
        return Rarity.COMMON
