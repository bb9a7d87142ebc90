"""Strategies converting duplicate draws into bonus tickets."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Mapping

from ..config import DEFAULT_DUPLICATE_REWARDS
from .catalog import Rarity


@dataclass(frozen=True, slots=True)
class DuplicateRewardTable:
    """Bonus tickets per rarity; never pays less for a higher tier."""

    amounts: Mapping[Rarity, int] = field(
        default_factory=lambda: {Rarity(k): v for k, v in DEFAULT_DUPLICATE_REWARDS.items()}
    )

    def __post_init__(self) -> None:
        normalized = {Rarity(key): int(value) for key, value in self.amounts.items()}
        missing = [rarity.value for rarity in Rarity if rarity not in normalized]
        if missing:
            raise ValueError(f"Duplicate reward table is missing tiers: {', '.join(missing)}")
        previous: tuple[Rarity, int] | None = None
        for rarity in sorted(Rarity):
            amount = normalized[rarity]
            if amount < 0:
                raise ValueError(f"Duplicate reward for '{rarity.value}' cannot be negative")
            if previous and amount < previous[1]:
                raise ValueError(
                    f"Duplicate reward for '{rarity.value}' ({amount}) is lower than "
                    f"for '{previous[0].value}' ({previous[1]})"
                )
            previous = (rarity, amount)
        object.__setattr__(self, "amounts", normalized)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, int]) -> "DuplicateRewardTable":
        return cls({Rarity(key): int(value) for key, value in raw.items()})

    def amount_for(self, rarity: Rarity) -> int:
        return self.amounts[rarity]

    def to_dict(self) -> dict[str, int]:
        return {rarity.value: amount for rarity, amount in self.amounts.items()}


class DuplicateConverter(ABC):
    """Define what a student receives instead of an item they already own."""

    @abstractmethod
    def bonus_for(self, rarity: Rarity) -> int:
        """Return bonus tickets granted for a duplicate of ``rarity``."""


@dataclass(slots=True)
class TableDuplicateConverter(DuplicateConverter):
    """Default behaviour: look the bonus up in a reward table."""

    table: DuplicateRewardTable = field(default_factory=DuplicateRewardTable)

    def bonus_for(self, rarity: Rarity) -> int:
        return self.table.amount_for(rarity)


@dataclass(slots=True)
class FlatDuplicateConverter(DuplicateConverter):
    """Pay the same bonus for every tier."""

    amount: int

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError("Flat duplicate bonus cannot be negative")

    def bonus_for(self, rarity: Rarity) -> int:
        return self.amount
