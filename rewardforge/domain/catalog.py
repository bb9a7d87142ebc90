"""Reward catalog models and utilities."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Protocol, Sequence

from .exceptions import EmptyCatalogTier


class Rarity(str, Enum):
    """Rarity tiers, declared from lowest to highest."""

    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Rarity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Rarity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Rarity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Rarity):
            return NotImplemented
        return self.rank >= other.rank


_RANKS = {rarity: index for index, rarity in enumerate(Rarity)}


class RandomSource(Protocol):
    """Subset of :class:`random.Random` used by the engine."""

    def random(self) -> float: ...


@dataclass(frozen=True, slots=True)
class CatalogItem:
    """Definition of a collectible reward item."""

    item_id: str
    name: str
    rarity: Rarity = Rarity.COMMON
    set_id: str | None = None
    description: str = ""
    weight: float = 1.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "rarity", Rarity(self.rarity))


class Catalog:
    """Registry of reward items grouped by rarity."""

    def __init__(self) -> None:
        self._items: dict[str, CatalogItem] = {}

    def register_item(self, item: CatalogItem) -> None:
        if item.item_id in self._items:
            raise ValueError(f"Item {item.item_id} already registered")
        if item.weight <= 0:
            raise ValueError(f"Item {item.item_id} must have a positive weight")
        self._items[item.item_id] = item

    def register_items(self, items: Iterable[CatalogItem]) -> None:
        for item in items:
            self.register_item(item)

    def get_item(self, item_id: str) -> CatalogItem:
        try:
            return self._items[item_id]
        except KeyError as exc:
            raise KeyError(f"Item {item_id} not found") from exc

    def iter_items(self) -> Iterable[CatalogItem]:
        return self._items.values()

    def items_of_rarity(self, rarity: Rarity) -> list[CatalogItem]:
        items = [item for item in self._items.values() if item.rarity is rarity]
        if not items:
            raise EmptyCatalogTier(rarity.value)
        return items

    def has_rarity(self, rarity: Rarity) -> bool:
        return any(item.rarity is rarity for item in self._items.values())

    def sets(self) -> dict[str, list[CatalogItem]]:
        grouped: dict[str, list[CatalogItem]] = {}
        for item in self._items.values():
            if item.set_id:
                grouped.setdefault(item.set_id, []).append(item)
        return grouped

    def pick(self, rarity: Rarity, rng: RandomSource) -> CatalogItem:
        """Pick one item of ``rarity`` honouring per-item weights."""
        items = self.items_of_rarity(rarity)
        return items[weighted_index([item.weight for item in items], rng)]

    def __len__(self) -> int:
        return len(self._items)


def weighted_index(weights: Sequence[float], rng: RandomSource) -> int:
    total = sum(weights)
    if total <= 0:
        return int(rng.random() * len(weights))
    threshold = rng.random() * total
    cumulative = 0.0
    for idx, weight in enumerate(weights):
        cumulative += weight
        if threshold < cumulative:
            return idx
    return len(weights) - 1
