"""Economy simulation helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from random import Random
from typing import Dict

from ..app import RewardApp
from ..domain.catalog import Rarity
from ..domain.draw import DrawResult
from ..storage.base import StudentRecord


@dataclass(slots=True)
class SimulationResult:
    pulls: int
    by_rarity: Dict[str, int] = field(default_factory=dict)
    uniques: int = 0
    duplicates: int = 0
    pity_triggers: int = 0
    tickets_spent: int = 0
    tickets_returned: int = 0
    first_complete_at: int | None = None

    def merge(self, result: DrawResult) -> None:
        rarity = result.rarity.value
        self.by_rarity[rarity] = self.by_rarity.get(rarity, 0) + 1
        if result.is_duplicate:
            self.duplicates += 1
        else:
            self.uniques += 1
        if result.pity_triggered:
            self.pity_triggers += 1
        self.tickets_spent += result.cost
        self.tickets_returned += result.duplicate_bonus

    @property
    def net_cost(self) -> int:
        return self.tickets_spent - self.tickets_returned

    def share(self, rarity: Rarity) -> float:
        if not self.pulls:
            return 0.0
        return self.by_rarity.get(rarity.value, 0) / self.pulls


class EconomySimulator:
    """Monte-Carlo simulation of one student drawing repeatedly.

    Uses the same decision logic as live draws but keeps the simulated
    student in memory, so nothing is written to the configured stores.
    """

    def __init__(self, app: RewardApp, *, rng: Random | None = None) -> None:
        self._app = app
        self._rng = rng or Random()

    def simulate(self, *, pulls: int = 1000) -> SimulationResult:
        if pulls < 0:
            raise ValueError("Number of pulls cannot be negative")
        orchestrator = self._app.draws
        catalog_size = len(self._app.items.catalog)
        cost = self._app.config.economy.draw_cost
        student = StudentRecord(student_id="simulation", currency_balance=cost * pulls)
        result = SimulationResult(pulls=pulls)

        for pull in range(1, pulls + 1):
            draw = orchestrator.plan(student, self._rng)
            self._apply(student, draw)
            result.merge(draw)
            if result.first_complete_at is None and len(student.owned_item_ids) == catalog_size:
                result.first_complete_at = pull
        return result

    @staticmethod
    def _apply(student: StudentRecord, draw: DrawResult) -> None:
        # Bonuses are not spent again so every pull is paid from the seed balance.
        student.currency_balance -= draw.cost
        if draw.is_duplicate:
            student.consecutive_duplicate_count += 1
        else:
            student.owned_item_ids.add(draw.item.item_id)
            student.consecutive_duplicate_count = 0
