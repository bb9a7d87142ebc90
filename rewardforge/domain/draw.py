"""Draw orchestration: roll, pick, check duplicates and commit as one unit."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from random import Random
from typing import Iterable

from ..config import EconomyConfig
from ..storage.base import LedgerEntry, StudentRecord
from .catalog import Catalog, CatalogItem, RandomSource, Rarity
from .duplicates import DuplicateConverter, DuplicateRewardTable, TableDuplicateConverter
from .events import DRAW_COMMITTED, DrawCommitted, EventBus
from .exceptions import EmptyCatalogTier, InsufficientCurrency
from .ledger import LedgerService, LedgerTransaction
from .pity import PityRule, PityTracker, parse_pity_rules
from .rarity import RarityResolver, RarityWeights

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DrawResult:
    item: CatalogItem
    is_duplicate: bool
    pity_triggered: bool
    cost: int
    duplicate_bonus: int = 0

    @property
    def rarity(self) -> Rarity:
        return self.item.rarity

    @property
    def currency_delta(self) -> int:
        return self.duplicate_bonus - self.cost


@dataclass(slots=True)
class DrawBatch:
    """Outcome of :meth:`DrawOrchestrator.draw_many`, keyed by student."""

    results: dict[str, DrawResult] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)
    failures: dict[str, Exception] = field(default_factory=dict)


class DrawOrchestrator:
    """Resolve a ticket-consuming draw and commit it atomically.

    The roll happens inside the ledger transaction, so the outcome and its
    cost are committed together or not at all. Each retry after a conflict
    rolls again against the freshly read student.
    """

    def __init__(
        self,
        catalog: Catalog,
        ledger: LedgerService,
        economy: EconomyConfig,
        event_bus: EventBus,
        *,
        rng: Random | None = None,
        resolver: RarityResolver | None = None,
        pity: PityTracker | None = None,
        duplicate_converter: DuplicateConverter | None = None,
    ) -> None:
        self._catalog = catalog
        self._ledger = ledger
        self._economy = economy
        self._event_bus = event_bus
        self._rng = rng or Random()
        self._resolver = resolver or RarityResolver()
        self._pity = pity or PityTracker()
        self._duplicate_converter = duplicate_converter

    async def draw(self, student_id: str) -> DrawResult:
        cost = self._economy.draw_cost
        captured: list[LedgerEntry] = []

        def apply(tx: LedgerTransaction) -> DrawResult:
            result = self.plan(tx.student, self._rng)
            captured[:] = tx.apply_draw(cost, result)
            return result

        try:
            result = await self._ledger.atomically(student_id, "draw", apply)
        except EmptyCatalogTier as exc:
            logger.error("Draw for student %s aborted: %s", student_id, exc)
            raise
        except InsufficientCurrency as exc:
            logger.info("Draw rejected for student %s: %s", student_id, exc)
            raise

        logger.info(
            "Student %s drew %s (%s)%s%s.",
            student_id,
            result.item.item_id,
            result.rarity.value,
            " via pity" if result.pity_triggered else "",
            f", duplicate +{result.duplicate_bonus}" if result.is_duplicate else "",
        )
        await self._event_bus.publish(
            DRAW_COMMITTED,
            DrawCommitted(student_id=student_id, result=result, entries=tuple(captured)),
        )
        return result

    async def draw_many(self, student_ids: Iterable[str]) -> DrawBatch:
        """Draw once for each student concurrently.

        Every student is attempted. Draws that committed are always reported,
        even when another student's draw failed.
        """
        unique_ids = list(dict.fromkeys(student_ids))
        outcomes = await asyncio.gather(
            *(self.draw(student_id) for student_id in unique_ids), return_exceptions=True
        )
        batch = DrawBatch()
        for student_id, outcome in zip(unique_ids, outcomes):
            if isinstance(outcome, DrawResult):
                batch.results[student_id] = outcome
            elif isinstance(outcome, InsufficientCurrency):
                batch.skipped.append(student_id)
            elif isinstance(outcome, Exception):
                logger.warning("Draw for student %s failed in batch: %r", student_id, outcome)
                batch.failures[student_id] = outcome
            else:
                raise outcome
        return batch

    def plan(self, student: StudentRecord, rng: RandomSource) -> DrawResult:
        """Decide a draw for ``student`` without touching storage."""
        cost = self._economy.draw_cost
        if student.currency_balance < cost:
            raise InsufficientCurrency(student.student_id, student.currency_balance, cost)

        rule = self._pity.rule_for_next_draw(
            student.consecutive_duplicate_count, self.pity_rules()
        )
        if rule is not None:
            rarity = rule.forced_rarity
        else:
            rarity = self._resolver.resolve(self.rarity_weights(), rng)

        item = self._catalog.pick(rarity, rng)
        is_duplicate = item.item_id in student.owned_item_ids
        bonus = self.duplicate_converter().bonus_for(rarity) if is_duplicate else 0
        return DrawResult(
            item=item,
            is_duplicate=is_duplicate,
            pity_triggered=rule is not None,
            cost=cost,
            duplicate_bonus=bonus,
        )

    def rarity_weights(self) -> RarityWeights:
        return RarityWeights.from_mapping(self._economy.rarity_weights)

    def pity_rules(self) -> tuple[PityRule, ...]:
        return parse_pity_rules(self._economy.pity_rules)

    def duplicate_converter(self) -> DuplicateConverter:
        if self._duplicate_converter is not None:
            return self._duplicate_converter
        return TableDuplicateConverter(DuplicateRewardTable.from_mapping(self._economy.duplicate_rewards))
