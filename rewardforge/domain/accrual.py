"""Merit point accrual into draw tickets."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..config import EconomyConfig
from .events import ACCRUAL_CREDITED, AccrualCredited, EventBus
from .ledger import LedgerService, LedgerTransaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AccrualOutcome:
    previous_progress: int
    progress: int
    credited_units: int


def compute_accrual(progress: int, delta: int, threshold: int) -> AccrualOutcome:
    """Apply a merit point delta to the progress towards the next ticket.

    Positive deltas carry the remainder forward, so ``k * threshold + r``
    points credit exactly ``k`` tickets however they are batched. Negative
    deltas (point reversals) only wind progress back, never below zero, and
    never take back tickets that were already credited.
    """
    if threshold <= 0:
        raise ValueError("Accrual threshold must be positive")
    if progress < 0:
        raise ValueError("Accrual progress cannot be negative")
    if delta > 0:
        total = progress + delta
        return AccrualOutcome(
            previous_progress=progress,
            progress=total % threshold,
            credited_units=total // threshold,
        )
    return AccrualOutcome(
        previous_progress=progress,
        progress=max(0, progress + delta),
        credited_units=0,
    )


class AccrualCounter:
    """Convert ``AwardMeritPoints`` signals into ticket credits."""

    def __init__(
        self,
        ledger: LedgerService,
        economy: EconomyConfig,
        event_bus: EventBus,
    ) -> None:
        self._ledger = ledger
        self._economy = economy
        self._event_bus = event_bus

    async def credit(self, student_id: str, merit_point_delta: int) -> int:
        """Record ``merit_point_delta`` and return the tickets it credited."""
        if merit_point_delta == 0:
            return 0
        threshold = self._economy.accrual_threshold

        def apply(tx: LedgerTransaction) -> AccrualOutcome:
            outcome = compute_accrual(tx.student.accrual_progress, merit_point_delta, threshold)
            tx.apply_accrual(outcome)
            return outcome

        outcome = await self._ledger.atomically(student_id, "accrual", apply)
        if outcome.credited_units:
            logger.info(
                "Student %s earned %s ticket(s) from %+d merit points.",
                student_id,
                outcome.credited_units,
                merit_point_delta,
            )
            await self._event_bus.publish(
                ACCRUAL_CREDITED,
                AccrualCredited(
                    student_id=student_id,
                    merit_point_delta=merit_point_delta,
                    credited_units=outcome.credited_units,
                    accrual_progress=outcome.progress,
                ),
            )
        return outcome.credited_units
