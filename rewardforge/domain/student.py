"""Student-centric read models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from ..config import EconomyConfig
from ..storage.base import LedgerCause, LedgerEntry, StudentRecord
from .ledger import LedgerService
from .pity import PityProgress, PityTracker, parse_pity_rules

AcquisitionMethod = Literal["draw", "purchase"]

_ACQUISITION_CAUSES: dict[LedgerCause, AcquisitionMethod] = {
    LedgerCause.DRAW_COST: "draw",
    LedgerCause.PURCHASE_COST: "purchase",
}
_HISTORY_CAUSES = frozenset((*_ACQUISITION_CAUSES, LedgerCause.DUPLICATE_BONUS))


@dataclass(slots=True)
class StudentProfile:
    student_id: str
    currency_balance: int
    accrual_progress: int
    points_to_next_ticket: int
    consecutive_duplicate_count: int
    owned_item_ids: frozenset[str]


@dataclass(frozen=True, slots=True)
class Acquisition:
    item_id: str
    timestamp: datetime
    method: AcquisitionMethod
    is_new: bool


class StudentService:
    """Expose read-only views of a student's reward state."""

    def __init__(
        self,
        ledger: LedgerService,
        economy: EconomyConfig,
        *,
        pity: PityTracker | None = None,
    ) -> None:
        self._ledger = ledger
        self._economy = economy
        self._pity = pity or PityTracker()

    async def fetch(self, student_id: str) -> StudentProfile:
        record = await self._ledger.snapshot(student_id)
        return self._to_profile(record)

    async def pity_progress(self, student_id: str) -> PityProgress | None:
        record = await self._ledger.snapshot(student_id)
        return self._pity.progress(
            record.consecutive_duplicate_count, parse_pity_rules(self._economy.pity_rules)
        )

    async def acquisitions(self, student_id: str, limit: int = 10) -> list[Acquisition]:
        """Most recent draws and purchases, newest first."""
        # A draw writes at most two of these entries, so the window covers ``limit`` operations.
        entries = await self._ledger.history(
            student_id, limit=limit * 2, causes=_HISTORY_CAUSES
        )
        duplicate_ops = {
            entry.operation_id for entry in entries if entry.cause is LedgerCause.DUPLICATE_BONUS
        }
        result: list[Acquisition] = []
        for entry in entries:
            method = _ACQUISITION_CAUSES.get(entry.cause)
            if method is None or entry.item_id is None:
                continue
            result.append(
                Acquisition(
                    item_id=entry.item_id,
                    timestamp=entry.timestamp,
                    method=method,
                    is_new=entry.operation_id not in duplicate_ops,
                )
            )
        return result[:limit]

    async def history(self, student_id: str, limit: int = 20) -> list[LedgerEntry]:
        return list(await self._ledger.history(student_id, limit=limit))

    def _to_profile(self, record: StudentRecord) -> StudentProfile:
        threshold = self._economy.accrual_threshold
        return StudentProfile(
            student_id=record.student_id,
            currency_balance=record.currency_balance,
            accrual_progress=record.accrual_progress,
            points_to_next_ticket=threshold - (record.accrual_progress % threshold),
            consecutive_duplicate_count=record.consecutive_duplicate_count,
            owned_item_ids=frozenset(record.owned_item_ids),
        )
