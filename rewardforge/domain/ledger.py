"""Ledger service: the only writer of student reward state."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING, AsyncIterator, Callable, Collection, Sequence, TypeVar
from uuid import uuid4

from ..config import RetryConfig
from ..storage.base import (
    LedgerCause,
    LedgerEntry,
    LedgerStore,
    StudentRecord,
    StudentStore,
    StudentUnitOfWork,
)
from ..storage.retry import run_with_retry
from .catalog import CatalogItem
from .exceptions import InsufficientCurrency, ItemAlreadyOwned

if TYPE_CHECKING:
    from .accrual import AccrualOutcome
    from .draw import DrawResult

T = TypeVar("T")

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LedgerTransaction:
    """Mutations applied to one student inside a single unit of work.

    Nothing here touches storage directly: changes land on the working copy
    and are committed together with the queued entries when the enclosing
    :meth:`LedgerService.transaction` block exits.
    """

    def __init__(self, work: StudentUnitOfWork, *, operation_id: str, clock: Clock) -> None:
        self._work = work
        self._clock = clock
        self.operation_id = operation_id

    @property
    def student_id(self) -> str:
        return self._work.record.student_id

    @property
    def student(self) -> StudentRecord:
        """Snapshot of the student as seen by this transaction."""
        return self._work.record.copy()

    @property
    def entries(self) -> Sequence[LedgerEntry]:
        return self._work.entries

    def apply_draw(self, cost: int, result: "DrawResult") -> list[LedgerEntry]:
        if cost <= 0:
            raise ValueError("Draw cost must be positive")
        if result.duplicate_bonus < 0:
            raise ValueError("Duplicate bonus cannot be negative")
        if not result.is_duplicate and result.duplicate_bonus:
            raise ValueError("Only duplicate draws may carry a bonus")

        record = self._work.record
        item_id = result.item.item_id
        if (item_id in record.owned_item_ids) != result.is_duplicate:
            raise ValueError(
                f"Draw result for {item_id} does not match ownership of student {record.student_id}"
            )
        self._require_balance(record, cost)

        record.currency_balance -= cost
        entries = [self._record_entry(-cost, LedgerCause.DRAW_COST, item_id)]
        if result.is_duplicate:
            # Written even for a zero bonus so history can tell duplicates apart.
            record.consecutive_duplicate_count += 1
            record.currency_balance += result.duplicate_bonus
            entries.append(
                self._record_entry(result.duplicate_bonus, LedgerCause.DUPLICATE_BONUS, item_id)
            )
        else:
            record.owned_item_ids.add(item_id)
            record.consecutive_duplicate_count = 0
        return entries

    def apply_accrual(self, outcome: "AccrualOutcome") -> list[LedgerEntry]:
        record = self._work.record
        if record.accrual_progress != outcome.previous_progress:
            raise ValueError("Accrual outcome was computed from a different progress value")
        record.accrual_progress = outcome.progress
        if outcome.credited_units <= 0:
            return []
        record.currency_balance += outcome.credited_units
        return [self._record_entry(outcome.credited_units, LedgerCause.ACCRUAL_CREDIT)]

    def apply_purchase(self, price: int, item: CatalogItem) -> LedgerEntry:
        if price <= 0:
            raise ValueError("Purchase price must be positive")
        record = self._work.record
        if item.item_id in record.owned_item_ids:
            raise ItemAlreadyOwned(f"Student {record.student_id} already owns {item.item_id}")
        self._require_balance(record, price)
        record.currency_balance -= price
        record.owned_item_ids.add(item.item_id)
        return self._record_entry(-price, LedgerCause.PURCHASE_COST, item.item_id)

    def grant(self, amount: int, cause: LedgerCause = LedgerCause.MANUAL_GRANT) -> LedgerEntry:
        if amount <= 0:
            raise ValueError("Amount must be positive")
        record = self._work.record
        record.currency_balance += amount
        return self._record_entry(amount, cause)

    def _require_balance(self, record: StudentRecord, amount: int) -> None:
        if record.currency_balance < amount:
            raise InsufficientCurrency(record.student_id, record.currency_balance, amount)

    def _record_entry(self, delta: int, cause: LedgerCause, item_id: str | None = None) -> LedgerEntry:
        record = self._work.record
        entry = LedgerEntry(
            student_id=record.student_id,
            timestamp=self._clock(),
            currency_delta=delta,
            cause=cause,
            operation_id=self.operation_id,
            balance_after=record.currency_balance,
            item_id=item_id,
        )
        self._work.add_entry(entry)
        return entry


class LedgerService:
    """Serialize and commit every change to a student's reward state."""

    def __init__(
        self,
        student_store: StudentStore,
        ledger_store: LedgerStore,
        *,
        retry: RetryConfig | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._students = student_store
        self._ledger = ledger_store
        self._retry = retry or RetryConfig()
        self._clock = clock or _utcnow

    @asynccontextmanager
    async def transaction(self, student_id: str) -> AsyncIterator[LedgerTransaction]:
        async with self._students.unit_of_work(student_id) as work:
            tx = LedgerTransaction(work, operation_id=uuid4().hex, clock=self._clock)
            yield tx
            if work.entries:
                logger.debug(
                    "Committing %s ledger entries for student %s (operation %s).",
                    len(work.entries),
                    student_id,
                    tx.operation_id,
                )

    async def atomically(
        self, student_id: str, label: str, operation: Callable[[LedgerTransaction], T]
    ) -> T:
        """Run ``operation`` in a fresh transaction, retrying conflicts."""

        async def attempt() -> T:
            async with self.transaction(student_id) as tx:
                return operation(tx)

        return await run_with_retry(f"{label}:{student_id}", attempt, policy=self._retry)

    async def apply_draw(self, student_id: str, cost: int, result: "DrawResult") -> list[LedgerEntry]:
        return await self.atomically(student_id, "apply_draw", lambda tx: tx.apply_draw(cost, result))

    async def grant(
        self, student_id: str, amount: int, cause: LedgerCause = LedgerCause.MANUAL_GRANT
    ) -> LedgerEntry:
        return await self.atomically(student_id, "grant", lambda tx: tx.grant(amount, cause))

    async def snapshot(self, student_id: str) -> StudentRecord:
        return await self._students.get_or_create(student_id)

    async def history(
        self,
        student_id: str,
        limit: int = 20,
        *,
        causes: Collection[LedgerCause] | None = None,
    ) -> Sequence[LedgerEntry]:
        return await self._ledger.recent_for_student(student_id, limit=limit, causes=causes)
