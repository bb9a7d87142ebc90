"""Storage abstractions used by the RewardForge services."""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Collection, Protocol, Sequence


class LedgerCause(str, Enum):
    DRAW_COST = "draw-cost"
    DUPLICATE_BONUS = "duplicate-bonus"
    ACCRUAL_CREDIT = "accrual-credit"
    PURCHASE_COST = "purchase-cost"
    MANUAL_GRANT = "manual-grant"


@dataclass(slots=True)
class StudentRecord:
    student_id: str
    currency_balance: int = 0
    accrual_progress: int = 0
    consecutive_duplicate_count: int = 0
    owned_item_ids: set[str] = field(default_factory=set)
    version: int = 0

    def copy(self) -> "StudentRecord":
        return StudentRecord(
            student_id=self.student_id,
            currency_balance=self.currency_balance,
            accrual_progress=self.accrual_progress,
            consecutive_duplicate_count=self.consecutive_duplicate_count,
            owned_item_ids=set(self.owned_item_ids),
            version=self.version,
        )


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    student_id: str
    timestamp: datetime
    currency_delta: int
    cause: LedgerCause
    operation_id: str
    balance_after: int
    item_id: str | None = None


class StudentUnitOfWork(Protocol):
    """Working copy of one student plus the ledger entries to append with it."""

    record: StudentRecord

    def add_entry(self, entry: LedgerEntry) -> None:
        ...

    @property
    def entries(self) -> Sequence[LedgerEntry]:
        ...


class StudentStore(Protocol):
    async def get_or_create(self, student_id: str) -> StudentRecord:
        """Return a detached snapshot of the committed record."""
        ...

    def unit_of_work(self, student_id: str) -> AbstractAsyncContextManager[StudentUnitOfWork]:
        """Serialize a read-modify-write of one student.

        The record and the queued ledger entries are committed together when
        the block exits normally; nothing is persisted if it raises.
        """
        ...


class LedgerStore(Protocol):
    async def recent_for_student(
        self,
        student_id: str,
        limit: int = 20,
        *,
        causes: Collection[LedgerCause] | None = None,
    ) -> Sequence[LedgerEntry]:
        """Newest entries first, optionally restricted to ``causes``."""
        ...


class AuditStore(Protocol):
    async def add_entry(self, action: str, payload: dict) -> None:
        ...


@dataclass(slots=True)
class PendingWork:
    """Default :class:`StudentUnitOfWork` implementation shared by backends."""

    record: StudentRecord
    _entries: list[LedgerEntry] = field(default_factory=list)

    def add_entry(self, entry: LedgerEntry) -> None:
        if entry.student_id != self.record.student_id:
            raise ValueError("Ledger entry belongs to a different student")
        self._entries.append(entry)

    @property
    def entries(self) -> Sequence[LedgerEntry]:
        return tuple(self._entries)
