"""In-memory storage backend for RewardForge."""

from __future__ import annotations

import asyncio
from collections import deque
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Collection, Deque, Sequence

from .base import (
    AuditStore,
    LedgerCause,
    LedgerEntry,
    LedgerStore,
    PendingWork,
    StudentRecord,
    StudentStore,
)


class InMemoryLedgerStore(LedgerStore):
    def __init__(self) -> None:
        self._entries: list[LedgerEntry] = []

    def extend(self, entries: Sequence[LedgerEntry]) -> None:
        self._entries.extend(entries)

    async def recent_for_student(
        self,
        student_id: str,
        limit: int = 20,
        *,
        causes: Collection[LedgerCause] | None = None,
    ) -> Sequence[LedgerEntry]:
        filtered = [
            entry
            for entry in reversed(self._entries)
            if entry.student_id == student_id and (causes is None or entry.cause in causes)
        ]
        return filtered[:limit]

    def dump(self) -> list[LedgerEntry]:
        return list(self._entries)


class InMemoryStudentStore(StudentStore):
    """Student records guarded by one asyncio lock per student."""

    def __init__(self, ledger: InMemoryLedgerStore | None = None) -> None:
        self._records: dict[str, StudentRecord] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self.ledger = ledger or InMemoryLedgerStore()

    async def get_or_create(self, student_id: str) -> StudentRecord:
        return self._committed(student_id).copy()

    @asynccontextmanager
    async def unit_of_work(self, student_id: str) -> AsyncIterator[PendingWork]:
        lock = self._locks.setdefault(student_id, asyncio.Lock())
        async with lock:
            current = self._committed(student_id)
            work = PendingWork(record=current.copy())
            yield work
            committed = work.record.copy()
            committed.version = current.version + 1
            # No await between these two writes: readers see both or neither.
            self._records[student_id] = committed
            self.ledger.extend(work.entries)

    def put(self, record: StudentRecord) -> None:
        """Seed a record directly, bypassing the ledger (fixtures and imports)."""
        self._records[record.student_id] = record.copy()

    def _committed(self, student_id: str) -> StudentRecord:
        if student_id not in self._records:
            self._records[student_id] = StudentRecord(student_id=student_id)
        return self._records[student_id]


class InMemoryAuditStore(AuditStore):
    def __init__(self, *, maxlen: int = 1000) -> None:
        self._entries: Deque[tuple[datetime, str, dict]] = deque(maxlen=maxlen)

    async def add_entry(self, action: str, payload: dict) -> None:
        self._entries.append((datetime.now(timezone.utc), action, payload))

    def dump(self) -> list[tuple[datetime, str, dict]]:
        return list(self._entries)
