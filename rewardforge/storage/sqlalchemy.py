"""SQLAlchemy storage backend for RewardForge."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Collection, Sequence

from sqlalchemy import DateTime, Integer, JSON, String, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ..domain.exceptions import (
    ConcurrentModificationConflict,
    PersistenceError,
    TransientFailure,
)
from .base import (
    AuditStore,
    LedgerCause,
    LedgerEntry,
    LedgerStore,
    PendingWork,
    StudentRecord,
    StudentStore,
)

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class StudentTable(Base):
    __tablename__ = "rewardforge_students"

    student_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    currency_balance: Mapped[int] = mapped_column(Integer, default=0)
    accrual_progress: Mapped[int] = mapped_column(Integer, default=0)
    consecutive_duplicate_count: Mapped[int] = mapped_column(Integer, default=0)
    owned_item_ids: Mapped[list] = mapped_column(JSON, default=list)
    version: Mapped[int] = mapped_column(Integer, default=0)


class LedgerTable(Base):
    __tablename__ = "rewardforge_ledger"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    operation_id: Mapped[str] = mapped_column(String(64), index=True)
    student_id: Mapped[str] = mapped_column(String(64), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    currency_delta: Mapped[int] = mapped_column(Integer)
    balance_after: Mapped[int] = mapped_column(Integer)
    item_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    cause: Mapped[str] = mapped_column(String(32))


class AuditTable(Base):
    __tablename__ = "rewardforge_audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    action: Mapped[str] = mapped_column(String(128))
    payload: Mapped[dict] = mapped_column(JSON)


class AsyncSQLAlchemyStorage:
    """Bundle of async stores backed by SQLAlchemy."""

    def __init__(self, dsn: str, *, echo: bool = False) -> None:
        self._engine = create_async_engine(dsn, echo=echo)
        self._session_factory = async_sessionmaker(self._engine, expire_on_commit=False)

    async def init_models(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self._engine.dispose()

    def student_store(self) -> "AsyncSQLAlchemyStudentStore":
        return AsyncSQLAlchemyStudentStore(self._session_factory)

    def ledger_store(self) -> "AsyncSQLAlchemyLedgerStore":
        return AsyncSQLAlchemyLedgerStore(self._session_factory)

    def audit_store(self) -> "AsyncSQLAlchemyAuditStore":
        return AsyncSQLAlchemyAuditStore(self._session_factory)


def _to_record(row: StudentTable) -> StudentRecord:
    return StudentRecord(
        student_id=row.student_id,
        currency_balance=row.currency_balance,
        accrual_progress=row.accrual_progress,
        consecutive_duplicate_count=row.consecutive_duplicate_count,
        owned_item_ids=set(row.owned_item_ids or ()),
        version=row.version,
    )


def _to_entry(row: LedgerTable) -> LedgerEntry:
    created_at = row.created_at
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return LedgerEntry(
        student_id=row.student_id,
        timestamp=created_at,
        currency_delta=row.currency_delta,
        cause=LedgerCause(row.cause),
        operation_id=row.operation_id,
        balance_after=row.balance_after,
        item_id=row.item_id,
    )


class AsyncSQLAlchemyStudentStore(StudentStore):
    """Optimistic compare-and-set on ``version``; callers retry conflicts."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_or_create(self, student_id: str) -> StudentRecord:
        async with self._session_factory() as session:
            try:
                row = await session.get(StudentTable, student_id)
            except DBAPIError as exc:
                raise TransientFailure(f"Could not load student {student_id}") from exc
            if row is None:
                return StudentRecord(student_id=student_id)
            return _to_record(row)

    @asynccontextmanager
    async def unit_of_work(self, student_id: str) -> AsyncIterator[PendingWork]:
        async with self._session_factory() as session:
            try:
                row = await session.get(StudentTable, student_id)
            except DBAPIError as exc:
                raise TransientFailure(f"Could not load student {student_id}") from exc
            is_new = row is None
            current = StudentRecord(student_id=student_id) if is_new else _to_record(row)
            expected_version = current.version
            work = PendingWork(record=current.copy())
            session.expunge_all()

            yield work

            record = work.record
            values = dict(
                currency_balance=record.currency_balance,
                accrual_progress=record.accrual_progress,
                consecutive_duplicate_count=record.consecutive_duplicate_count,
                owned_item_ids=sorted(record.owned_item_ids),
                version=expected_version + 1,
            )
            try:
                if is_new:
                    session.add(StudentTable(student_id=student_id, **values))
                else:
                    result = await session.execute(
                        update(StudentTable)
                        .where(
                            StudentTable.student_id == student_id,
                            StudentTable.version == expected_version,
                        )
                        .values(**values)
                    )
                    if result.rowcount != 1:
                        raise ConcurrentModificationConflict(
                            f"Student {student_id} changed since version {expected_version}"
                        )
                session.add_all(
                    LedgerTable(
                        operation_id=entry.operation_id,
                        student_id=entry.student_id,
                        created_at=entry.timestamp,
                        currency_delta=entry.currency_delta,
                        balance_after=entry.balance_after,
                        item_id=entry.item_id,
                        cause=entry.cause.value,
                    )
                    for entry in work.entries
                )
                await session.flush()
            except IntegrityError as exc:
                raise ConcurrentModificationConflict(
                    f"Student {student_id} was created concurrently"
                ) from exc
            except DBAPIError as exc:
                raise TransientFailure(f"Could not stage changes for student {student_id}") from exc

            try:
                await session.commit()
            except DBAPIError as exc:
                logger.error("Commit for student %s failed; outcome unknown.", student_id, exc_info=True)
                raise PersistenceError(f"Commit for student {student_id} failed") from exc
            record.version = expected_version + 1


class AsyncSQLAlchemyLedgerStore(LedgerStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def recent_for_student(
        self,
        student_id: str,
        limit: int = 20,
        *,
        causes: Collection[LedgerCause] | None = None,
    ) -> Sequence[LedgerEntry]:
        async with self._session_factory() as session:
            stmt = select(LedgerTable).where(LedgerTable.student_id == student_id)
            if causes is not None:
                stmt = stmt.where(LedgerTable.cause.in_([cause.value for cause in causes]))
            stmt = stmt.order_by(LedgerTable.id.desc()).limit(limit)
            rows = (await session.execute(stmt)).scalars().all()
            return [_to_entry(row) for row in rows]


class AsyncSQLAlchemyAuditStore(AuditStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def add_entry(self, action: str, payload: dict) -> None:
        async with self._session_factory() as session:
            session.add(
                AuditTable(
                    created_at=datetime.now(timezone.utc),
                    action=action,
                    payload=dict(payload),
                )
            )
            await session.commit()
