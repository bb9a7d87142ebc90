"""Storage backends for RewardForge."""

from .base import (
    AuditStore,
    LedgerCause,
    LedgerEntry,
    LedgerStore,
    StudentRecord,
    StudentStore,
    StudentUnitOfWork,
)
from .memory import InMemoryAuditStore, InMemoryLedgerStore, InMemoryStudentStore
from .sqlalchemy import AsyncSQLAlchemyStorage

__all__ = [
    "AuditStore",
    "LedgerCause",
    "LedgerEntry",
    "LedgerStore",
    "StudentRecord",
    "StudentStore",
    "StudentUnitOfWork",
    "InMemoryAuditStore",
    "InMemoryLedgerStore",
    "InMemoryStudentStore",
    "AsyncSQLAlchemyStorage",
]
