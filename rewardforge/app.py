"""Top level application object for the reward engine."""

from __future__ import annotations

from random import Random
from typing import Any

from .config import RewardForgeConfig
from .domain.accrual import AccrualCounter
from .domain.draw import DrawOrchestrator
from .domain.duplicates import DuplicateConverter
from .domain.events import EventBus
from .domain.ledger import LedgerService
from .domain.shop import ShopService
from .domain.student import StudentService
from .registry import CatalogRegistry
from .storage.base import AuditStore, LedgerStore, StudentStore
from .storage.memory import InMemoryAuditStore, InMemoryLedgerStore, InMemoryStudentStore
from .storage.sqlalchemy import AsyncSQLAlchemyStorage


class RewardApp:
    """Central dependency container used by request handlers and tools."""

    def __init__(
        self,
        config: RewardForgeConfig | None = None,
        *,
        student_store: StudentStore | None = None,
        ledger_store: LedgerStore | None = None,
        audit_store: AuditStore | None = None,
        event_bus: EventBus | None = None,
        rng: Random | None = None,
        duplicate_converter: DuplicateConverter | None = None,
    ) -> None:
        self.config = config or RewardForgeConfig()
        self.event_bus = event_bus or EventBus()
        self.items = CatalogRegistry()

        self._rng = rng or (
            Random(self.config.rng_seed) if self.config.rng_seed is not None else Random()
        )

        self._sqlalchemy_storage: AsyncSQLAlchemyStorage | None = None
        (
            self.student_store,
            self.ledger_store,
            self.audit_store,
        ) = self._wire_storage(student_store, ledger_store, audit_store)

        economy = self.config.economy
        self.ledger = LedgerService(
            self.student_store,
            self.ledger_store,
            retry=self.config.retry,
        )
        self.accrual = AccrualCounter(self.ledger, economy, self.event_bus)
        self.draws = DrawOrchestrator(
            self.items.catalog,
            self.ledger,
            economy,
            self.event_bus,
            rng=self._rng,
            duplicate_converter=duplicate_converter,
        )
        self.shop = ShopService(self.items.catalog, self.ledger, economy, self.event_bus)
        self.students = StudentService(self.ledger, economy)

    def _wire_storage(
        self,
        student_store: StudentStore | None,
        ledger_store: LedgerStore | None,
        audit_store: AuditStore | None,
    ) -> tuple[StudentStore, LedgerStore, AuditStore]:
        if student_store and ledger_store and audit_store:
            return student_store, ledger_store, audit_store

        backend = self.config.storage.backend
        if backend == "memory":
            if student_store is None:
                ledger = ledger_store if isinstance(ledger_store, InMemoryLedgerStore) else None
                student_store = InMemoryStudentStore(ledger)
            if ledger_store is None:
                ledger_store = getattr(student_store, "ledger", None)
                if ledger_store is None:
                    raise ValueError("A ledger store is required with a custom student store")
            return student_store, ledger_store, audit_store or InMemoryAuditStore()
        if backend == "sqlalchemy":
            dsn = self.config.storage.resolve_dsn()
            if not dsn:
                raise ValueError("SQLAlchemy backend requires a DSN")
            storage = AsyncSQLAlchemyStorage(dsn, echo=self.config.storage.echo_sql)
            self._sqlalchemy_storage = storage
            return (
                student_store or storage.student_store(),
                ledger_store or storage.ledger_store(),
                audit_store or storage.audit_store(),
            )
        raise ValueError(f"Unsupported storage backend {backend}")

    def snapshot(self) -> dict[str, Any]:
        """Export current configuration for debugging."""
        economy = self.config.economy
        return {
            "storage": self.config.storage.backend,
            "items": [item.item_id for item in self.items.catalog.iter_items()],
            "sets": sorted(self.items.catalog.sets()),
            "accrual_threshold": economy.accrual_threshold,
            "draw_cost": economy.draw_cost,
            "rarity_weights": self.draws.rarity_weights().to_dict(),
            "pity_rules": [
                {"threshold": rule.threshold, "forced_rarity": rule.forced_rarity.value}
                for rule in self.draws.pity_rules()
            ],
            "duplicate_rewards": dict(economy.duplicate_rewards),
        }

    async def init_backend(self) -> None:
        """Initialize storage backend resources (e.g., database tables)."""
        if self._sqlalchemy_storage:
            await self._sqlalchemy_storage.init_models()

    async def close(self) -> None:
        if self._sqlalchemy_storage:
            await self._sqlalchemy_storage.dispose()
