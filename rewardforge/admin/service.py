"""Administrative operations for classroom reward economies."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from ..config import AdminConfig
from ..domain.events import TICKETS_GRANTED, EventBus
from ..domain.ledger import LedgerService
from ..storage.base import AuditStore, LedgerEntry

if TYPE_CHECKING:
    from ..app import RewardApp

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TicketsGranted:
    student_id: str
    amount: int
    reason: str | None
    balance_after: int


class AdminService:
    def __init__(
        self,
        ledger: LedgerService,
        audit_store: AuditStore,
        event_bus: EventBus,
        config: AdminConfig | None = None,
    ) -> None:
        self._ledger = ledger
        self._audit_store = audit_store
        self._events = event_bus
        self._config = config or AdminConfig()

    async def grant_tickets(
        self, student_id: str, amount: int, *, reason: str | None = None
    ) -> LedgerEntry:
        """Credit tickets by hand, e.g. as a prize awarded outside merit points."""
        if amount <= 0:
            raise ValueError("Amount must be positive")
        if amount > self._config.max_manual_grant:
            raise ValueError(
                f"Manual grants are limited to {self._config.max_manual_grant} tickets"
            )
        entry = await self._ledger.grant(student_id, amount)
        logger.info("Granted %s ticket(s) to student %s (%s).", amount, student_id, reason or "-")
        await self._audit(
            "grant_tickets",
            {
                "student_id": student_id,
                "amount": amount,
                "reason": reason,
                "operation_id": entry.operation_id,
            },
        )
        await self._events.publish(
            TICKETS_GRANTED,
            TicketsGranted(
                student_id=student_id,
                amount=amount,
                reason=reason,
                balance_after=entry.balance_after,
            ),
        )
        return entry

    async def _audit(self, action: str, payload: dict) -> None:
        if not self._config.enable_audit_logs:
            return
        await self._audit_store.add_entry(
            action,
            {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                **payload,
            },
        )


def build_admin_service(app: "RewardApp") -> AdminService:
    return AdminService(
        ledger=app.ledger,
        audit_store=app.audit_store,
        event_bus=app.event_bus,
        config=app.config.admin,
    )
