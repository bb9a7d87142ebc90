import pytest

from rewardforge.admin.service import AdminService, build_admin_service
from rewardforge.app import RewardApp
from rewardforge.config import AdminConfig, RewardForgeConfig
from rewardforge.domain.events import TICKETS_GRANTED
from rewardforge.storage.base import LedgerCause
from rewardforge.storage.memory import InMemoryAuditStore


@pytest.fixture()
def admin_app():
    return RewardApp(RewardForgeConfig(admin=AdminConfig(max_manual_grant=10)))


@pytest.mark.asyncio()
async def test_grant_tickets(admin_app):
    granted = []

    async def listener(payload):
        granted.append(payload)

    admin_app.event_bus.subscribe(TICKETS_GRANTED, listener)
    service = build_admin_service(admin_app)

    entry = await service.grant_tickets("s1", 4, reason="quiz winner")

    assert entry.cause is LedgerCause.MANUAL_GRANT
    assert (await admin_app.students.fetch("s1")).currency_balance == 4
    ((_, action, payload),) = admin_app.audit_store.dump()
    assert action == "grant_tickets"
    assert payload["reason"] == "quiz winner"
    assert payload["operation_id"] == entry.operation_id
    assert granted[0].balance_after == 4


@pytest.mark.asyncio()
@pytest.mark.parametrize("amount", [0, -3, 11])
async def test_grant_tickets_bounds(admin_app, amount):
    service = build_admin_service(admin_app)
    with pytest.raises(ValueError):
        await service.grant_tickets("s1", amount)
    assert (await admin_app.students.fetch("s1")).currency_balance == 0


@pytest.mark.asyncio()
async def test_audit_can_be_disabled(admin_app):
    audit = InMemoryAuditStore()
    service = AdminService(
        ledger=admin_app.ledger,
        audit_store=audit,
        event_bus=admin_app.event_bus,
        config=AdminConfig(enable_audit_logs=False),
    )
    await service.grant_tickets("s1", 2)
    assert audit.dump() == []
