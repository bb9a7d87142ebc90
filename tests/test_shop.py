import pytest

from rewardforge.domain.catalog import Rarity
from rewardforge.domain.events import PURCHASE_COMMITTED
from rewardforge.domain.exceptions import InsufficientCurrency, ItemAlreadyOwned
from rewardforge.storage.base import LedgerCause, StudentRecord


@pytest.mark.asyncio()
async def test_purchase_deducts_price_and_grants_item(app):
    events = []

    async def listener(payload):
        events.append(payload)

    app.event_bus.subscribe(PURCHASE_COMMITTED, listener)
    app.student_store.put(StudentRecord("s1", currency_balance=10, consecutive_duplicate_count=2))

    entry = await app.shop.purchase("s1", "r1")

    assert entry.cause is LedgerCause.PURCHASE_COST
    assert entry.currency_delta == -9
    profile = await app.students.fetch("s1")
    assert profile.currency_balance == 1
    assert profile.owned_item_ids == {"r1"}
    assert profile.consecutive_duplicate_count == 2
    assert events[0].price == 9


@pytest.mark.asyncio()
async def test_purchase_rejects_owned_item(app):
    app.student_store.put(StudentRecord("s1", currency_balance=50, owned_item_ids={"c1"}))
    with pytest.raises(ItemAlreadyOwned):
        await app.shop.purchase("s1", "c1")
    assert (await app.students.fetch("s1")).currency_balance == 50


@pytest.mark.asyncio()
async def test_purchase_requires_enough_tickets(app):
    app.student_store.put(StudentRecord("s1", currency_balance=3))
    with pytest.raises(InsufficientCurrency) as excinfo:
        await app.shop.purchase("s1", "l1")
    assert excinfo.value.required == 32
    assert (await app.students.fetch("s1")).owned_item_ids == frozenset()


@pytest.mark.asyncio()
async def test_purchase_unknown_item(app):
    with pytest.raises(KeyError):
        await app.shop.purchase("s1", "missing")


def test_price_for_uses_economy_table(app):
    app.config.economy.purchase_prices = {"common": 2, "rare": 5, "epic": 7, "legendary": 11}
    assert app.shop.price_for(Rarity.EPIC) == 7
