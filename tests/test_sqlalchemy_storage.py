import asyncio

import pytest

from conftest import FixedRandom
from rewardforge.admin import build_admin_service
from rewardforge.app import RewardApp
from rewardforge.config import RetryConfig, RewardForgeConfig, StorageConfig
from rewardforge.domain.catalog import CatalogItem, Rarity
from rewardforge.domain.exceptions import ConcurrentModificationConflict
from rewardforge.storage.base import LedgerCause
from rewardforge.storage.sqlalchemy import AsyncSQLAlchemyStorage


def _dsn(tmp_path):
    return f"sqlite+aiosqlite:///{(tmp_path / 'rewards.db').as_posix()}"


@pytest.mark.asyncio()
async def test_sqlalchemy_backend_roundtrip(tmp_path):
    config = RewardForgeConfig(storage=StorageConfig(backend="sqlalchemy", dsn=_dsn(tmp_path)))
    app = RewardApp(config)
    app.items.items(
        [
            CatalogItem("c1", "Pebble Puppy", Rarity.COMMON),
            CatalogItem("r1", "Moss Turtle", Rarity.RARE),
            CatalogItem("e1", "Frost Owl", Rarity.EPIC),
            CatalogItem("l1", "Sun Dragon", Rarity.LEGENDARY),
        ]
    )
    await app.init_backend()
    try:
        assert await app.accrual.credit("s1", 12) == 2
        result = await app.draws.draw("s1")

        profile = await app.students.fetch("s1")
        assert profile.accrual_progress == 2
        assert profile.currency_balance == 1
        assert profile.owned_item_ids == {result.item.item_id}

        history = await app.students.history("s1")
        assert [entry.cause for entry in history] == [
            LedgerCause.DRAW_COST,
            LedgerCause.ACCRUAL_CREDIT,
        ]
        assert history[0].timestamp.tzinfo is not None

        (acquisition,) = await app.students.acquisitions("s1")
        assert acquisition.item_id == result.item.item_id
        assert acquisition.is_new
    finally:
        await app.close()


@pytest.mark.asyncio()
async def test_stale_version_raises_conflict(tmp_path):
    storage = AsyncSQLAlchemyStorage(_dsn(tmp_path))
    await storage.init_models()
    store = storage.student_store()
    try:
        async with store.unit_of_work("s1") as work:
            work.record.currency_balance = 1

        with pytest.raises(ConcurrentModificationConflict):
            async with store.unit_of_work("s1") as outer:
                async with store.unit_of_work("s1") as inner:
                    inner.record.currency_balance += 1
                outer.record.currency_balance += 5

        record = await store.get_or_create("s1")
        assert record.currency_balance == 2
        assert record.version == 2
    finally:
        await storage.dispose()


@pytest.mark.asyncio()
async def test_manual_grant_is_audited_in_database(tmp_path):
    config = RewardForgeConfig(storage=StorageConfig(backend="sqlalchemy", dsn=_dsn(tmp_path)))
    app = RewardApp(config)
    await app.init_backend()
    try:
        entry = await build_admin_service(app).grant_tickets("s1", 3, reason="science fair")
        assert entry.cause is LedgerCause.MANUAL_GRANT
        assert (await app.students.fetch("s1")).currency_balance == 3
    finally:
        await app.close()


async def _sql_app(tmp_path, rng=None):
    config = RewardForgeConfig(
        storage=StorageConfig(backend="sqlalchemy", dsn=_dsn(tmp_path)),
        retry=RetryConfig(max_attempts=40, base_delay=0.001, max_delay=0.005),
    )
    app = RewardApp(config, rng=rng)
    app.items.items(
        [
            CatalogItem("c1", "Pebble Puppy", Rarity.COMMON),
            CatalogItem("r1", "Moss Turtle", Rarity.RARE),
            CatalogItem("e1", "Frost Owl", Rarity.EPIC),
            CatalogItem("l1", "Sun Dragon", Rarity.LEGENDARY),
        ]
    )
    await app.init_backend()
    return app


@pytest.mark.asyncio()
async def test_concurrent_awards_credit_each_ticket_once(tmp_path):
    app = await _sql_app(tmp_path)
    try:
        await app.accrual.credit("s1", 4)
        results = await asyncio.gather(app.accrual.credit("s1", 3), app.accrual.credit("s1", 3))

        profile = await app.students.fetch("s1")
        assert sum(results) == 2
        assert profile.accrual_progress == 0
        assert profile.currency_balance == 2
    finally:
        await app.close()


@pytest.mark.asyncio()
async def test_many_concurrent_points_survive_conflicts(tmp_path):
    app = await _sql_app(tmp_path)
    try:
        await app.accrual.credit("s1", 1)
        await asyncio.gather(*(app.accrual.credit("s1", 1) for _ in range(19)))

        profile = await app.students.fetch("s1")
        assert profile.currency_balance == 4
        assert profile.accrual_progress == 0
        history = await app.students.history("s1", limit=50)
        assert [entry.balance_after for entry in history] == [4, 3, 2, 1]
    finally:
        await app.close()


@pytest.mark.asyncio()
async def test_concurrent_draws_spend_each_ticket_once(tmp_path):
    app = await _sql_app(tmp_path, rng=FixedRandom(0.99))
    try:
        await build_admin_service(app).grant_tickets("s1", 6)
        results = await asyncio.gather(*(app.draws.draw("s1") for _ in range(6)))

        profile = await app.students.fetch("s1")
        assert len(results) == 6
        assert sum(result.is_duplicate for result in results) == 4
        assert sum(result.pity_triggered for result in results) == 1
        assert profile.owned_item_ids == {"c1", "r1"}
        assert profile.currency_balance == 4
        assert profile.consecutive_duplicate_count == 2

        history = await app.students.history("s1", limit=50)
        assert sum(entry.currency_delta for entry in history) == profile.currency_balance
        assert sum(entry.cause is LedgerCause.DRAW_COST for entry in history) == 6

        acquisitions = await app.students.acquisitions("s1", limit=6)
        assert len(acquisitions) == 6
        assert sum(entry.is_new for entry in acquisitions) == 2
    finally:
        await app.close()
