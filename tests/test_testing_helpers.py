import pytest

from rewardforge.domain.catalog import Rarity
from rewardforge.testing import CatalogItemFactory, ScenarioClient, StudentFactory, app_fixture


def test_item_factory_covers_every_tier():
    items = CatalogItemFactory().full_catalog(per_rarity=2)
    assert len(items) == 8
    assert {item.rarity for item in items} == set(Rarity)
    assert len({item.item_id for item in items}) == 8


def test_student_factory_builds_records():
    record = StudentFactory().build_record(currency_balance=3, owned_item_ids=["a"])
    assert record.student_id
    assert record.currency_balance == 3
    assert record.owned_item_ids == {"a"}


@pytest.mark.asyncio()
async def test_scenario_client_logs_actions():
    app = app_fixture(rng_seed=11)
    app.items.items(CatalogItemFactory().full_catalog())
    client = ScenarioClient(app)

    assert await client.award("ana", 12) == 2
    await client.draw("ana")
    app.student_store.put(StudentFactory().build_record("ben", currency_balance=40))
    cheapest = next(item for item in app.items.catalog.iter_items() if item.rarity is Rarity.COMMON)
    await client.buy("ben", cheapest.item_id)

    award, draw, buy = client.history()
    assert award.metadata == {"points": 12, "credited": 2}
    assert draw.text.startswith("ana drew ")
    assert buy.metadata == {"price": 4, "balance": 36}


@pytest.mark.asyncio()
async def test_memory_app_fixture_is_isolated(memory_app):
    assert memory_app.config.storage.backend == "memory"
    assert len(memory_app.items.catalog) == 0
    await memory_app.accrual.credit("s1", 5)
    assert (await memory_app.students.fetch("s1")).currency_balance == 1
