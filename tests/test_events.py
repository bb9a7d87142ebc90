import logging

import pytest

from rewardforge.domain.events import EventBus


@pytest.mark.asyncio()
async def test_failing_listener_is_logged_and_others_still_run(caplog):
    bus = EventBus()
    received = []

    async def broken(payload):
        raise RuntimeError("display offline")

    async def recorder(payload):
        received.append(payload)

    bus.subscribe("reward.draw.committed", broken)
    bus.subscribe("reward.draw.committed", recorder)

    with caplog.at_level(logging.ERROR, logger="rewardforge.domain.events"):
        await bus.publish("reward.draw.committed", {"student_id": "s1"})

    assert received == [{"student_id": "s1"}]
    assert "reward.draw.committed" in caplog.text


@pytest.mark.asyncio()
async def test_unsubscribe_and_clear():
    bus = EventBus()
    received = []

    async def recorder(payload):
        received.append(payload)

    bus.subscribe("a", recorder)
    bus.unsubscribe("a", recorder)
    bus.unsubscribe("missing", recorder)
    await bus.publish("a", 1)
    bus.subscribe("b", recorder)
    bus.clear()
    await bus.publish("b", 2)

    assert received == []
    assert bus.listeners("b") == ()
