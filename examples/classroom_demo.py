"""Example classroom economy: load pets, award merit points and draw."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from rich.console import Console

from rewardforge import RewardApp, RewardForgeConfig
from rewardforge.diagnostics.economy_simulator import EconomySimulator
from rewardforge.domain.events import DRAW_COMMITTED, DrawCommitted
from rewardforge.domain.exceptions import InsufficientCurrency
from rewardforge.loaders import load_catalog_from_json

console = Console()


def register(app: RewardApp) -> None:
    """Register the pet catalog and its economy tables."""
    catalog_path = Path(__file__).with_name("catalog") / "pets.json"
    load_catalog_from_json(app, catalog_path)


def simulate() -> None:
    app = RewardApp(RewardForgeConfig.from_env())
    register(app)
    result = EconomySimulator(app).simulate(pulls=100)
    console.print(f"Unique pets: {result.uniques}, duplicates: {result.duplicates}")


async def announce(event: DrawCommitted) -> None:
    result = event.result
    suffix = " (duplicate)" if result.is_duplicate else ""
    console.print(f"{event.student_id} adopted [bold]{result.item.name}[/bold]{suffix}")


async def run_demo() -> None:
    app = RewardApp(RewardForgeConfig.from_env())
    register(app)
    await app.init_backend()
    app.event_bus.subscribe(DRAW_COMMITTED, announce)

    students = ["ana", "ben", "chloe"]
    # Homework points trickle in concurrently from the stat tracker.
    await asyncio.gather(
        *(app.accrual.credit(student, points) for student in students for points in (3, 4, 5))
    )
    for student in students:
        while True:
            try:
                await app.draws.draw(student)
            except InsufficientCurrency:
                break
        profile = await app.students.fetch(student)
        console.print(
            f"{student}: {len(profile.owned_item_ids)} pets, "
            f"{profile.points_to_next_ticket} points to the next ticket"
        )
    await app.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(run_demo())
