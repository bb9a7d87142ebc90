"""Direct purchase of a chosen item with tickets."""

from __future__ import annotations

import logging

from ..config import EconomyConfig
from ..storage.base import LedgerEntry
from .catalog import Catalog, Rarity
from .events import PURCHASE_COMMITTED, EventBus, PurchaseCommitted
from .ledger import LedgerService, LedgerTransaction

logger = logging.getLogger(__name__)


class ShopService:
    """Let a student skip the draw and buy an unowned item outright."""

    def __init__(
        self,
        catalog: Catalog,
        ledger: LedgerService,
        economy: EconomyConfig,
        event_bus: EventBus,
    ) -> None:
        self._catalog = catalog
        self._ledger = ledger
        self._economy = economy
        self._event_bus = event_bus

    def price_for(self, rarity: Rarity) -> int:
        try:
            return int(self._economy.purchase_prices[rarity.value])
        except KeyError as exc:
            raise KeyError(f"No purchase price configured for rarity '{rarity.value}'") from exc

    async def purchase(self, student_id: str, item_id: str) -> LedgerEntry:
        item = self._catalog.get_item(item_id)
        price = self.price_for(item.rarity)

        def apply(tx: LedgerTransaction) -> LedgerEntry:
            return tx.apply_purchase(price, item)

        entry = await self._ledger.atomically(student_id, "purchase", apply)
        logger.info("Student %s bought %s for %s tickets.", student_id, item_id, price)
        await self._event_bus.publish(
            PURCHASE_COMMITTED,
            PurchaseCommitted(student_id=student_id, item_id=item_id, price=price),
        )
        return entry
