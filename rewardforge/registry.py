"""Runtime registry facade for the reward catalog."""

from __future__ import annotations

from typing import Iterable

from .domain.catalog import Catalog, CatalogItem


class CatalogRegistry:
    """Facade around Catalog with chainable API."""

    def __init__(self) -> None:
        self.catalog = Catalog()

    def item(self, item: CatalogItem) -> "CatalogRegistry":
        self.catalog.register_item(item)
        return self

    def items(self, items: Iterable[CatalogItem]) -> "CatalogRegistry":
        self.catalog.register_items(items)
        return self


__all__ = ["CatalogRegistry"]
