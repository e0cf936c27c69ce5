"""In-memory shop item catalogue for development and tests."""

from backoffice.catalog.port import ShopItemCatalog


class InMemoryCatalog(ShopItemCatalog):
    """Every item needs manual fulfillment unless marked otherwise."""

    def __init__(self):
        self._auto_fulfillable: set[str] = set()

    def mark_auto_fulfillable(self, shop_item_id):
        self._auto_fulfillable.add(str(shop_item_id))

    def is_auto_fulfillable(self, shop_item_id) -> bool:
        return str(shop_item_id) in self._auto_fulfillable
