"""Shop item catalogue port: what the back office needs to know about items."""

from abc import ABC, abstractmethod


class ShopItemCatalog(ABC):
    """Abstract interface for shop item catalogue adapters."""

    @abstractmethod
    def is_auto_fulfillable(self, shop_item_id) -> bool:
        """True when approving an order for this item fulfills it on the spot.

        Digital grants and similar items deliver themselves and never enter
        the fulfillment queue.
        """
        ...
