"""Order placement — command and handler.

Orders are placed by the storefront; the back office only needs a way to
record them with their frozen price and address.
"""

import json

from protean import handle
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from backoffice.domain import backoffice
from backoffice.order.order import Order
from backoffice.order.store import get_order_store
from backoffice.utils.logging import get_logger

logger = get_logger(__name__)


@backoffice.command(part_of="Order")
class PlaceOrder:
    """Record a new pending order."""

    user_id = Identifier(required=True)
    shop_item_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    item_price = Float(min_value=0.0)
    address = Text()  # JSON: {name, line1, line2, city, state, postal_code, country}
    internal_notes = String(max_length=5000)


@backoffice.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        address = command.address
        if address and isinstance(address, str):
            address = json.loads(address)

        order = Order.place(
            user_id=command.user_id,
            shop_item_id=command.shop_item_id,
            quantity=command.quantity,
            item_price=command.item_price,
            address=address,
            internal_notes=command.internal_notes,
        )
        get_order_store().save(order)
        logger.info("order_placed", order_id=str(order.id), user_id=str(order.user_id))
        return str(order.id)


def place_order(**kwargs):
    """Process a PlaceOrder command synchronously and return the new order id."""
    if isinstance(kwargs.get("address"), dict):
        kwargs["address"] = json.dumps(kwargs["address"])
    return current_domain.process(PlaceOrder(**kwargs), asynchronous=False)
