"""Order fulfillment — command and handler."""

from protean import handle
from protean.fields import Identifier, Integer

from backoffice.access.permissions import Action
from backoffice.domain import backoffice
from backoffice.order.order import Order
from backoffice.order.transitions import run_transition


@backoffice.command(part_of="Order")
class MarkOrderFulfilled:
    """Record that a queued order has shipped; the actor becomes its fulfiller."""

    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    expected_version = Integer()


@backoffice.command_handler(part_of=Order)
class FulfillOrderHandler:
    @handle(MarkOrderFulfilled)
    def mark_fulfilled(self, command):
        return run_transition(command, Action.MARK_FULFILLED, lambda order, caller: order.mark_fulfilled(caller.id))
