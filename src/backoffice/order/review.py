"""Order review — approval, rejection and holds.

All four commands are admin-only for fulfillment staff and require the
``access_shop_orders`` capability for everyone without a role.
"""

from protean import handle
from protean.fields import Identifier, Integer, String

from backoffice.access.permissions import Action
from backoffice.catalog import get_catalog
from backoffice.domain import backoffice
from backoffice.order.order import Order
from backoffice.order.transitions import run_transition


@backoffice.command(part_of="Order")
class ApproveOrder:
    """Approve a pending order for fulfillment (or fulfill it outright)."""

    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    expected_version = Integer()


@backoffice.command(part_of="Order")
class RejectOrder:
    """Reject a pending or held order, with an optional reason."""

    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    reason = String(max_length=1000)
    expected_version = Integer()


@backoffice.command(part_of="Order")
class PlaceOrderOnHold:
    """Pause a pending or queued order."""

    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    expected_version = Integer()


@backoffice.command(part_of="Order")
class ReleaseOrderFromHold:
    """Resume a held order at the status it was held from."""

    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    expected_version = Integer()


@backoffice.command_handler(part_of=Order)
class ReviewOrderHandler:
    @handle(ApproveOrder)
    def approve_order(self, command):
        def approve(order, caller):
            auto_fulfill = get_catalog().is_auto_fulfillable(order.shop_item_id)
            return order.approve(caller.id, auto_fulfill=auto_fulfill)

        return run_transition(command, Action.APPROVE, approve)

    @handle(RejectOrder)
    def reject_order(self, command):
        return run_transition(command, Action.REJECT, lambda order, _: order.reject(command.reason))

    @handle(PlaceOrderOnHold)
    def place_on_hold(self, command):
        return run_transition(command, Action.PLACE_ON_HOLD, lambda order, _: order.place_on_hold())

    @handle(ReleaseOrderFromHold)
    def release_from_hold(self, command):
        return run_transition(command, Action.RELEASE_FROM_HOLD, lambda order, _: order.release_from_hold())
