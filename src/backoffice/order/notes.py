"""Internal notes — command and handler."""

from protean import handle
from protean.fields import Identifier, Integer, String

from backoffice.access.permissions import Action
from backoffice.domain import backoffice
from backoffice.order.order import Order
from backoffice.order.transitions import run_transition


@backoffice.command(part_of="Order")
class UpdateInternalNotes:
    """Replace the staff-only notes on an order. Allowed in every status."""

    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    internal_notes = String(max_length=5000)
    expected_version = Integer()


@backoffice.command_handler(part_of=Order)
class UpdateNotesHandler:
    @handle(UpdateInternalNotes)
    def update_notes(self, command):
        return run_transition(
            command,
            Action.UPDATE_NOTES,
            lambda order, _: order.update_notes(command.internal_notes),
        )
