"""Order aggregate — a shop order moving through staff review and fulfillment.

State Machine (5 states):
    PENDING → AWAITING_FULFILLMENT → FULFILLED
    PENDING → FULFILLED                        (auto-fulfillable items)
    {PENDING, AWAITING_FULFILLMENT} → ON_HOLD → back to the pre-hold state
    {PENDING, ON_HOLD} → REJECTED

REJECTED and FULFILLED are terminal. Internal notes may be edited in any
state. Every mutating method returns the ordered list of FieldChange tuples
it applied so the caller can write the matching audit record.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, Integer, String, ValueObject

from backoffice.access.permissions import Action, View
from backoffice.audit.audit_record import FieldChange
from backoffice.domain import backoffice
from backoffice.errors import InvalidTransition
from backoffice.settings import DEFAULT_REJECTION_REASON


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    ON_HOLD = "on_hold"
    REJECTED = "rejected"
    AWAITING_FULFILLMENT = "awaiting_fulfillment"
    FULFILLED = "fulfilled"


TERMINAL_STATUSES = {OrderStatus.REJECTED, OrderStatus.FULFILLED}

# Statuses each listing view shows by default
VIEW_SCOPES = {
    View.SHOP_ORDERS: (OrderStatus.PENDING, OrderStatus.REJECTED, OrderStatus.ON_HOLD),
    View.FULFILLMENT: (OrderStatus.AWAITING_FULFILLMENT, OrderStatus.FULFILLED),
}

# (action, current status) → resulting status.
# RELEASE_FROM_HOLD maps to None: the order returns to its pre-hold status.
_TRANSITIONS = {
    (Action.APPROVE, OrderStatus.PENDING): OrderStatus.AWAITING_FULFILLMENT,
    (Action.REJECT, OrderStatus.PENDING): OrderStatus.REJECTED,
    (Action.REJECT, OrderStatus.ON_HOLD): OrderStatus.REJECTED,
    (Action.PLACE_ON_HOLD, OrderStatus.PENDING): OrderStatus.ON_HOLD,
    (Action.PLACE_ON_HOLD, OrderStatus.AWAITING_FULFILLMENT): OrderStatus.ON_HOLD,
    (Action.RELEASE_FROM_HOLD, OrderStatus.ON_HOLD): None,
    (Action.MARK_FULFILLED, OrderStatus.AWAITING_FULFILLMENT): OrderStatus.FULFILLED,
    **{(Action.UPDATE_NOTES, status): status for status in OrderStatus},
}

_HOLDABLE_STATUSES = {OrderStatus.PENDING.value, OrderStatus.AWAITING_FULFILLMENT.value}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@backoffice.value_object(part_of="Order")
class FrozenAddress:
    """The shipping address captured when the order was placed.

    Later edits to the customer's address book never reach this snapshot;
    the order ships to where it was placed to.
    """

    name = String(max_length=200)
    line1 = String(required=True, max_length=255)
    line2 = String(max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(max_length=20)
    country = String(required=True, max_length=2)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@backoffice.aggregate
class Order:
    user_id = Identifier(required=True)
    shop_item_id = Identifier(required=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    quantity = Integer(required=True, min_value=1)
    frozen_item_price = Float(min_value=0.0)
    frozen_address = ValueObject(FrozenAddress)
    fulfilled_by = String(max_length=50)
    fulfilled_at = DateTime()
    rejection_reason = String(max_length=1000)
    internal_notes = String(max_length=5000)
    status_before_hold = String(max_length=50)
    lock_version = Integer(default=0)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def fulfilled_at_is_set_only_when_fulfilled(self):
        fulfilled = self.status == OrderStatus.FULFILLED.value
        if fulfilled != (self.fulfilled_at is not None):
            raise ValidationError({"fulfilled_at": ["must be set exactly when the order is fulfilled"]})

    @invariant.post
    def rejection_reason_is_set_only_when_rejected(self):
        rejected = self.status == OrderStatus.REJECTED.value
        if rejected != (self.rejection_reason is not None):
            raise ValidationError({"rejection_reason": ["must be set exactly when the order is rejected"]})

    @invariant.post
    def hold_remembers_previous_status(self):
        on_hold = self.status == OrderStatus.ON_HOLD.value
        if on_hold != (self.status_before_hold is not None):
            raise ValidationError({"status_before_hold": ["must be set exactly when the order is on hold"]})
        if on_hold and self.status_before_hold not in _HOLDABLE_STATUSES:
            raise ValidationError({"status_before_hold": [f"cannot resume to {self.status_before_hold}"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, user_id, shop_item_id, quantity, item_price=None, address=None, internal_notes=None):
        """Create a pending order, freezing the item price and shipping address.

        Args:
            address: Dict with name, line1, line2, city, state, postal_code,
                     country; None for items that never ship.
        """
        now = datetime.now(UTC)
        return cls(
            user_id=str(user_id),
            shop_item_id=str(shop_item_id),
            quantity=quantity,
            frozen_item_price=item_price,
            frozen_address=FrozenAddress(**address) if address else None,
            internal_notes=internal_notes or None,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------
    @property
    def total_cost(self):
        if self.frozen_item_price is None:
            return None
        return self.frozen_item_price * self.quantity

    @property
    def country(self):
        return self.frozen_address.country if self.frozen_address else None

    def allowed_actions(self) -> list[Action]:
        """Actions the transition table accepts from the current status."""
        current = OrderStatus(self.status)
        return [action for (action, status) in _TRANSITIONS if status == current]

    # -------------------------------------------------------------------
    # State transition helper
    # -------------------------------------------------------------------
    def _target_for(self, action):
        """Look up the resulting status, rejecting pairs absent from the table."""
        current = OrderStatus(self.status)
        if (action, current) not in _TRANSITIONS:
            raise InvalidTransition(action.value, current.value)
        return _TRANSITIONS[(action, current)]

    # -------------------------------------------------------------------
    # Review transitions
    # -------------------------------------------------------------------
    def approve(self, actor_id, auto_fulfill=False):
        """Approve a pending order.

        Auto-fulfillable items skip the fulfillment queue and are fulfilled
        by the approver right away; the audit diff then goes straight from
        pending to fulfilled.
        """
        target = self._target_for(Action.APPROVE)
        if auto_fulfill:
            return self._fulfill(actor_id)

        previous = self.status
        self.status = target.value
        return [FieldChange("status", previous, self.status)]

    def reject(self, reason=None):
        target = self._target_for(Action.REJECT)
        reason = reason.strip() if reason and reason.strip() else DEFAULT_REJECTION_REASON

        previous_status = self.status
        previous_reason = self.rejection_reason
        with atomic_change(self):
            self.status = target.value
            self.rejection_reason = reason
            self.status_before_hold = None

        return [
            FieldChange("status", previous_status, self.status),
            FieldChange("rejection_reason", previous_reason, reason),
        ]

    def place_on_hold(self):
        target = self._target_for(Action.PLACE_ON_HOLD)

        previous = self.status
        with atomic_change(self):
            self.status_before_hold = previous
            self.status = target.value
        return [FieldChange("status", previous, self.status)]

    def release_from_hold(self):
        self._target_for(Action.RELEASE_FROM_HOLD)

        previous = self.status
        with atomic_change(self):
            self.status = self.status_before_hold
            self.status_before_hold = None
        return [FieldChange("status", previous, self.status)]

    # -------------------------------------------------------------------
    # Fulfillment
    # -------------------------------------------------------------------
    def mark_fulfilled(self, actor_id, fulfilled_at=None):
        self._target_for(Action.MARK_FULFILLED)
        return self._fulfill(actor_id, fulfilled_at)

    def _fulfill(self, actor_id, fulfilled_at=None):
        previous = self.status
        with atomic_change(self):
            self.status = OrderStatus.FULFILLED.value
            self.fulfilled_at = fulfilled_at or datetime.now(UTC)
            self.fulfilled_by = str(actor_id) if actor_id is not None else None
        return [FieldChange("status", previous, self.status)]

    # -------------------------------------------------------------------
    # Notes
    # -------------------------------------------------------------------
    def update_notes(self, notes):
        """Replace the internal notes. Identical content is a no-op."""
        self._target_for(Action.UPDATE_NOTES)

        new_notes = notes or None
        previous = self.internal_notes or None
        if new_notes == previous:
            return []

        self.internal_notes = new_notes
        return [FieldChange("internal_notes", previous, new_notes)]
