"""Shared BDD fixtures and step definitions for the back office."""

import pytest
from backoffice.audit.audit_record import ORDER_ENTITY
from backoffice.audit.store import get_audit_store
from backoffice.errors import Conflict, Forbidden, InvalidTransition
from backoffice.order.order import Order
from backoffice.order.review import ApproveOrder
from backoffice.order.transitions import dispatch
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError
from pytest_bdd import given, parsers, then

_FAILURES = (Forbidden, InvalidTransition, Conflict, ValidationError, ObjectNotFoundError)


def address_in(country):
    return {"line1": "1 Example Street", "city": "Example City", "postal_code": "00001", "country": country}


@pytest.fixture()
def outcome():
    """Container for the result or captured failure of the last When step."""
    return {"order": None, "error": None}


@pytest.fixture()
def attempt(outcome):
    """Process a command, capturing the typed failure instead of raising it."""

    def _attempt(command):
        try:
            outcome["order"] = dispatch(command)
        except _FAILURES as exc:
            outcome["error"] = exc

    return _attempt


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.parse('a pending order for item "{item}" shipping to "{country}"'), target_fixture="order_id")
def _(place, item, country):
    return place(shop_item_id=item, address=address_in(country))


@given(parsers.parse('the item "{item}" is auto-fulfillable'))
def _(catalog, item):
    catalog.mark_auto_fulfillable(item)


@given("the order has been approved by an admin")
def _(order_id, admin):
    current_domain.process(ApproveOrder(order_id=order_id, actor_id=admin.id), asynchronous=False)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.parse('the order is "{status}"'))
def _(order_id, status):
    assert current_domain.repository_for(Order).get(order_id).status == status


@then(parsers.parse("the order has {count:d} audit records"))
def _(order_id, count):
    assert len(get_audit_store().history(ORDER_ENTITY, order_id)) == count


@then(parsers.parse('the latest audit record changes status from "{old}" to "{new}"'))
def _(order_id, old, new):
    latest = get_audit_store().history(ORDER_ENTITY, order_id)[-1]
    assert latest.change_for("status") == ("status", old, new)


@then(parsers.parse("the request fails with {failure}"))
def _(outcome, failure):
    assert outcome["error"] is not None
    assert type(outcome["error"]).__name__ == failure
