"""Shared body of the order command handlers.

Every transition runs the same pipeline inside the handler's unit of work:

    resolve caller → access policy → load order → version check →
    transition (table lookup + mutation) → save → append audit record

Nothing is persisted unless every step succeeds, so an order mutation and
its audit record are committed together or not at all. Commands enter
through ``dispatch``, which holds the order's write lock until the unit of
work has committed.
"""

from protean.exceptions import ExpectedVersionError
from protean.utils.globals import current_domain

from backoffice.access.policy import get_access_policy, resolve_caller
from backoffice.audit.audit_record import ORDER_ENTITY, AuditRecord
from backoffice.audit.store import get_audit_store
from backoffice.errors import Conflict, InvalidTransition
from backoffice.order.store import get_order_store
from backoffice.utils.logging import get_logger

logger = get_logger(__name__)


def run_transition(command, action, mutate):
    """Apply ``mutate(order, caller)`` to the commanded order and audit it.

    ``mutate`` returns the list of FieldChange tuples it applied; an empty
    list means nothing changed and nothing is written.
    """
    caller = resolve_caller(command.actor_id)
    get_access_policy().authorize(caller, action)

    store = get_order_store()
    order = store.find(command.order_id)

    expected = command.expected_version
    if expected is not None and order.lock_version != expected:
        logger.warning(
            "order_conflict",
            order_id=str(order.id),
            action=action.value,
            expected_version=expected,
            actual_version=order.lock_version,
        )
        raise Conflict(order.id, expected, order.lock_version)

    try:
        changes = mutate(order, caller)
    except InvalidTransition as exc:
        logger.info("transition_rejected", order_id=str(order.id), action=action.value, status=exc.state)
        raise

    if not changes:
        logger.debug("order_unchanged", order_id=str(order.id), action=action.value)
        return order

    store.save(order)
    get_audit_store().append(AuditRecord.record(ORDER_ENTITY, order.id, caller.id, changes))

    logger.info(
        "order_transitioned",
        order_id=str(order.id),
        action=action.value,
        actor_id=caller.id,
        status=order.status,
    )
    return order


def dispatch(command):
    """Process an order command while holding that order's write lock.

    The lock spans the handler's unit of work, commit included, so two
    writers of one order never both pass the version check. A clash the
    repository still detects at commit (another process got there first)
    is raised as ``Conflict``.
    """
    store = get_order_store()
    with store.locked(command.order_id):
        try:
            return current_domain.process(command, asynchronous=False)
        except ExpectedVersionError as exc:
            actual = store.find(command.order_id).lock_version
            logger.warning(
                "order_conflict",
                order_id=str(command.order_id),
                expected_version=command.expected_version,
                actual_version=actual,
            )
            raise Conflict(command.order_id, command.expected_version, actual) from exc
