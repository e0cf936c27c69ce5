"""Access policy — who may open which view and perform which action.

Decisions come from a single table keyed by (principal, target) instead of
nested role checks. A principal is the coarse class a caller falls into:

    ADMIN        holds the admin role
    FULFILLMENT  holds the fulfillment role but not admin
    STAFF        anyone else; needs the ``access_shop_orders`` capability
"""

from enum import Enum

from backoffice.access.capabilities import get_capability_check
from backoffice.access.permissions import ACCESS_SHOP_ORDERS, Action, View
from backoffice.directory import get_directory
from backoffice.directory.port import Role
from backoffice.errors import Forbidden
from backoffice.order.order import OrderStatus
from backoffice.utils.logging import get_logger

logger = get_logger(__name__)


class Principal(Enum):
    ADMIN = "admin"
    FULFILLMENT = "fulfillment"
    STAFF = "staff"


class Decision(Enum):
    ALLOW = "allow"
    DENY = "deny"
    REQUIRE_CAPABILITY = "require_capability"


_TARGETS = [*View, *Action]

_FULFILLMENT_TARGETS = {
    View.FULFILLMENT,
    Action.VIEW_ORDER,
    Action.REVEAL_ADDRESS,
    Action.MARK_FULFILLED,
    Action.UPDATE_NOTES,
}

_RULES = {
    **{(Principal.ADMIN, target): Decision.ALLOW for target in _TARGETS},
    **{
        (Principal.FULFILLMENT, target): Decision.ALLOW if target in _FULFILLMENT_TARGETS else Decision.DENY
        for target in _TARGETS
    },
    **{(Principal.STAFF, target): Decision.REQUIRE_CAPABILITY for target in _TARGETS},
}


def principal_of(caller) -> Principal:
    if caller.has_role(Role.ADMIN):
        return Principal.ADMIN
    if caller.has_role(Role.FULFILLMENT):
        return Principal.FULFILLMENT
    return Principal.STAFF


def resolve_caller(actor_id):
    """Load the acting user; unknown actors are refused."""
    caller = get_directory().find_by_id(actor_id)
    if caller is None:
        logger.warning("unknown_actor", actor_id=str(actor_id))
        raise Forbidden()
    return caller


class AccessPolicy:
    def __init__(self, capability_check=None):
        self._capability_check = capability_check

    @property
    def capability_check(self):
        return self._capability_check or get_capability_check()

    def decide(self, caller, target) -> Decision:
        return _RULES.get((principal_of(caller), target), Decision.DENY)

    def allows(self, caller, target) -> bool:
        decision = self.decide(caller, target)
        if decision is Decision.REQUIRE_CAPABILITY:
            return self.capability_check.is_granted(caller, ACCESS_SHOP_ORDERS)
        return decision is Decision.ALLOW

    def authorize(self, caller, target) -> None:
        """Raise Forbidden unless the caller may reach ``target``."""
        decision = self.decide(caller, target)
        if decision is Decision.REQUIRE_CAPABILITY:
            try:
                self.capability_check.authorize(caller, ACCESS_SHOP_ORDERS)
            except Forbidden:
                logger.info("access_denied", actor_id=caller.id, target=target.value, reason="capability")
                raise
            return
        if decision is not Decision.ALLOW:
            logger.info("access_denied", actor_id=caller.id, target=target.value, reason="role")
            raise Forbidden()

    def default_status(self, caller, view) -> str | None:
        """Status filter applied when the caller passes none.

        Fraud reviewers land on the pending queue of the shop orders view.
        """
        if view is View.SHOP_ORDERS and caller.is_fraud_staff:
            return OrderStatus.PENDING.value
        return None

    def bound_region(self, caller) -> str | None:
        """Region a regional fulfillment caller is confined to, if any."""
        if caller.is_fulfillment_staff and caller.region:
            return caller.region.upper()
        return None


_policy_instance = None


def get_access_policy() -> AccessPolicy:
    """Return the access policy (singleton)."""
    global _policy_instance
    if _policy_instance is None:
        _policy_instance = AccessPolicy()
    return _policy_instance


def reset_access_policy():
    """Reset the access policy singleton (useful for testing)."""
    global _policy_instance
    _policy_instance = None
