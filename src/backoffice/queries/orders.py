"""Order listing, detail and address reveal for the back-office views.

Listing runs in two explicit phases:

1. ``candidates`` asks the order store for everything the view, status,
   item, date and user-search filters allow. Statistics are computed here.
2. ``partition_by_region`` classifies each candidate by the country of its
   frozen address and keeps one region. Orders without an address never
   match a region.

A regional fulfillment caller is always confined to their own region; any
requested region is ignored for them.
"""

from dataclasses import dataclass, field
from datetime import datetime

from protean.exceptions import ValidationError

from backoffice.access.permissions import Action, View
from backoffice.access.policy import get_access_policy
from backoffice.address import get_address_codec
from backoffice.address.port import AddressView
from backoffice.audit.audit_record import ORDER_ENTITY
from backoffice.audit.store import get_audit_store
from backoffice.directory import get_directory
from backoffice.directory.port import User
from backoffice.order.order import VIEW_SCOPES, Order, OrderStatus
from backoffice.order.store import OrderFilter, aware, get_order_store
from backoffice.regions import get_region_resolver
from backoffice.settings import USER_HISTORY_LIMIT
from backoffice.utils.logging import get_logger

logger = get_logger(__name__)

_STATUS_VALUES = {status.value for status in OrderStatus}


@dataclass
class OrderListFilter:
    """Listing parameters as a caller supplies them."""

    view: str = View.SHOP_ORDERS.value
    shop_item_id: str | None = None
    status: str | list | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    user_search: str | None = None
    region: str | None = None
    group_by_user: bool = False
    sort: str | None = None


@dataclass(frozen=True)
class OrderStats:
    counts: dict
    average_fulfillment_seconds: float | None = None


@dataclass
class UserGroup:
    user_id: str
    user: User | None
    orders: list
    total_items: int
    total_cost: float
    address: AddressView | None

    @property
    def order_count(self) -> int:
        return len(self.orders)


@dataclass
class OrderListing:
    view: View
    orders: list
    stats: OrderStats
    default_status: str | None = None
    region: str | None = None
    groups: list | None = None


@dataclass
class OrderDetail:
    order: Order
    history: list
    can_view_address: bool
    allowed_actions: list
    user_orders: list = field(default_factory=list)
    user_order_stats: dict = field(default_factory=dict)


def parse_view(value) -> View:
    if isinstance(value, View):
        return value
    try:
        return View(value or View.SHOP_ORDERS.value)
    except ValueError:
        raise ValidationError({"view": [f"Unknown view {value!r}"]}) from None


def _requested_statuses(status) -> set | None:
    """Statuses named by the caller; blank values mean no status filter."""
    values = [status] if isinstance(status, str) else list(status or ())
    requested = {value.strip() for value in values if value and value.strip()}
    if not requested:
        return None
    unknown = requested - _STATUS_VALUES
    if unknown:
        raise ValidationError({"status": [f"Unknown status {s!r}" for s in sorted(unknown)]})
    return requested


def statistics(orders) -> OrderStats:
    """Counts per status and mean seconds from placement to fulfillment."""
    counts = {status.value: 0 for status in OrderStatus}
    durations = []
    for order in orders:
        counts[order.status] += 1
        if order.status == OrderStatus.FULFILLED.value and order.fulfilled_at is not None:
            durations.append((aware(order.fulfilled_at) - aware(order.created_at)).total_seconds())

    average = sum(durations) / len(durations) if durations else None
    return OrderStats(counts=counts, average_fulfillment_seconds=average)


class OrderQuery:
    def __init__(self, store=None, audit_store=None, directory=None, resolver=None, codec=None, policy=None):
        self.store = store or get_order_store()
        self.audit_store = audit_store or get_audit_store()
        self.directory = directory or get_directory()
        self.resolver = resolver or get_region_resolver()
        self.codec = codec or get_address_codec()
        self.policy = policy or get_access_policy()

    # -------------------------------------------------------------------
    # Listing
    # -------------------------------------------------------------------
    def list_orders(self, caller, filters: OrderListFilter) -> OrderListing:
        view = parse_view(filters.view)
        self.policy.authorize(caller, view)

        default_status = self.policy.default_status(caller, view)
        orders = self.candidates(view, filters, default_status)
        stats = statistics(orders)

        region = self.policy.bound_region(caller)
        if region is None and filters.region:
            region = filters.region.strip().upper() or None
        if region is not None:
            orders = self.partition_by_region(orders, region)

        listing = OrderListing(view=view, orders=orders, stats=stats, default_status=default_status, region=region)
        if filters.group_by_user:
            listing.groups = self.group_by_user(caller, orders)

        logger.debug("orders_listed", view=view.value, count=len(orders), region=region)
        return listing

    def candidates(self, view, filters, default_status=None) -> list:
        """Phase one: everything the store can decide on its own."""
        statuses = {status.value for status in VIEW_SCOPES[view]}
        requested = _requested_statuses(filters.status)
        if requested is None:
            requested = _requested_statuses(default_status)
        if requested is not None:
            statuses &= requested

        user_ids = None
        if filters.user_search and filters.user_search.strip():
            user_ids = frozenset(user.id for user in self.directory.search(filters.user_search))

        return self.store.query(
            OrderFilter(
                statuses=frozenset(statuses),
                shop_item_id=filters.shop_item_id or None,
                user_ids=user_ids,
                created_from=filters.date_from,
                created_to=filters.date_to,
                sort=filters.sort,
            )
        )

    def partition_by_region(self, orders, region) -> list:
        """Phase two: keep orders whose frozen address lies in ``region``."""
        region = region.upper()
        return [
            order
            for order in orders
            if order.frozen_address is not None
            and self.resolver.country_to_region(order.frozen_address.country) == region
        ]

    def group_by_user(self, caller, orders) -> list[UserGroup]:
        by_user: dict[str, list] = {}
        for order in orders:
            by_user.setdefault(str(order.user_id), []).append(order)

        groups = []
        for user_id, user_orders in by_user.items():
            first = user_orders[0]
            address = self.codec.decrypt(first, caller) if self.codec.can_view(first, caller) else None
            groups.append(
                UserGroup(
                    user_id=user_id,
                    user=self.directory.find_by_id(user_id),
                    orders=user_orders,
                    total_items=sum(o.quantity for o in user_orders),
                    total_cost=sum(o.total_cost or 0 for o in user_orders),
                    address=address,
                )
            )
        return groups

    # -------------------------------------------------------------------
    # Single order
    # -------------------------------------------------------------------
    def show(self, caller, order_id) -> OrderDetail:
        self.policy.authorize(caller, Action.VIEW_ORDER)
        order = self.store.find(order_id)

        all_user_orders = self.store.query(OrderFilter(user_id=str(order.user_id)))
        others = [o for o in all_user_orders if str(o.id) != str(order.id)]

        user_order_stats = {status.value: 0 for status in OrderStatus}
        for user_order in all_user_orders:
            user_order_stats[user_order.status] += 1
        user_order_stats["total"] = len(all_user_orders)
        user_order_stats["total_quantity"] = sum(o.quantity for o in all_user_orders)

        return OrderDetail(
            order=order,
            history=self.audit_store.history(ORDER_ENTITY, order.id),
            can_view_address=self.codec.can_view(order, caller),
            allowed_actions=[a for a in order.allowed_actions() if self.policy.allows(caller, a)],
            user_orders=others[:USER_HISTORY_LIMIT],
            user_order_stats=user_order_stats,
        )

    def reveal_address(self, caller, order_id) -> AddressView | None:
        """Release the shipping address of one order; read-only."""
        self.policy.authorize(caller, Action.REVEAL_ADDRESS)
        order = self.store.find(order_id)
        address = self.codec.decrypt(order, caller)
        logger.info("address_revealed", order_id=str(order.id), actor_id=caller.id)
        return address
