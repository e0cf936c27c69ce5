"""Order store port and its protean-repository adapter.

The store is the first phase of every listing: it narrows orders with the
criteria a database can answer (status, item, owner, creation window) and
returns them sorted. Saving is optimistic: each order carries a
``lock_version`` and a save whose version no longer matches the persisted
one raises ``Conflict`` instead of overwriting.
"""

import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime

from protean import atomic_change
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from backoffice.errors import Conflict
from backoffice.order.order import Order, OrderStatus
from backoffice.settings import ORDER_QUERY_PAGE_SIZE
from backoffice.utils.logging import get_logger
from backoffice.utils.queries import fetch_all

logger = get_logger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def aware(value):
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


# ---------------------------------------------------------------------------
# Sorting
# ---------------------------------------------------------------------------
def _created(order):
    return aware(order.created_at) or _EPOCH


def _price(order):
    return order.frozen_item_price or 0.0


# sort key → (key function, descending)
SORT_KEYS = {
    "id_asc": (lambda o: str(o.id), False),
    "id_desc": (lambda o: str(o.id), True),
    "created_at_asc": (_created, False),
    "price_asc": (_price, False),
    "price_desc": (_price, True),
}
DEFAULT_SORT = (_created, True)


def sort_orders(orders, sort=None):
    """Sort by a recognised sort key; anything else sorts newest first."""
    key, descending = SORT_KEYS.get(sort, DEFAULT_SORT)
    return sorted(orders, key=key, reverse=descending)


# ---------------------------------------------------------------------------
# Store-level filter
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class OrderFilter:
    """Criteria the backing store evaluates.

    ``statuses`` and ``user_ids`` use None for "no restriction"; an empty
    set matches nothing.
    """

    statuses: frozenset | None = None
    shop_item_id: str | None = None
    user_id: str | None = None
    user_ids: frozenset | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None
    sort: str | None = None


def _snapshot(order):
    address = order.frozen_address.to_dict() if order.frozen_address else None
    return order.frozen_item_price, address


class KeyedLocks:
    """Re-entrant locks handed out per key and dropped once nobody holds them."""

    def __init__(self):
        self._guard = threading.Lock()
        self._entries = {}  # key -> [lock, holders]

    @contextmanager
    def hold(self, key):
        key = str(key)
        with self._guard:
            entry = self._entries.setdefault(key, [threading.RLock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._entries[key]

    def __len__(self):
        with self._guard:
            return len(self._entries)


# ---------------------------------------------------------------------------
# Port
# ---------------------------------------------------------------------------
class OrderStore(ABC):
    """Abstract interface for order persistence."""

    @abstractmethod
    def find(self, order_id) -> Order:
        """Load one order; raises ObjectNotFoundError when it does not exist."""
        ...

    @abstractmethod
    def query(self, order_filter: OrderFilter) -> list[Order]:
        """Orders matching the filter, sorted by ``order_filter.sort``."""
        ...

    @abstractmethod
    def save(self, order: Order) -> Order:
        """Persist an order.

        Raises Conflict when the order changed since it was loaded and
        ValidationError when the frozen snapshot was altered.
        """
        ...

    @abstractmethod
    def locked(self, order_id):
        """Context manager serialising writers of one order until it exits."""
        ...

    @abstractmethod
    def fulfilled_counts(self) -> dict[str, int]:
        """Fulfilled orders per non-empty ``fulfilled_by``, in first-fulfilled order."""
        ...


# ---------------------------------------------------------------------------
# Adapter
# ---------------------------------------------------------------------------
class RepositoryOrderStore(OrderStore):
    """Order store backed by the domain's Order repository.

    Queries page through every match ``page_size`` records at a time.
    Writers of the same order are serialised through ``locked``; callers
    that commit later hold it across their whole unit of work.
    """

    def __init__(self, page_size: int = ORDER_QUERY_PAGE_SIZE):
        self.page_size = page_size
        self._locks = KeyedLocks()

    def locked(self, order_id):
        return self._locks.hold(order_id)

    def find(self, order_id):
        return current_domain.repository_for(Order).get(str(order_id))

    def query(self, order_filter):
        criteria = {}
        if order_filter.statuses is not None:
            if not order_filter.statuses:
                return []
            criteria["status__in"] = sorted(order_filter.statuses)
        if order_filter.user_ids is not None:
            if not order_filter.user_ids:
                return []
            criteria["user_id__in"] = sorted(order_filter.user_ids)
        if order_filter.shop_item_id:
            criteria["shop_item_id"] = str(order_filter.shop_item_id)
        if order_filter.user_id:
            criteria["user_id"] = str(order_filter.user_id)

        query = current_domain.repository_for(Order)._dao.query
        if criteria:
            query = query.filter(**criteria)
        orders = fetch_all(query.order_by(["-created_at", "id"]), self.page_size)

        created_from = aware(order_filter.created_from)
        created_to = aware(order_filter.created_to)
        if created_from is not None:
            orders = [o for o in orders if _created(o) >= created_from]
        if created_to is not None:
            orders = [o for o in orders if _created(o) <= created_to]

        return sort_orders(orders, order_filter.sort)

    def save(self, order):
        repo = current_domain.repository_for(Order)
        with self.locked(order.id):
            try:
                persisted = repo.get(str(order.id))
            except ObjectNotFoundError:
                persisted = None

            if persisted is not None:
                if persisted.lock_version != order.lock_version:
                    logger.warning(
                        "order_conflict",
                        order_id=str(order.id),
                        expected_version=order.lock_version,
                        actual_version=persisted.lock_version,
                    )
                    raise Conflict(order.id, order.lock_version, persisted.lock_version)
                if _snapshot(persisted) != _snapshot(order):
                    raise ValidationError({"frozen_address": ["Frozen price and address cannot change after placement"]})

            with atomic_change(order):
                order.lock_version = (order.lock_version or 0) + 1
                order.updated_at = datetime.now(UTC)
            repo.add(order)
        return order

    def fulfilled_counts(self):
        query = current_domain.repository_for(Order)._dao.query.filter(status=OrderStatus.FULFILLED.value)
        orders = fetch_all(query.order_by(["fulfilled_at", "id"]), self.page_size)

        counts: dict[str, int] = {}
        for order in orders:
            if not order.fulfilled_by:
                continue
            counts[order.fulfilled_by] = counts.get(order.fulfilled_by, 0) + 1
        return counts


_order_store_instance = None


def get_order_store() -> OrderStore:
    """Return the order store (singleton)."""
    global _order_store_instance
    if _order_store_instance is None:
        _order_store_instance = RepositoryOrderStore()
    return _order_store_instance


def set_order_store(store: OrderStore):
    """Swap in another order store implementation."""
    global _order_store_instance
    _order_store_instance = store


def reset_order_store():
    """Reset the order store singleton (useful for testing)."""
    global _order_store_instance
    _order_store_instance = None
