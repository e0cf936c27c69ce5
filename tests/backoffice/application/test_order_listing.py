"""Application tests for the back-office order listing."""

from datetime import UTC, datetime, timedelta

import pytest
from backoffice.errors import Forbidden
from backoffice.order.fulfillment import MarkOrderFulfilled
from backoffice.order.order import Order, OrderStatus
from backoffice.order.review import ApproveOrder, PlaceOrderOnHold, RejectOrder
from backoffice.order.store import RepositoryOrderStore, aware, get_order_store, set_order_store
from backoffice.queries.orders import OrderListFilter, OrderQuery
from protean import current_domain
from protean.exceptions import ValidationError

AUSTIN = {"line1": "100 Congress Ave", "city": "Austin", "state": "TX", "postal_code": "78701", "country": "US"}


def _process(command):
    return current_domain.process(command, asynchronous=False)


def _ids(orders):
    return {str(o.id) for o in orders}


@pytest.fixture()
def board(place, admin, fulfiller_eu, customer, other_customer):
    """A small mixed board of orders across statuses, customers and regions."""
    ids = {
        "pending": place(),
        "held": place(),
        "rejected": place(),
        "queued_eu": place(user_id=other_customer.id, item_price=30.0),
        "queued_us": place(user_id=other_customer.id, address=AUSTIN, item_price=5.0),
        "fulfilled_eu": place(quantity=2),
        "no_address": place(address=None),
    }
    _process(PlaceOrderOnHold(order_id=ids["held"], actor_id=admin.id))
    _process(RejectOrder(order_id=ids["rejected"], actor_id=admin.id))
    for key in ("queued_eu", "queued_us", "fulfilled_eu", "no_address"):
        _process(ApproveOrder(order_id=ids[key], actor_id=admin.id))
    _process(MarkOrderFulfilled(order_id=ids["fulfilled_eu"], actor_id=fulfiller_eu.id))
    return ids


def _list(caller, **kwargs):
    return OrderQuery().list_orders(caller, OrderListFilter(**kwargs))


class TestViews:
    def test_shop_orders_view_shows_review_statuses(self, board, admin):
        listing = _list(admin)
        assert _ids(listing.orders) == {board["pending"], board["held"], board["rejected"]}

    def test_fulfillment_view_shows_fulfillment_statuses(self, board, admin):
        listing = _list(admin, view="fulfillment")
        assert _ids(listing.orders) == {
            board["queued_eu"],
            board["queued_us"],
            board["fulfilled_eu"],
            board["no_address"],
        }

    def test_status_filter_narrows_view(self, board, admin):
        listing = _list(admin, status="on_hold")
        assert _ids(listing.orders) == {board["held"]}

    def test_status_outside_view_yields_nothing(self, board, admin):
        assert _list(admin, view="fulfillment", status="pending").orders == []

    def test_multiple_statuses(self, board, admin):
        listing = _list(admin, status=["pending", "rejected"])
        assert _ids(listing.orders) == {board["pending"], board["rejected"]}

    def test_unknown_status(self, board, admin):
        with pytest.raises(ValidationError):
            _list(admin, status="lost")

    def test_unknown_view(self, admin):
        with pytest.raises(ValidationError):
            _list(admin, view="warehouse")

    def test_fulfillment_staff_cannot_open_shop_orders(self, board, fulfiller_eu):
        with pytest.raises(Forbidden):
            _list(fulfiller_eu)

    def test_outsider_cannot_list(self, board, outsider):
        with pytest.raises(Forbidden):
            _list(outsider, view="fulfillment")


class TestFraudDefault:
    def test_fraud_reviewer_lands_on_pending(self, board, fraud_reviewer):
        listing = _list(fraud_reviewer)
        assert listing.default_status == "pending"
        assert _ids(listing.orders) == {board["pending"]}

    def test_explicit_status_overrides_default(self, board, fraud_reviewer):
        listing = _list(fraud_reviewer, status="rejected")
        assert _ids(listing.orders) == {board["rejected"]}

    def test_blank_status_keeps_default(self, board, fraud_reviewer):
        listing = _list(fraud_reviewer, status=[""])
        assert _ids(listing.orders) == {board["pending"]}


class TestBlankStatus:
    def test_blank_status_means_no_filter(self, board, admin):
        listing = _list(admin, status="")
        assert _ids(listing.orders) == {board["pending"], board["held"], board["rejected"]}

    def test_whitespace_status_means_no_filter(self, board, admin):
        assert len(_list(admin, status=["  "]).orders) == 3

    def test_blank_entries_are_dropped_from_a_status_list(self, board, admin):
        listing = _list(admin, status=["", "rejected"])
        assert _ids(listing.orders) == {board["rejected"]}


class TestRegions:
    def test_regional_fulfiller_sees_only_their_region(self, board, fulfiller_eu):
        listing = _list(fulfiller_eu, view="fulfillment")
        assert listing.region == "EU"
        assert _ids(listing.orders) == {board["queued_eu"], board["fulfilled_eu"]}

    def test_requested_region_is_ignored_for_regional_fulfiller(self, board, fulfiller_eu):
        listing = _list(fulfiller_eu, view="fulfillment", region="US")
        assert listing.region == "EU"
        assert board["queued_us"] not in _ids(listing.orders)

    def test_lower_case_region_on_user_record(self, board, fulfiller_us):
        listing = _list(fulfiller_us, view="fulfillment")
        assert _ids(listing.orders) == {board["queued_us"]}

    def test_admin_may_pick_a_region(self, board, admin):
        listing = _list(admin, view="fulfillment", region="us")
        assert _ids(listing.orders) == {board["queued_us"]}

    def test_orders_without_address_never_match_a_region(self, board, admin):
        for region in ("EU", "US", "XX"):
            assert board["no_address"] not in _ids(_list(admin, view="fulfillment", region=region).orders)

    def test_stats_are_computed_before_region_partition(self, board, fulfiller_eu):
        listing = _list(fulfiller_eu, view="fulfillment")
        assert listing.stats.counts["awaiting_fulfillment"] == 3
        assert listing.stats.counts["fulfilled"] == 1


class TestFilters:
    def test_shop_item_filter(self, place, admin):
        stickers = place(shop_item_id="item-stickers")
        place(shop_item_id="item-hoodie")
        assert _ids(_list(admin, shop_item_id="item-stickers").orders) == {stickers}

    def test_user_search_by_name(self, place, admin, customer, other_customer):
        mine = place(user_id=customer.id)
        place(user_id=other_customer.id)
        assert _ids(_list(admin, user_search="lovelace").orders) == {mine}

    def test_user_search_by_email(self, place, admin, customer, other_customer):
        theirs = place(user_id=other_customer.id)
        place(user_id=customer.id)
        assert _ids(_list(admin, user_search="CHARLES@").orders) == {theirs}

    def test_user_search_without_match(self, place, admin):
        place()
        assert _list(admin, user_search="nobody").orders == []

    def test_blank_user_search_is_ignored(self, place, admin):
        order_id = place()
        assert _ids(_list(admin, user_search="  ").orders) == {order_id}

    def test_date_range(self, admin, customer):
        store = get_order_store()
        base = datetime(2024, 3, 1, tzinfo=UTC)
        ids = []
        for days in (0, 10, 20):
            order = Order.place(user_id=customer.id, shop_item_id="item-1", quantity=1)
            order.created_at = base + timedelta(days=days)
            store.save(order)
            ids.append(str(order.id))

        listing = _list(admin, date_from=base + timedelta(days=5), date_to=base + timedelta(days=15))
        assert _ids(listing.orders) == {ids[1]}

    def test_sort_by_price(self, place, admin):
        cheap = place(item_price=1.0)
        dear = place(item_price=99.0)
        free = place(item_price=None)
        listing = _list(admin, sort="price_desc")
        assert [str(o.id) for o in listing.orders] == [dear, cheap, free]


class TestStats:
    def test_counts_cover_every_status(self, board, admin):
        counts = _list(admin).stats.counts
        assert counts == {
            "pending": 1,
            "on_hold": 1,
            "rejected": 1,
            "awaiting_fulfillment": 0,
            "fulfilled": 0,
        }

    def test_average_fulfillment_time(self, board, admin):
        stats = _list(admin, view="fulfillment").stats
        assert stats.average_fulfillment_seconds is not None
        assert stats.average_fulfillment_seconds >= 0

    def test_no_fulfilled_orders_means_no_average(self, board, admin):
        assert _list(admin).stats.average_fulfillment_seconds is None


class TestGroupByUser:
    def test_groups_aggregate_orders_per_user(self, board, admin, other_customer):
        listing = _list(admin, view="fulfillment", group_by_user=True)
        group = next(g for g in listing.groups if g.user_id == other_customer.id)

        assert group.order_count == 2
        assert group.total_items == 2
        assert group.total_cost == 35.0
        assert group.user.display_name == "Charles Babbage"

    def test_admin_sees_group_address(self, board, admin, other_customer):
        listing = _list(admin, view="fulfillment", group_by_user=True)
        group = next(g for g in listing.groups if g.user_id == other_customer.id)
        assert group.address is not None

    def test_staff_does_not_see_group_address(self, board, staff):
        listing = _list(staff, group_by_user=True)
        assert listing.groups
        assert all(group.address is None for group in listing.groups)

    def test_listing_without_grouping_has_no_groups(self, board, admin):
        assert _list(admin).groups is None


class TestPlacedOrdersStatus:
    def test_new_orders_are_pending(self, place, admin):
        order_id = place()
        listing = _list(admin, status="pending")
        assert [o.status for o in listing.orders] == [OrderStatus.PENDING.value]
        assert _ids(listing.orders) == {order_id}


class TestPagedStore:
    def test_listing_reads_past_the_first_page(self, place, admin):
        set_order_store(RepositoryOrderStore(page_size=2))
        ids = {place() for _ in range(5)}

        listing = _list(admin)

        assert _ids(listing.orders) == ids
        assert listing.stats.counts["pending"] == 5
        created = [aware(o.created_at) for o in listing.orders]
        assert created == sorted(created, reverse=True)

    def test_stats_count_every_page(self, place, admin, fulfiller_eu):
        set_order_store(RepositoryOrderStore(page_size=2))
        for _ in range(3):
            order_id = place()
            _process(ApproveOrder(order_id=order_id, actor_id=admin.id))
            _process(MarkOrderFulfilled(order_id=order_id, actor_id=fulfiller_eu.id))

        stats = _list(admin, view="fulfillment").stats
        assert stats.counts["fulfilled"] == 3
