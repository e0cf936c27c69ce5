"""Vocabulary of views and actions the access policy reasons about."""

from enum import Enum


class View(Enum):
    SHOP_ORDERS = "shop_orders"
    FULFILLMENT = "fulfillment"


class Action(Enum):
    VIEW_ORDER = "view_order"
    REVEAL_ADDRESS = "reveal_address"
    APPROVE = "approve"
    REJECT = "reject"
    PLACE_ON_HOLD = "place_on_hold"
    RELEASE_FROM_HOLD = "release_from_hold"
    MARK_FULFILLED = "mark_fulfilled"
    UPDATE_NOTES = "update_notes"


# Capability a caller without the admin or fulfillment role must hold
ACCESS_SHOP_ORDERS = "access_shop_orders"
