"""Pydantic request/response schemas for the back-office API.

These are external contracts (anti-corruption layer), separate from
internal Protean commands and aggregates.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    name: str | None = None
    line1: str
    line2: str | None = None
    city: str
    state: str | None = None
    postal_code: str | None = None
    country: str = Field(min_length=2, max_length=2)


class FieldChangeSchema(BaseModel):
    field: str
    old: str | int | float | None = None
    new: str | int | float | None = None


class AuditRecordSchema(BaseModel):
    actor_id: str | None = None
    recorded_at: datetime
    changes: list[FieldChangeSchema]


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class TransitionRequest(BaseModel):
    expected_version: int | None = None


class RejectRequest(TransitionRequest):
    reason: str | None = None


class UpdateNotesRequest(TransitionRequest):
    internal_notes: str | None = Field(default=None, max_length=5000)


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class OrderResponse(BaseModel):
    id: str
    user_id: str
    shop_item_id: str
    status: str
    quantity: int
    frozen_item_price: float | None = None
    total_cost: float | None = None
    country: str | None = None
    fulfilled_by: str | None = None
    fulfilled_at: datetime | None = None
    rejection_reason: str | None = None
    internal_notes: str | None = None
    lock_version: int
    created_at: datetime | None = None


class OrderStatsResponse(BaseModel):
    counts: dict[str, int]
    average_fulfillment_seconds: float | None = None


class UserGroupResponse(BaseModel):
    user_id: str
    display_name: str | None = None
    order_count: int
    total_items: int
    total_cost: float
    address: AddressSchema | None = None
    orders: list[OrderResponse]


class OrderListResponse(BaseModel):
    view: str
    default_status: str | None = None
    region: str | None = None
    stats: OrderStatsResponse
    orders: list[OrderResponse] | None = None
    groups: list[UserGroupResponse] | None = None


class OrderDetailResponse(BaseModel):
    order: OrderResponse
    history: list[AuditRecordSchema]
    can_view_address: bool
    allowed_actions: list[str]
    user_orders: list[OrderResponse]
    user_order_stats: dict[str, int]


class LeaderboardEntrySchema(BaseModel):
    rank: int
    user_id: str
    display_name: str
    count: int
    is_current_user: bool


class CallerStandingSchema(BaseModel):
    rank: int | None = None
    count: int
    in_top: bool


class LeaderboardSchema(BaseModel):
    top: list[LeaderboardEntrySchema]
    current_user: CallerStandingSchema


class LeaderboardsResponse(BaseModel):
    fulfilled: LeaderboardSchema
    approved: LeaderboardSchema
