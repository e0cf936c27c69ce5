"""FastAPI routes for the back office — order review, fulfillment and leaderboards.

The acting staff member is identified by the ``X-Actor-Id`` header and
resolved through the user directory; every decision about what they may
see or do is left to the access policy behind the commands and queries.
"""

from dataclasses import asdict
from datetime import datetime

from fastapi import APIRouter, Depends, Header, HTTPException, Query

from backoffice.access.policy import get_access_policy
from backoffice.api.schemas import (
    AuditRecordSchema,
    CallerStandingSchema,
    FieldChangeSchema,
    LeaderboardEntrySchema,
    LeaderboardSchema,
    LeaderboardsResponse,
    OrderDetailResponse,
    OrderListResponse,
    OrderResponse,
    OrderStatsResponse,
    RejectRequest,
    TransitionRequest,
    UpdateNotesRequest,
    UserGroupResponse,
)
from backoffice.directory import get_directory
from backoffice.order.fulfillment import MarkOrderFulfilled
from backoffice.order.notes import UpdateInternalNotes
from backoffice.order.review import ApproveOrder, PlaceOrderOnHold, RejectOrder, ReleaseOrderFromHold
from backoffice.order.transitions import dispatch
from backoffice.queries.leaderboard import Leaderboards
from backoffice.queries.orders import OrderListFilter, OrderQuery, parse_view
from backoffice.utils.logging import bind_actor

router = APIRouter(prefix="/shop-orders", tags=["shop-orders"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def current_caller(x_actor_id: str | None = Header(default=None)):
    """Resolve the acting user from the X-Actor-Id header."""
    caller = get_directory().find_by_id(x_actor_id) if x_actor_id else None
    if caller is None:
        raise HTTPException(status_code=401, detail="Unknown actor")
    bind_actor(caller.id)
    return caller


def _order_response(order) -> OrderResponse:
    return OrderResponse(
        id=str(order.id),
        user_id=str(order.user_id),
        shop_item_id=str(order.shop_item_id),
        status=order.status,
        quantity=order.quantity,
        frozen_item_price=order.frozen_item_price,
        total_cost=order.total_cost,
        country=order.country,
        fulfilled_by=order.fulfilled_by,
        fulfilled_at=order.fulfilled_at,
        rejection_reason=order.rejection_reason,
        internal_notes=order.internal_notes,
        lock_version=order.lock_version,
        created_at=order.created_at,
    )


def _leaderboard_schema(board) -> LeaderboardSchema:
    return LeaderboardSchema(
        top=[
            LeaderboardEntrySchema(
                rank=entry.rank,
                user_id=str(entry.user_id),
                display_name=entry.display_name,
                count=entry.count,
                is_current_user=entry.is_current_user,
            )
            for entry in board.entries
        ],
        current_user=CallerStandingSchema(
            rank=board.current_user.rank,
            count=board.current_user.count,
            in_top=board.current_user.in_top,
        ),
    )


def _process(command) -> OrderResponse:
    order = dispatch(command)
    return _order_response(order)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------
@router.get("", response_model=OrderListResponse)
async def list_orders(
    caller=Depends(current_caller),
    view: str = "shop_orders",
    shop_item_id: str | None = None,
    status: list[str] | None = Query(default=None),
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    user_search: str | None = None,
    region: str | None = None,
    sort: str | None = None,
    group_by_user: bool = False,
) -> OrderListResponse:
    listing = OrderQuery().list_orders(
        caller,
        OrderListFilter(
            view=view,
            shop_item_id=shop_item_id,
            status=status,
            date_from=date_from,
            date_to=date_to,
            user_search=user_search,
            region=region,
            group_by_user=group_by_user,
            sort=sort,
        ),
    )

    response = OrderListResponse(
        view=listing.view.value,
        default_status=listing.default_status,
        region=listing.region,
        stats=OrderStatsResponse(
            counts=listing.stats.counts,
            average_fulfillment_seconds=listing.stats.average_fulfillment_seconds,
        ),
    )
    if listing.groups is not None:
        response.groups = [
            UserGroupResponse(
                user_id=group.user_id,
                display_name=group.user.display_name if group.user else None,
                order_count=group.order_count,
                total_items=group.total_items,
                total_cost=group.total_cost,
                address=asdict(group.address) if group.address else None,
                orders=[_order_response(o) for o in group.orders],
            )
            for group in listing.groups
        ]
    else:
        response.orders = [_order_response(o) for o in listing.orders]
    return response


@router.get("/leaderboards", response_model=LeaderboardsResponse)
async def leaderboards(caller=Depends(current_caller), view: str = "shop_orders") -> LeaderboardsResponse:
    get_access_policy().authorize(caller, parse_view(view))
    boards = Leaderboards()
    return LeaderboardsResponse(
        fulfilled=_leaderboard_schema(boards.fulfilled(caller)),
        approved=_leaderboard_schema(boards.approved(caller)),
    )


@router.get("/{order_id}", response_model=OrderDetailResponse)
async def show_order(order_id: str, caller=Depends(current_caller)) -> OrderDetailResponse:
    detail = OrderQuery().show(caller, order_id)
    return OrderDetailResponse(
        order=_order_response(detail.order),
        history=[
            AuditRecordSchema(
                actor_id=record.actor_id,
                recorded_at=record.recorded_at,
                changes=[FieldChangeSchema(field=c.field, old=c.old, new=c.new) for c in record.field_changes],
            )
            for record in detail.history
        ],
        can_view_address=detail.can_view_address,
        allowed_actions=[action.value for action in detail.allowed_actions],
        user_orders=[_order_response(o) for o in detail.user_orders],
        user_order_stats=detail.user_order_stats,
    )


@router.get("/{order_id}/address")
async def reveal_address(order_id: str, caller=Depends(current_caller)):
    address = OrderQuery().reveal_address(caller, order_id)
    return {"address": asdict(address) if address else None}


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@router.post("/{order_id}/approve", response_model=OrderResponse)
async def approve_order(
    order_id: str, body: TransitionRequest | None = None, caller=Depends(current_caller)
) -> OrderResponse:
    return _process(
        ApproveOrder(
            order_id=order_id,
            actor_id=caller.id,
            expected_version=body.expected_version if body else None,
        )
    )


@router.post("/{order_id}/reject", response_model=OrderResponse)
async def reject_order(order_id: str, body: RejectRequest | None = None, caller=Depends(current_caller)) -> OrderResponse:
    return _process(
        RejectOrder(
            order_id=order_id,
            actor_id=caller.id,
            reason=body.reason if body else None,
            expected_version=body.expected_version if body else None,
        )
    )


@router.post("/{order_id}/hold", response_model=OrderResponse)
async def place_on_hold(
    order_id: str, body: TransitionRequest | None = None, caller=Depends(current_caller)
) -> OrderResponse:
    return _process(
        PlaceOrderOnHold(
            order_id=order_id,
            actor_id=caller.id,
            expected_version=body.expected_version if body else None,
        )
    )


@router.post("/{order_id}/release", response_model=OrderResponse)
async def release_from_hold(
    order_id: str, body: TransitionRequest | None = None, caller=Depends(current_caller)
) -> OrderResponse:
    return _process(
        ReleaseOrderFromHold(
            order_id=order_id,
            actor_id=caller.id,
            expected_version=body.expected_version if body else None,
        )
    )


@router.post("/{order_id}/fulfill", response_model=OrderResponse)
async def mark_fulfilled(
    order_id: str, body: TransitionRequest | None = None, caller=Depends(current_caller)
) -> OrderResponse:
    return _process(
        MarkOrderFulfilled(
            order_id=order_id,
            actor_id=caller.id,
            expected_version=body.expected_version if body else None,
        )
    )


@router.put("/{order_id}/notes", response_model=OrderResponse)
async def update_notes(order_id: str, body: UpdateNotesRequest, caller=Depends(current_caller)) -> OrderResponse:
    return _process(
        UpdateInternalNotes(
            order_id=order_id,
            actor_id=caller.id,
            internal_notes=body.internal_notes,
            expected_version=body.expected_version,
        )
    )
