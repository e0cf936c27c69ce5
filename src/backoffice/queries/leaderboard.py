"""Staff leaderboards — who fulfills and who approves the most orders.

Both boards share one ranking algorithm and differ only in where the counts
come from:

    fulfilled  fulfilled orders grouped by ``fulfilled_by``
    approved   audit records moving an order into awaiting_fulfillment,
               grouped by the acting user

Ties keep the order in which the counts were grouped. The requesting
caller's own standing is always reported, even outside the top band.
"""

from collections.abc import Mapping
from dataclasses import dataclass

from backoffice.audit.audit_record import ORDER_ENTITY
from backoffice.audit.store import get_audit_store
from backoffice.directory import get_directory
from backoffice.order.order import OrderStatus
from backoffice.order.store import get_order_store
from backoffice.settings import LEADERBOARD_SIZE


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    user_id: object
    display_name: str
    count: int
    is_current_user: bool


@dataclass(frozen=True)
class CallerStanding:
    rank: int | None
    count: int
    in_top: bool
    display_name: str | None = None


@dataclass(frozen=True)
class Leaderboard:
    entries: tuple
    current_user: CallerStanding


def caller_count(counts: Mapping, caller_id) -> int:
    """The caller's raw count: as given, then as a numeric id, else 0."""
    if caller_id in counts:
        return counts[caller_id]
    key = str(caller_id)
    if key in counts:
        return counts[key]
    try:
        numeric = int(key)
    except ValueError:
        return 0
    return counts.get(numeric, 0)


class LeaderboardEngine:
    def __init__(self, directory=None, size=LEADERBOARD_SIZE):
        self.directory = directory or get_directory()
        self.size = size

    def label_for(self, user_id) -> str:
        user = self.directory.find_by_id(user_id)
        if user is not None and user.display_name:
            return user.display_name
        return f"User #{user_id}"

    def rank(self, counts: Mapping, caller_id) -> Leaderboard:
        caller_key = str(caller_id)
        ordered = sorted(counts.items(), key=lambda item: -item[1])
        top = ordered[: self.size]

        position = next((i for i, (user_id, _) in enumerate(ordered) if str(user_id) == caller_key), None)

        labels = {str(user_id): self.label_for(user_id) for user_id, _ in top}
        if position is not None and position >= self.size:
            labels[caller_key] = self.label_for(caller_id)

        entries = tuple(
            LeaderboardEntry(
                rank=index + 1,
                user_id=user_id,
                display_name=labels[str(user_id)],
                count=count,
                is_current_user=str(user_id) == caller_key,
            )
            for index, (user_id, count) in enumerate(top)
        )
        standing = CallerStanding(
            rank=position + 1 if position is not None else None,
            count=caller_count(counts, caller_id),
            in_top=position is not None and position < self.size,
            display_name=labels.get(caller_key),
        )
        return Leaderboard(entries=entries, current_user=standing)


class Leaderboards:
    """Feeds the two count sources into the shared ranking engine."""

    def __init__(self, store=None, audit_store=None, engine=None):
        self.store = store or get_order_store()
        self.audit_store = audit_store or get_audit_store()
        self.engine = engine or LeaderboardEngine()

    def fulfilled(self, caller) -> Leaderboard:
        return self.engine.rank(self.store.fulfilled_counts(), caller.id)

    def approved(self, caller) -> Leaderboard:
        counts = self.audit_store.transition_counts(ORDER_ENTITY, to_status=OrderStatus.AWAITING_FULFILLMENT.value)
        return self.engine.rank(counts, caller.id)
