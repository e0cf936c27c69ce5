"""AuditRecord aggregate: one immutable entry per accepted change.

Records are appended by the order command handlers in the same unit of work
as the order mutation and are never updated or deleted. Besides the ordered
field diff, each record denormalises the state change into ``from_status`` /
``to_status`` so the approval leaderboard can count transitions with a plain
query instead of scanning serialized diffs.
"""

import json
from datetime import UTC, datetime
from typing import NamedTuple

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String, Text

from backoffice.domain import backoffice

ORDER_ENTITY = "Order"


class FieldChange(NamedTuple):
    field: str
    old: object
    new: object


def _jsonable(value):
    if isinstance(value, datetime):
        return value.isoformat()
    return value


@backoffice.aggregate
class AuditRecord:
    entity_type = String(required=True, max_length=50)
    entity_id = Identifier(required=True)
    actor_id = String(max_length=50)
    event = String(max_length=20, default="update")
    changes = Text(required=True)  # JSON: [[field, old, new], ...]
    from_status = String(max_length=50)
    to_status = String(max_length=50)
    recorded_at = DateTime(required=True)

    @classmethod
    def record(cls, entity_type, entity_id, actor_id, changes, recorded_at=None):
        """Build a record from an ordered list of FieldChange tuples."""
        if not changes:
            raise ValidationError({"changes": ["An audit record needs at least one change"]})

        status_change = next((c for c in changes if c.field == "status"), None)
        return cls(
            entity_type=entity_type,
            entity_id=str(entity_id),
            actor_id=str(actor_id) if actor_id is not None else None,
            changes=json.dumps([[c.field, _jsonable(c.old), _jsonable(c.new)] for c in changes]),
            from_status=status_change.old if status_change else None,
            to_status=status_change.new if status_change else None,
            recorded_at=recorded_at or datetime.now(UTC),
        )

    @property
    def field_changes(self) -> list[FieldChange]:
        return [FieldChange(*entry) for entry in json.loads(self.changes)]

    def change_for(self, field_name) -> FieldChange | None:
        return next((c for c in self.field_changes if c.field == field_name), None)
