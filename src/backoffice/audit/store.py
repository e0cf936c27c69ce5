"""Audit store port and its protean-repository adapter."""

from abc import ABC, abstractmethod

from protean.utils.globals import current_domain

from backoffice.audit.audit_record import AuditRecord
from backoffice.settings import AUDIT_QUERY_PAGE_SIZE
from backoffice.utils.logging import get_logger
from backoffice.utils.queries import fetch_all

logger = get_logger(__name__)


class AuditStore(ABC):
    """Append-only storage for audit records."""

    @abstractmethod
    def append(self, record: AuditRecord) -> None:
        """Persist a record. Failures must raise, never pass silently."""
        ...

    @abstractmethod
    def history(self, entity_type: str, entity_id) -> list[AuditRecord]:
        """All records for one entity, oldest first."""
        ...

    @abstractmethod
    def transition_counts(self, entity_type: str, to_status: str, from_status: str | None = None) -> dict[str, int]:
        """Count state transitions into ``to_status`` per acting user.

        Records without an actor are skipped. Keys appear in the order each
        actor's first matching record was written.
        """
        ...


class RepositoryAuditStore(AuditStore):
    """Audit store backed by the domain's AuditRecord repository."""

    def __init__(self, page_size: int = AUDIT_QUERY_PAGE_SIZE):
        self.page_size = page_size

    def append(self, record):
        current_domain.repository_for(AuditRecord).add(record)
        logger.debug(
            "audit_record_appended",
            entity_type=record.entity_type,
            entity_id=str(record.entity_id),
            actor_id=record.actor_id,
        )

    def _records(self, **criteria):
        repo = current_domain.repository_for(AuditRecord)
        query = repo._dao.query.filter(**criteria).order_by(["recorded_at", "id"])
        return fetch_all(query, self.page_size)

    def history(self, entity_type, entity_id):
        return self._records(entity_type=entity_type, entity_id=str(entity_id))

    def transition_counts(self, entity_type, to_status, from_status=None):
        criteria = {"entity_type": entity_type, "to_status": to_status}
        if from_status is not None:
            criteria["from_status"] = from_status

        counts: dict[str, int] = {}
        for record in self._records(**criteria):
            if not record.actor_id:
                continue
            counts[record.actor_id] = counts.get(record.actor_id, 0) + 1
        return counts


_audit_store_instance = None


def get_audit_store() -> AuditStore:
    """Return the audit store (singleton)."""
    global _audit_store_instance
    if _audit_store_instance is None:
        _audit_store_instance = RepositoryAuditStore()
    return _audit_store_instance


def set_audit_store(store: AuditStore):
    """Swap in another audit store implementation."""
    global _audit_store_instance
    _audit_store_instance = store


def reset_audit_store():
    """Reset the audit store singleton (useful for testing)."""
    global _audit_store_instance
    _audit_store_instance = None
