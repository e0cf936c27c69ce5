"""User directory port — read-only lookup of staff and customers.

The back office never owns user records; it resolves callers, display
labels and search matches through this interface.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum


class Role(Enum):
    ADMIN = "admin"
    FULFILLMENT = "fulfillment"
    FRAUD = "fraud"


@dataclass(frozen=True)
class User:
    """A person known to the platform, as seen by the back office."""

    id: str
    display_name: str | None = None
    email: str | None = None
    roles: frozenset = field(default_factory=frozenset)
    region: str | None = None
    capabilities: frozenset = field(default_factory=frozenset)

    def has_role(self, role: Role) -> bool:
        return role in self.roles or role.value in self.roles

    @property
    def is_admin(self) -> bool:
        return self.has_role(Role.ADMIN)

    @property
    def is_fulfillment_staff(self) -> bool:
        """Fulfillment role without admin rights."""
        return self.has_role(Role.FULFILLMENT) and not self.is_admin

    @property
    def is_fraud_staff(self) -> bool:
        """Fraud role without admin rights."""
        return self.has_role(Role.FRAUD) and not self.is_admin


class UserDirectory(ABC):
    """Abstract interface for user directory adapters."""

    @abstractmethod
    def find_by_id(self, user_id) -> User | None:
        """Return the user with the given id, or None."""
        ...

    @abstractmethod
    def search(self, text: str) -> list[User]:
        """Users whose display name or email contains ``text``, ignoring case."""
        ...
