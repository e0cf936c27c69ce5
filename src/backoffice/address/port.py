"""Address codec port — gatekeeper for the frozen shipping address.

Listing and region classification only ever read the snapshot's country;
the full address is released through this interface, which decides per
order and per caller whether it may be shown.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class AddressView:
    """A shipping address as revealed to an authorised caller."""

    name: str | None
    line1: str
    line2: str | None
    city: str
    state: str | None
    postal_code: str | None
    country: str


class AddressCodec(ABC):
    """Abstract interface for address codecs."""

    @abstractmethod
    def can_view(self, order, caller) -> bool:
        """Whether ``caller`` may see the address of ``order``."""
        ...

    @abstractmethod
    def decrypt(self, order, caller) -> AddressView | None:
        """Reveal the address; raises Forbidden when ``can_view`` is False.

        Returns None for orders placed without a shipping address.
        """
        ...
