"""Capability check port, the external authorization predicate evaluator.

The access policy decides *which* capability a caller needs; whether the
caller holds it is answered here.
"""

import os
from abc import ABC, abstractmethod

from backoffice.errors import Forbidden


class CapabilityCheck(ABC):
    """Abstract interface for capability evaluators."""

    @abstractmethod
    def is_granted(self, caller, capability: str) -> bool:
        ...

    def authorize(self, caller, capability: str) -> None:
        """Raise Forbidden unless the caller holds ``capability``."""
        if not self.is_granted(caller, capability):
            raise Forbidden()


class GrantedCapabilities(CapabilityCheck):
    """Reads capabilities granted directly on the user record."""

    def is_granted(self, caller, capability):
        return caller is not None and capability in caller.capabilities


_capability_check_instance = None


def get_capability_check():
    """Return the configured capability check (singleton).

    Uses GrantedCapabilities by default. Configure via the
    CAPABILITY_CHECK_ADAPTER environment variable.
    """
    global _capability_check_instance
    if _capability_check_instance is None:
        adapter = os.environ.get("CAPABILITY_CHECK_ADAPTER", "granted")
        if adapter == "granted":
            _capability_check_instance = GrantedCapabilities()
        else:
            raise ValueError(f"Unknown capability check adapter: {adapter}")
    return _capability_check_instance


def reset_capability_check():
    """Reset the capability check singleton (useful for testing)."""
    global _capability_check_instance
    _capability_check_instance = None
