"""Region resolver port — buckets a shipping country into a fulfillment region."""

from abc import ABC, abstractmethod


class RegionResolver(ABC):
    """Abstract interface for region resolvers."""

    @abstractmethod
    def country_to_region(self, country_code: str | None) -> str | None:
        """Return the region code for an ISO 3166-1 alpha-2 country code.

        Returns None only when no country was given.
        """
        ...
