"""Region resolver abstraction — pluggable country-to-region mapping."""

import os

_resolver_instance = None


def get_region_resolver():
    """Return the configured region resolver (singleton).

    Uses CountryTableResolver by default. Configure via the
    REGION_RESOLVER_ADAPTER environment variable.
    """
    global _resolver_instance
    if _resolver_instance is None:
        adapter = os.environ.get("REGION_RESOLVER_ADAPTER", "table")
        if adapter == "table":
            from backoffice.regions.country_table import CountryTableResolver

            _resolver_instance = CountryTableResolver()
        else:
            raise ValueError(f"Unknown region resolver adapter: {adapter}")
    return _resolver_instance


def reset_region_resolver():
    """Reset the resolver singleton (useful for testing)."""
    global _resolver_instance
    _resolver_instance = None
