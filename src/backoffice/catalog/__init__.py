"""Shop item catalogue abstraction — pluggable item capability lookup."""

import os

_catalog_instance = None


def get_catalog():
    """Return the configured shop item catalogue (singleton).

    Uses InMemoryCatalog by default. Configure via the
    SHOP_CATALOG_ADAPTER environment variable.
    """
    global _catalog_instance
    if _catalog_instance is None:
        adapter = os.environ.get("SHOP_CATALOG_ADAPTER", "memory")
        if adapter == "memory":
            from backoffice.catalog.fake_catalog import InMemoryCatalog

            _catalog_instance = InMemoryCatalog()
        else:
            raise ValueError(f"Unknown shop catalog adapter: {adapter}")
    return _catalog_instance


def reset_catalog():
    """Reset the catalogue singleton (useful for testing)."""
    global _catalog_instance
    _catalog_instance = None
