"""User directory abstraction — pluggable source of user records."""

import os

_directory_instance = None


def get_directory():
    """Return the configured user directory (singleton).

    Uses InMemoryDirectory by default. Configure via the
    USER_DIRECTORY_ADAPTER environment variable.
    """
    global _directory_instance
    if _directory_instance is None:
        adapter = os.environ.get("USER_DIRECTORY_ADAPTER", "memory")
        if adapter == "memory":
            from backoffice.directory.fake_directory import InMemoryDirectory

            _directory_instance = InMemoryDirectory()
        else:
            raise ValueError(f"Unknown user directory adapter: {adapter}")
    return _directory_instance


def reset_directory():
    """Reset the directory singleton (useful for testing)."""
    global _directory_instance
    _directory_instance = None
