"""Address codec abstraction — pluggable shipping address access."""

import os

_codec_instance = None


def get_address_codec():
    """Return the configured address codec (singleton).

    Uses SnapshotAddressCodec by default. Configure via the
    ADDRESS_CODEC_ADAPTER environment variable.
    """
    global _codec_instance
    if _codec_instance is None:
        adapter = os.environ.get("ADDRESS_CODEC_ADAPTER", "snapshot")
        if adapter == "snapshot":
            from backoffice.address.snapshot_codec import SnapshotAddressCodec

            _codec_instance = SnapshotAddressCodec()
        else:
            raise ValueError(f"Unknown address codec adapter: {adapter}")
    return _codec_instance


def reset_address_codec():
    """Reset the codec singleton (useful for testing)."""
    global _codec_instance
    _codec_instance = None
