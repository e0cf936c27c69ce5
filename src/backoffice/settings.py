"""Runtime settings for the back-office context, overridable via env vars."""

import os

# Number of entries shown on each leaderboard
LEADERBOARD_SIZE = int(os.environ.get("LEADERBOARD_SIZE", "10"))

# Orders fetched per page while a store query reads all of its matches
ORDER_QUERY_PAGE_SIZE = int(os.environ.get("ORDER_QUERY_PAGE_SIZE", "500"))

# Orders shown in the "other orders by this user" panel
USER_HISTORY_LIMIT = int(os.environ.get("USER_HISTORY_LIMIT", "10"))

DEFAULT_REJECTION_REASON = "No reason provided"

# Audit records fetched per page for history and transition counts
AUDIT_QUERY_PAGE_SIZE = int(os.environ.get("AUDIT_QUERY_PAGE_SIZE", "1000"))
