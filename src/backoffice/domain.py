"""Back-office bounded context — order review and fulfillment.

Staff review incoming shop orders (approve, reject, hold), regional
fulfillment teams ship them, and every state change lands in an
append-only audit trail that also feeds the staff leaderboards.
"""

from protean.domain import Domain

from backoffice.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

# Version clashes surface to the caller as Conflict instead of being retried
backoffice = Domain(name="backoffice", config={"server": {"version_retry": {"enabled": False}}})
