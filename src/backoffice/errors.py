"""Failure taxonomy for back-office operations.

Lookups that miss raise protean's ``ObjectNotFoundError`` and field
validation raises protean's ``ValidationError``; the three errors below
cover what protean has no notion of.
"""

from protean.exceptions import InvalidOperationError, ValidationError


class Forbidden(Exception):
    """The caller may not perform the requested view or action.

    The message never names the order or its contents.
    """

    def __init__(self, message="Forbidden"):
        super().__init__(message)
        self.message = message


class InvalidTransition(InvalidOperationError):
    """The requested operation is not legal from the order's current state."""

    def __init__(self, action, state):
        self.action = action
        self.state = state
        super().__init__(f"Cannot {action} an order in {state} state")


class Conflict(Exception):
    """The order changed since it was loaded; reload and retry."""

    def __init__(self, order_id, expected_version, actual_version):
        self.order_id = str(order_id)
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Order {order_id} was modified concurrently (expected version {expected_version}, found {actual_version})"
        )


def error_message(exc: ValidationError) -> str:
    """Join the field errors of a ValidationError into one readable sentence."""
    messages = getattr(exc, "messages", None)
    if not isinstance(messages, dict):
        return str(exc)

    parts = []
    for field, errors in messages.items():
        if isinstance(errors, (list, tuple)):
            parts.extend(f"{field} {error}" if field != "_entity" else str(error) for error in errors)
        else:
            parts.append(f"{field} {errors}")
    return ", ".join(parts)
