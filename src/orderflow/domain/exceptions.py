"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
"""

from __future__ import annotations


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class InvalidTransition(ValidationError):
    """The requested status is not a successor of the current one."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Cannot move order from '{current}' to '{target}'")


class MissingReason(ValidationError):
    """Cancelled and returned orders must carry a reason."""

    def __init__(self, target: str) -> None:
        self.target = target
        super().__init__(f"A reason is required to mark an order as '{target}'")


class InsufficientStock(DomainException):
    """No single branch can cover the requested quantity."""

    def __init__(self, variant_id: str, requested: int) -> None:
        self.variant_id = variant_id
        self.requested = requested
        super().__init__(
            f"Insufficient stock for variant '{variant_id}' "
            f"(no branch holds {requested} units)"
        )


class ConcurrentModification(DomainException):
    """The order was changed by someone else since it was read."""

    def __init__(self, order_id: int, expected: int, actual: int) -> None:
        self.order_id = order_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Order #{order_id} was modified concurrently "
            f"(expected version {expected}, found {actual})"
        )


class CarrierSyncFailure(DomainException):
    """The shipping carrier could not be brought in line with the order.

    Never fatal to a status change: it travels as a warning on the result.
    """

    def __init__(self, tracking_code: str, detail: str) -> None:
        self.tracking_code = tracking_code
        self.detail = detail
        super().__init__(f"Carrier sync failed for '{tracking_code}': {detail}")
