"""Abstract repository for Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from orderflow.domain.model.order import Order, OrderStatus


class OrderRepository(ABC):

    @abstractmethod
    def next_id(self) -> int:
        """Generate the next unique order ID."""

    @abstractmethod
    def get_by_id(self, order_id: int) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    def get_by_tracking_code(self, tracking_code: str) -> Order | None:
        """Return the order bound to a carrier tracking code, or None."""

    @abstractmethod
    def list_all(self, status: OrderStatus | None = None) -> list[Order]:
        """Return every order, optionally only those in ``status``."""

    @abstractmethod
    def save(self, order: Order, expected_version: int | None = None) -> None:
        """Persist a new or updated order.

        When ``expected_version`` is given, the stored record must still
        carry that version or ``ConcurrentModification`` is raised and
        nothing is written. The comparison and the write are one atomic
        step.
        """
